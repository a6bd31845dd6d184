from enum import Enum


class AnalysisStatusEnum(str, Enum):
    pending = "pending"
    analyzing = "analyzing"
    completed = "completed"
    failed = "failed"


class InfluencerStatusEnum(str, Enum):
    draft = "draft"
    generating = "generating"
    ready = "ready"
    failed = "failed"


class PlatformEnum(str, Enum):
    instagram = "instagram"
    tiktok = "tiktok"
    linkedin = "linkedin"


class VideoStatusEnum(str, Enum):
    draft = "draft"
    scripting = "scripting"
    voicing = "voicing"
    rendering = "rendering"
    ready = "ready"
    published = "published"
    failed = "failed"


class ImageTypeEnum(str, Enum):
    static_post = "static_post"
    carousel_slide = "carousel_slide"
    thumbnail = "thumbnail"
    story = "story"
    banner = "banner"
    custom = "custom"


class ImageStatusEnum(str, Enum):
    generating = "generating"
    ready = "ready"
    failed = "failed"


class AssetTypeEnum(str, Enum):
    screenshot = "screenshot"
    logo = "logo"
    custom = "custom"
    generated = "generated"


class SocialPlatformEnum(str, Enum):
    instagram = "instagram"
    tiktok = "tiktok"
    linkedin = "linkedin"
    twitter = "twitter"


class PublishStatusEnum(str, Enum):
    published = "published"
    failed = "failed"
