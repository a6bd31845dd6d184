from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from marketing_factory.db.enums import ImageTypeEnum, PlatformEnum, VideoStatusEnum
from marketing_factory.db.models import AIInfluencer, Project
from marketing_factory.schemas.marketing import (
    AdCopyResult,
    CompetitorAnalysis,
    InfluencerProfile,
    MarketingConstitution,
    ProjectAnalysis,
)

StatusCallback = Callable[[VideoStatusEnum], None]


@dataclass
class OnboardResult:
    url: str
    analysis: ProjectAnalysis
    constitution: MarketingConstitution
    screenshots: List[str] = field(default_factory=list)


@dataclass
class InfluencerDraft:
    profile: InfluencerProfile
    avatar_url: str
    voice_id: Optional[str] = None
    voice_name: Optional[str] = None


@dataclass
class VideoJob:
    project: Project
    video_id: str
    platform: PlatformEnum
    prompt: str
    title: str
    influencer: Optional[AIInfluencer] = None
    screenshots: List[str] = field(default_factory=list)
    product_image_urls: List[str] = field(default_factory=list)
    previous_themes: List[str] = field(default_factory=list)
    language: str = "en"


@dataclass
class VideoResult:
    title: Optional[str] = None
    script: Optional[str] = None
    hook: str = ""
    cta: str = ""
    hashtags: List[str] = field(default_factory=list)
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    audio_url: Optional[str] = None
    duration: Optional[int] = None
    storyboard: Optional[Dict[str, Any]] = None
    theme_tag: Optional[str] = None
    audio_mood_tags: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "script": self.script,
            "hook": self.hook,
            "cta": self.cta,
            "hashtags": self.hashtags,
            "videoUrl": self.video_url,
            "thumbnailUrl": self.thumbnail_url,
            "audioUrl": self.audio_url,
            "duration": self.duration,
            "storyboard": self.storyboard,
        }


@dataclass
class ImageResult:
    image_url: str
    width: int
    height: int
    enhanced_prompt: str


class MarketingEngine(Protocol):
    """The operations a workflow deployment mode must provide."""

    def onboard(self, url: str, *, user_id: str, language: str = "en") -> OnboardResult: ...

    def draft_influencer(self, project: Project, *, gender: str = "female") -> InfluencerDraft: ...

    def generate_video(self, job: VideoJob, *, on_status: StatusCallback) -> VideoResult: ...

    def analyze_competitors(self, project: Project) -> CompetitorAnalysis: ...

    def generate_ad_copy(
        self,
        project: Project,
        *,
        influencer_name: Optional[str] = None,
        platform: Optional[str] = None,
    ) -> AdCopyResult: ...

    def generate_image(
        self,
        project: Project,
        *,
        prompt: str,
        image_type: ImageTypeEnum,
        platform: str,
        brand_colors: List[str],
        size: Optional[Tuple[int, int]] = None,
    ) -> ImageResult: ...
