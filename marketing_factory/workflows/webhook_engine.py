from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from marketing_factory.db.enums import ImageTypeEnum, PlatformEnum, VideoStatusEnum
from marketing_factory.db.models import Project
from marketing_factory.schemas.marketing import (
    AdCopyResult,
    CompetitorAnalysis,
    InfluencerProfile,
    MarketingConstitution,
    ProjectAnalysis,
    coerce_model,
)
from marketing_factory.services.fal_images import placeholder_avatar_url
from marketing_factory.services.marketing_ai import MarketingAI
from marketing_factory.services.screenshots import normalize_url
from marketing_factory.services.vendor_http import VendorRequestError
from marketing_factory.services.webhooks import WorkflowWebhookClient
from marketing_factory.workflows.marketing import NATIVE_VOICE_NAME, project_analysis, project_constitution
from marketing_factory.workflows.types import (
    ImageResult,
    InfluencerDraft,
    OnboardResult,
    StatusCallback,
    VideoJob,
    VideoResult,
)

logger = logging.getLogger(__name__)


def _unwrap(payload: Dict[str, Any], *keys: str) -> Dict[str, Any]:
    """Automation hosts wrap results inconsistently; accept `{key: {...}}` or the bare object."""
    for key in keys:
        value = payload.get(key)
        if isinstance(value, dict):
            return value
    return payload


def _project_payload(project: Project) -> Dict[str, Any]:
    return {
        "projectId": str(project.id),
        "projectName": project.name,
        "projectUrl": project.url,
        "description": project.description,
        "valueProposition": project.value_proposition,
        "targetAudience": project.target_audience,
        "competitors": project.competitors,
        "marketingConstitution": project.marketing_constitution,
    }


class WebhookMarketingEngine:
    """Delegates each workflow to an externally hosted automation webhook."""

    def __init__(self, client: Optional[WorkflowWebhookClient] = None) -> None:
        self.client = client or WorkflowWebhookClient()

    def onboard(self, url: str, *, user_id: str, language: str = "en") -> OnboardResult:
        normalized = normalize_url(url)
        data = self.client.call("onboard", {"url": normalized, "userId": user_id, "language": language})
        analysis = coerce_model(ProjectAnalysis, data.get("analysis"), fallback=ProjectAnalysis())
        constitution = coerce_model(
            MarketingConstitution, data.get("constitution"), fallback=MarketingConstitution()
        )
        screenshots = [str(item) for item in data.get("screenshots") or [] if item]
        return OnboardResult(url=normalized, analysis=analysis, constitution=constitution, screenshots=screenshots)

    def draft_influencer(self, project: Project, *, gender: str = "female") -> InfluencerDraft:
        data = self.client.call("create_influencer", {**_project_payload(project), "gender": gender})
        raw = _unwrap(data, "influencer")
        profile = coerce_model(InfluencerProfile, raw, fallback=MarketingAI.fallback_influencer_profile())
        if profile.visualProfile.gender != gender:
            profile = profile.model_copy(
                update={"visualProfile": profile.visualProfile.model_copy(update={"gender": gender})}
            )
        avatar_url = raw.get("avatarUrl") or raw.get("avatar_url") or placeholder_avatar_url(profile.name)
        return InfluencerDraft(
            profile=profile,
            avatar_url=avatar_url,
            voice_id=raw.get("voiceId") or raw.get("voice_id"),
            voice_name=raw.get("voiceName") or raw.get("voice_name") or NATIVE_VOICE_NAME,
        )

    def generate_video(self, job: VideoJob, *, on_status: StatusCallback) -> VideoResult:
        influencer = job.influencer
        payload = {
            "projectId": str(job.project.id),
            "videoId": job.video_id,
            "platform": PlatformEnum(job.platform).value,
            "prompt": job.prompt,
            "brandName": job.project.name,
            "title": job.title,
            "language": job.language,
            "influencerId": str(influencer.id) if influencer else None,
            "influencerName": influencer.name if influencer else None,
            "influencerPersonality": influencer.personality if influencer else None,
            "influencerBackstory": influencer.backstory if influencer else None,
            "avatarUrl": influencer.avatar_url if influencer else None,
            "voiceId": influencer.voice_id if influencer else None,
            "screenshots": job.screenshots,
            "productImageUrls": job.product_image_urls,
            "previousThemes": job.previous_themes,
        }
        # The remote workflow runs every step; advance through the intermediate states before handing off.
        on_status(VideoStatusEnum.voicing)
        on_status(VideoStatusEnum.rendering)
        data = _unwrap(self.client.call("generate_video", payload), "video")

        duration = data.get("duration")
        return VideoResult(
            title=data.get("title") or job.title,
            script=data.get("script") or "",
            hook=data.get("hook") or "",
            cta=data.get("cta") or "",
            hashtags=[str(tag) for tag in data.get("hashtags") or []],
            video_url=data.get("videoUrl") or None,
            thumbnail_url=data.get("thumbnailUrl") or None,
            audio_url=data.get("audioUrl") or None,
            duration=int(duration) if isinstance(duration, (int, float)) else None,
            storyboard=data.get("storyboard") if isinstance(data.get("storyboard"), dict) else None,
            theme_tag=data.get("themeTag"),
            audio_mood_tags=[str(tag) for tag in data.get("audioMoodTags") or []],
        )

    def analyze_competitors(self, project: Project) -> CompetitorAnalysis:
        analysis = project_analysis(project)
        if not analysis.competitors:
            return CompetitorAnalysis(marketPosition="No competitor information found. Re-analyze the project.")
        data = self.client.call("competitor_analysis", _project_payload(project))
        return coerce_model(CompetitorAnalysis, _unwrap(data, "data"), fallback=CompetitorAnalysis())

    def generate_ad_copy(
        self,
        project: Project,
        *,
        influencer_name: Optional[str] = None,
        platform: Optional[str] = None,
    ) -> AdCopyResult:
        payload = {**_project_payload(project), "influencerName": influencer_name, "platform": platform}
        data = self.client.call("ad_copy", payload)
        return coerce_model(AdCopyResult, _unwrap(data, "data"), fallback=AdCopyResult())

    def generate_image(
        self,
        project: Project,
        *,
        prompt: str,
        image_type: ImageTypeEnum,
        platform: str,
        brand_colors: List[str],
        size: Optional[Tuple[int, int]] = None,
    ) -> ImageResult:
        constitution = project_constitution(project)
        payload = {
            "projectId": str(project.id),
            "prompt": prompt,
            "imageType": ImageTypeEnum(image_type).value,
            "platform": platform,
            "brandColors": brand_colors,
            "brandContext": f"{project.name}: {project.description or project.value_proposition or ''}",
            "visualDna": constitution.visualDna,
        }
        if size:
            payload["width"], payload["height"] = size
        data = _unwrap(self.client.call("generate_image", payload), "image")
        image_url = data.get("imageUrl")
        if not image_url:
            raise VendorRequestError("Workflow returned no image URL", vendor="workflow-webhook", details=data)
        default_width, default_height = size or (1024, 1024)
        return ImageResult(
            image_url=image_url,
            width=int(data.get("width") or default_width),
            height=int(data.get("height") or default_height),
            enhanced_prompt=data.get("enhancedPrompt") or prompt,
        )
