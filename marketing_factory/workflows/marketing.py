"""
In-process marketing workflows.

Each operation is a fixed sequence of vendor calls. Nothing here touches the
database; handlers persist the returned results.
"""

from __future__ import annotations

import logging
import time
from typing import List, Optional, Tuple

import httpx
from botocore.exceptions import BotoCoreError, ClientError

from marketing_factory.db.enums import ImageTypeEnum, PlatformEnum, VideoStatusEnum
from marketing_factory.db.models import AIInfluencer, Project
from marketing_factory.schemas.marketing import (
    AdCopyResult,
    CompetitorAnalysis,
    MarketingConstitution,
    MasterPrompt,
    ProjectAnalysis,
    coerce_model,
)
from marketing_factory.services.fal_images import FalImageClient
from marketing_factory.services.kling import KlingClient
from marketing_factory.services.marketing_ai import MarketingAI
from marketing_factory.services.media_storage import (
    MediaStorage,
    MediaStorageConfigError,
    media_storage_configured,
)
from marketing_factory.services.screenshots import (
    capture_website,
    normalize_url,
    scrape_website_info,
    thumio_url,
)
from marketing_factory.services.vendor_http import VendorConfigError, VendorRequestError
from marketing_factory.services.voice import VoiceClient
from marketing_factory.workflows.types import (
    ImageResult,
    InfluencerDraft,
    OnboardResult,
    StatusCallback,
    VideoJob,
    VideoResult,
)

logger = logging.getLogger(__name__)

NATIVE_VOICE_NAME = "Kling AI Native"

_STORAGE_ERRORS = (BotoCoreError, ClientError, MediaStorageConfigError, httpx.HTTPError)
_VENDOR_ERRORS = (VendorConfigError, VendorRequestError, httpx.HTTPError)


def project_analysis(project: Project) -> ProjectAnalysis:
    return coerce_model(
        ProjectAnalysis,
        {
            "name": project.name,
            "description": project.description or "",
            "valueProposition": project.value_proposition or "",
            "targetAudience": project.target_audience or {},
            "competitors": project.competitors or [],
        },
        fallback=ProjectAnalysis(name=project.name),
    )


def project_constitution(project: Project) -> MarketingConstitution:
    return coerce_model(
        MarketingConstitution,
        project.marketing_constitution or {},
        fallback=MarketingConstitution(),
    )


def influencer_persona(influencer: Optional[AIInfluencer]) -> str:
    if influencer is None:
        return "A friendly, authentic creator speaking directly to camera"
    parts = [influencer.name, influencer.personality, influencer.appearance_description]
    return ". ".join(part for part in parts if part)


class InlineMarketingEngine:
    def __init__(
        self,
        *,
        ai: Optional[MarketingAI] = None,
        images: Optional[FalImageClient] = None,
        voice: Optional[VoiceClient] = None,
        kling: Optional[KlingClient] = None,
        storage: Optional[MediaStorage] = None,
    ) -> None:
        self.ai = ai or MarketingAI()
        self.images = images or FalImageClient()
        self.voice = voice or VoiceClient()
        self.kling = kling or KlingClient()
        if storage is None and media_storage_configured():
            storage = MediaStorage()
        self.storage = storage

    # Onboarding

    def onboard(self, url: str, *, user_id: str, language: str = "en") -> OnboardResult:
        normalized = normalize_url(url)
        screenshots = self._capture_screenshots(normalized, owner=user_id)

        info = scrape_website_info(normalized)
        content = f"Title: {info.title}\nDescription: {info.description}\nContent: {info.content}"

        analysis = self.ai.analyze_project(normalized, content, language=language)
        if analysis.name == ProjectAnalysis.model_fields["name"].default and info.title:
            analysis = analysis.model_copy(update={"name": info.title})
        constitution = self.ai.generate_constitution(analysis, language=language)

        logger.info(
            "Project analysed",
            extra={"url": normalized, "project_name": analysis.name, "screenshots": len(screenshots)},
        )
        return OnboardResult(url=normalized, analysis=analysis, constitution=constitution, screenshots=screenshots)

    def _capture_screenshots(self, url: str, *, owner: str) -> List[str]:
        if self.storage is None:
            return [thumio_url(url)]
        try:
            data = capture_website(url)
            return [self.storage.store(project_id=owner, kind="screenshots", data=data, content_type="image/png", ext="png")]
        except (VendorRequestError, *_STORAGE_ERRORS) as exc:
            logger.warning("Screenshot capture failed", extra={"url": url, "error": str(exc)})
            return []

    # Influencer

    def draft_influencer(self, project: Project, *, gender: str = "female") -> InfluencerDraft:
        analysis = project_analysis(project)
        constitution = project_constitution(project)

        profile = self.ai.generate_influencer_profile(analysis, constitution, gender=gender)
        avatar_url = self.images.generate_avatar(
            name=profile.name,
            visual_profile=profile.visualProfile.model_dump(),
            appearance=profile.appearanceDescription,
            visual_dna=constitution.visualDna,
        )
        if self.images.configured:
            avatar_url = self._mirror(project, "avatars", avatar_url, "image/png", "png") or avatar_url

        voice_id: Optional[str] = None
        voice_name = NATIVE_VOICE_NAME
        if self.voice.configured:
            try:
                matches = self.voice.recommended_voices(analysis.brandTone, limit=1)
            except _VENDOR_ERRORS as exc:
                logger.warning("Voice lookup failed", extra={"project_id": str(project.id), "error": str(exc)})
                matches = []
            if matches:
                voice_id, voice_name = matches[0].voice_id, matches[0].name

        return InfluencerDraft(profile=profile, avatar_url=avatar_url, voice_id=voice_id, voice_name=voice_name)

    # Video

    def generate_video(self, job: VideoJob, *, on_status: StatusCallback) -> VideoResult:
        project = job.project
        platform = PlatformEnum(job.platform).value
        analysis = project_analysis(project)
        constitution = project_constitution(project)
        result = VideoResult(title=job.title)

        try:
            hooks = self.ai.generate_hook_variations(analysis, platform, language=job.language)
            storyboard = self.ai.generate_storyboard(analysis, constitution, hooks, platform, language=job.language)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Storyboard generation failed", extra={"video_id": job.video_id, "error": str(exc)})
            result.warnings.append(f"storyboard: {exc}")
        else:
            result.storyboard = storyboard.model_dump()

        script = self.ai.generate_video_script(
            analysis, constitution, platform, brief=job.prompt, language=job.language
        )
        result.title = job.title or script.title
        result.script = script.fullScript or " ".join(p for p in (script.hook, script.body, script.cta) if p)
        result.hook = script.hook
        result.cta = script.cta
        result.hashtags = list(script.hashtags)

        try:
            master = self.ai.generate_master_prompt(
                analysis,
                constitution,
                influencer_persona=influencer_persona(job.influencer),
                platform=platform,
                previous_themes=job.previous_themes,
                language=job.language,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Master prompt generation failed", extra={"video_id": job.video_id, "error": str(exc)})
            result.warnings.append(f"master prompt: {exc}")
            master = MasterPrompt(themeTag=f"fallback-{int(time.time())}")
        result.theme_tag = master.themeTag
        result.audio_mood_tags = list(master.audioMoodTags)
        video_prompt = master.videoPrompt
        if master.videoScript:
            result.script = master.videoScript
            result.hook = master.videoScript.split("|")[0].strip() or script.hook
            video_prompt = f'{master.videoPrompt}\n\nDIALOGUE (spoken by the person in the video):\n"{master.videoScript}"'
        on_status(VideoStatusEnum.voicing)

        voice_id = job.influencer.voice_id if job.influencer else None
        if voice_id and self.voice.configured:
            result.audio_url = self._narrate(project, result.script, voice_id, result)
        on_status(VideoStatusEnum.rendering)

        avatar_url = job.influencer.avatar_url if job.influencer else None
        reference_image = avatar_url or next(iter(job.product_image_urls), None)
        try:
            rendered = self.kling.generate_video(
                prompt=video_prompt,
                negative_prompt=master.negativePrompt,
                aspect_ratio="16:9" if platform == PlatformEnum.linkedin.value else "9:16",
                image_url=reference_image,
            )
        except _VENDOR_ERRORS as exc:
            logger.warning("Video rendering failed", extra={"video_id": job.video_id, "error": str(exc)})
            result.warnings.append(f"video: {exc}")
            result.duration = script.estimatedDuration
        else:
            result.duration = rendered.duration
            result.video_url = self._mirror(project, "videos", rendered.video_url, "video/mp4", "mp4") or rendered.video_url

        result.thumbnail_url = self.images.generate_thumbnail(
            script=result.script or result.title or analysis.name,
            platform=platform,
            visual_dna=constitution.visualDna,
            image_prompt=master.imagePrompt,
        )
        return result

    def _narrate(self, project: Project, text: str, voice_id: str, result: VideoResult) -> Optional[str]:
        try:
            audio = self.voice.text_to_speech(text, voice_id)
        except _VENDOR_ERRORS as exc:
            logger.warning("Narration failed", extra={"project_id": str(project.id), "error": str(exc)})
            result.warnings.append(f"audio: {exc}")
            return None
        if self.storage is None:
            logger.info("Narration generated but media storage is not configured; discarding audio")
            return None
        try:
            return self.storage.store(
                project_id=str(project.id), kind="audio", data=audio, content_type="audio/mpeg", ext="mp3"
            )
        except _STORAGE_ERRORS as exc:
            logger.warning("Narration upload failed", extra={"project_id": str(project.id), "error": str(exc)})
            result.warnings.append(f"audio: {exc}")
            return None

    def _mirror(self, project: Project, kind: str, source_url: str, content_type: str, ext: str) -> Optional[str]:
        if self.storage is None or not source_url:
            return None
        try:
            return self.storage.mirror_url(
                project_id=str(project.id), kind=kind, source_url=source_url, content_type=content_type, ext=ext
            )
        except _STORAGE_ERRORS as exc:
            logger.warning("Media mirror failed", extra={"kind": kind, "error": str(exc)})
            return None

    # Research, copy and images

    def analyze_competitors(self, project: Project) -> CompetitorAnalysis:
        return self.ai.analyze_competitors(project_analysis(project), project_constitution(project))

    def generate_ad_copy(
        self,
        project: Project,
        *,
        influencer_name: Optional[str] = None,
        platform: Optional[str] = None,
    ) -> AdCopyResult:
        return self.ai.generate_ad_copy(
            project_analysis(project),
            project_constitution(project),
            influencer_name=influencer_name,
            platform=platform,
        )

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
        enhanced = self.ai.enhance_image_prompt(
            prompt,
            brand_context=f"{project.name}: {project.description or project.value_proposition or ''}",
            brand_colors=brand_colors,
            image_type=ImageTypeEnum(image_type).value,
            platform=platform,
            visual_dna=constitution.visualDna,
            brand_persona=constitution.brandPersona,
        )
        generated = self.images.generate_marketing_image(
            prompt=enhanced, image_type=ImageTypeEnum(image_type).value, platform=platform, size=size
        )
        image_url = self._mirror(project, "images", generated.image_url, "image/png", "png") or generated.image_url
        return ImageResult(image_url=image_url, width=generated.width, height=generated.height, enhanced_prompt=enhanced)
