import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from marketing_factory.auth.dependencies import AuthContext, get_current_user
from marketing_factory.config import settings
from marketing_factory.db.deps import get_session
from marketing_factory.db.enums import AnalysisStatusEnum, AssetTypeEnum, InfluencerStatusEnum, VideoStatusEnum
from marketing_factory.db.models import AIInfluencer
from marketing_factory.db.repositories.assets import AssetsRepository
from marketing_factory.db.repositories.influencers import InfluencersRepository
from marketing_factory.db.repositories.projects import ProjectsRepository
from marketing_factory.db.repositories.videos import VideosRepository
from marketing_factory.routers.common import get_owned_project, row_to_dict
from marketing_factory.schemas.workflows import (
    AdCopyRequest,
    CompetitorAnalysisRequest,
    CreateInfluencerRequest,
    GenerateVideoRequest,
    OnboardRequest,
)
from marketing_factory.workflows.deps import get_marketing_engine
from marketing_factory.workflows.errors import WorkflowFailure
from marketing_factory.workflows.types import MarketingEngine, VideoJob
from marketing_factory.workflows.video_states import advance, apply_transition, sweep_stale_videos

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/workflows", tags=["workflows"])


@router.post("/onboard")
def onboard(
    payload: OnboardRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    workflows: MarketingEngine = Depends(get_marketing_engine),
) -> dict:
    try:
        result = workflows.onboard(payload.url, user_id=auth.user_id, language=payload.language)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Onboarding failed", extra={"url": payload.url, "user_id": auth.user_id})
        raise WorkflowFailure("Onboarding failed", str(exc)) from exc

    analysis = result.analysis
    captured_at = int(time.time() * 1000)
    try:
        project = ProjectsRepository(session).create(
            user_id=auth.user_id,
            url=result.url,
            name=analysis.name,
            commit=False,
            description=analysis.description,
            value_proposition=analysis.valueProposition,
            target_audience=analysis.targetAudience.model_dump(),
            competitors=analysis.competitors,
            marketing_constitution=result.constitution.model_dump(),
            analysis_status=AnalysisStatusEnum.completed,
        )
        AssetsRepository(session).create_many(
            project.id,
            AssetTypeEnum.screenshot,
            [(f"screenshot-{captured_at + index}.png", url) for index, url in enumerate(result.screenshots)],
            commit=False,
        )
        session.commit()
        session.refresh(project)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Failed to persist onboarded project", extra={"url": result.url})
        raise WorkflowFailure("Onboarding failed", str(exc)) from exc

    logger.info("Project onboarded", extra={"project_id": str(project.id), "user_id": auth.user_id})
    return {
        "success": True,
        "project": row_to_dict(project),
        "analysis": analysis.model_dump(),
        "constitution": result.constitution.model_dump(),
    }


@router.post("/create-influencer")
def create_influencer(
    payload: CreateInfluencerRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    workflows: MarketingEngine = Depends(get_marketing_engine),
) -> dict:
    project = get_owned_project(session, auth, payload.projectId)
    try:
        draft = workflows.draft_influencer(project, gender=payload.gender)
        influencer = InfluencersRepository(session).upsert_for_project(
            project.id,
            name=draft.profile.name,
            gender=payload.gender,
            personality=draft.profile.personality,
            backstory=draft.profile.backstory,
            appearance_description=draft.profile.appearanceDescription,
            visual_profile=draft.profile.visualProfile.model_dump(),
            avatar_url=draft.avatar_url,
            voice_id=draft.voice_id,
            voice_name=draft.voice_name,
            status=InfluencerStatusEnum.ready,
        )
    except Exception as exc:  # noqa: BLE001
        session.rollback()
        logger.exception("Influencer creation failed", extra={"project_id": str(project.id)})
        raise WorkflowFailure("Influencer creation failed", str(exc)) from exc

    logger.info("Influencer upserted", extra={"project_id": str(project.id), "influencer_id": str(influencer.id)})
    return {"success": True, "influencer": {**row_to_dict(influencer), "avatarUrl": influencer.avatar_url}}


def _resolve_influencer(session: Session, project_id, influencer_id) -> Optional[AIInfluencer]:
    repo = InfluencersRepository(session)
    if influencer_id is None:
        return repo.get_for_project(project_id)
    influencer = repo.get(influencer_id)
    if not influencer or influencer.project_id != project_id:
        raise HTTPException(status_code=404, detail="Influencer not found")
    return influencer


@router.post("/generate-video")
def generate_video(
    payload: GenerateVideoRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    workflows: MarketingEngine = Depends(get_marketing_engine),
) -> dict:
    project = get_owned_project(session, auth, payload.projectId)
    sweep_stale_videos(session, older_than_seconds=settings.VIDEO_STALE_AFTER_SECONDS, project_id=project.id)

    influencer = _resolve_influencer(session, project.id, payload.influencerId)
    platform = payload.platform.value
    videos = VideosRepository(session)
    previous_themes = [
        video.video_metadata.get("themeTag")
        for video in videos.list_for_project(project.id)
        if (video.video_metadata or {}).get("themeTag")
    ]
    screenshots = [
        asset.file_path
        for asset in AssetsRepository(session).list(project.id)
        if asset.asset_type == AssetTypeEnum.screenshot
    ]

    video = videos.create(
        project.id,
        payload.platform,
        influencer_id=influencer.id if influencer else None,
        title=payload.title,
    )
    apply_transition(session, video, VideoStatusEnum.scripting)

    job = VideoJob(
        project=project,
        video_id=str(video.id),
        platform=payload.platform,
        prompt=payload.prompt or f'Create a {platform} marketing video for "{project.name}". {project.description or ""}',
        title=payload.title or f"{project.name} - {platform} Video",
        influencer=influencer,
        screenshots=screenshots,
        product_image_urls=payload.productImageUrls,
        previous_themes=previous_themes,
        language=payload.language,
    )

    try:
        result = workflows.generate_video(job, on_status=lambda status: apply_transition(session, video, status))
    except Exception as exc:  # noqa: BLE001
        session.rollback()
        logger.exception("Video generation failed", extra={"video_id": str(video.id), "project_id": str(project.id)})
        try:
            session.refresh(video)
            apply_transition(session, video, VideoStatusEnum.failed, error=str(exc))
        except SQLAlchemyError:
            session.rollback()
            logger.exception("Failed to mark video as failed", extra={"video_id": str(video.id)})
        raise WorkflowFailure("Video generation failed", str(exc)) from exc

    metadata = {"hashtags": result.hashtags, "hook": result.hook, "cta": result.cta}
    if result.theme_tag:
        metadata["themeTag"] = result.theme_tag
    if result.audio_mood_tags:
        metadata["audioMoodTags"] = result.audio_mood_tags
    if result.warnings:
        metadata["warnings"] = result.warnings

    video.title = result.title or job.title
    video.script = result.script
    video.video_url = result.video_url
    video.thumbnail_url = result.thumbnail_url
    video.audio_url = result.audio_url
    video.duration_seconds = result.duration or 60
    video.storyboard = result.storyboard
    video.video_metadata = {**(video.video_metadata or {}), **metadata}
    # Without a rendered file the row stays in rendering until a retry or the stale sweep.
    advance(video, VideoStatusEnum.ready if result.video_url else VideoStatusEnum.rendering)
    videos.save(video)

    return {"success": True, "video": {**row_to_dict(video), **result.to_response()}}


@router.post("/competitor-analysis")
def competitor_analysis(
    payload: CompetitorAnalysisRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    workflows: MarketingEngine = Depends(get_marketing_engine),
) -> dict:
    project = get_owned_project(session, auth, payload.projectId)
    try:
        analysis = workflows.analyze_competitors(project)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Competitor analysis failed", extra={"project_id": str(project.id)})
        raise WorkflowFailure("Failed to analyze competitors", str(exc)) from exc

    data = analysis.model_dump()
    try:
        ProjectsRepository(session).update(project, competitor_analysis=data)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Failed to save competitor analysis", extra={"project_id": str(project.id)})
        raise WorkflowFailure("Failed to save analysis", str(exc)) from exc
    return {"success": True, "data": data}


@router.post("/ad-copy")
def ad_copy(
    payload: AdCopyRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    workflows: MarketingEngine = Depends(get_marketing_engine),
) -> dict:
    project = get_owned_project(session, auth, payload.projectId)
    influencer = InfluencersRepository(session).get_for_project(project.id)
    try:
        result = workflows.generate_ad_copy(
            project,
            influencer_name=influencer.name if influencer else None,
            platform=payload.platform,
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception("Ad copy generation failed", extra={"project_id": str(project.id)})
        raise WorkflowFailure("Failed to generate ad copy", str(exc)) from exc

    if payload.count:
        result = result.model_copy(update={"variations": result.variations[: payload.count]})
    data = result.model_dump()
    try:
        ProjectsRepository(session).update(project, ad_copy_variations=data)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Failed to save ad copy", extra={"project_id": str(project.id)})
        raise WorkflowFailure("Failed to save ad copy", str(exc)) from exc
    return {"success": True, "data": data}
