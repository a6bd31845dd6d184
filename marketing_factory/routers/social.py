import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from marketing_factory.auth.dependencies import AuthContext, get_current_user
from marketing_factory.db.deps import get_session
from marketing_factory.db.enums import PublishStatusEnum, VideoStatusEnum
from marketing_factory.db.repositories.social import PublishHistoryRepository, SocialConnectionsRepository
from marketing_factory.db.repositories.videos import VideosRepository
from marketing_factory.routers.common import ensure_project_owner
from marketing_factory.schemas.workflows import PublishVideoRequest
from marketing_factory.services.social_publisher import PublishOptions, SocialCredentials, SocialPublisher
from marketing_factory.workflows.deps import get_social_publisher
from marketing_factory.workflows.errors import WorkflowFailure
from marketing_factory.workflows.video_states import transition

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/social", tags=["social"])

_PUBLISHABLE_STATUSES = (VideoStatusEnum.ready, VideoStatusEnum.published)


@router.post("/publish")
def publish_video(
    payload: PublishVideoRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    publisher: SocialPublisher = Depends(get_social_publisher),
) -> dict:
    video = VideosRepository(session).get(payload.videoId)
    if not video:
        raise HTTPException(status_code=404, detail="Video not found")
    ensure_project_owner(session, auth, video.project_id)
    if not video.video_url or VideoStatusEnum(video.status) not in _PUBLISHABLE_STATUSES:
        raise HTTPException(status_code=400, detail="Video is not ready to publish")

    platform = payload.platform
    connection = SocialConnectionsRepository(session).get_active(auth.user_id, platform)
    if not connection:
        raise HTTPException(
            status_code=400,
            detail=f"No active {platform.value} connection found. Please connect your account first.",
        )

    result = publisher.publish(
        platform,
        SocialCredentials(
            access_token=connection.access_token,
            refresh_token=connection.refresh_token,
            account_id=connection.account_id,
        ),
        PublishOptions(
            video_url=video.video_url,
            title=video.title or "",
            description=video.script or "",
            hashtags=list((video.video_metadata or {}).get("hashtags") or []),
            thumbnail_url=video.thumbnail_url,
        ),
    )

    db_error = None
    try:
        PublishHistoryRepository(session).record(
            video.id,
            user_id=auth.user_id,
            platform=platform,
            status=PublishStatusEnum.published if result.success else PublishStatusEnum.failed,
            post_id=result.post_id,
            post_url=result.post_url,
            error_message=result.error,
            commit=False,
        )
        if result.success:
            transition(video, VideoStatusEnum.published)
            session.add(video)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Failed to record publish attempt", extra={"video_id": str(video.id)})
        db_error = str(exc)

    if not result.success:
        raise WorkflowFailure("Publishing failed", result.error)

    response = {"success": True, "postId": result.post_id, "postUrl": result.post_url, "platform": platform.value}
    if db_error:
        response["dbError"] = db_error
    return response
