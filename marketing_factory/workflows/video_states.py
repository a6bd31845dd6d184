"""
Video lifecycle.

    draft -> scripting -> voicing -> rendering -> ready -> published
    draft | scripting | voicing | rendering -> failed

Every transition is stamped into ``status_history`` and ``status_changed_at`` so a
row stuck in an in-flight status can be found and failed by ``sweep_stale_videos``.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from marketing_factory.db.enums import VideoStatusEnum
from marketing_factory.db.models import Video, utcnow
from marketing_factory.db.repositories.videos import IN_FLIGHT_STATUSES, VideosRepository

logger = logging.getLogger(__name__)

_NEXT_STATUS = {
    VideoStatusEnum.draft: VideoStatusEnum.scripting,
    VideoStatusEnum.scripting: VideoStatusEnum.voicing,
    VideoStatusEnum.voicing: VideoStatusEnum.rendering,
    VideoStatusEnum.rendering: VideoStatusEnum.ready,
    VideoStatusEnum.ready: VideoStatusEnum.published,
}


class InvalidVideoTransition(ValueError):
    def __init__(self, current: VideoStatusEnum, target: VideoStatusEnum) -> None:
        super().__init__(f"Cannot move video from {current.value} to {target.value}")
        self.current = current
        self.target = target


def can_transition(current: VideoStatusEnum, target: VideoStatusEnum) -> bool:
    if current == target:
        return True
    if target == VideoStatusEnum.failed:
        return current in IN_FLIGHT_STATUSES
    return _NEXT_STATUS.get(current) == target


def transition(video: Video, target: VideoStatusEnum, *, error: Optional[str] = None) -> bool:
    """
    Move ``video`` to ``target`` in memory; the caller commits.

    Returns False when the video is already in ``target`` (nothing recorded).
    """
    current = VideoStatusEnum(video.status)
    if not can_transition(current, target):
        raise InvalidVideoTransition(current, target)
    if current == target and error is None:
        return False

    now = utcnow()
    video.status = target
    video.status_changed_at = now
    video.status_history = [*(video.status_history or []), {"status": target.value, "at": now.isoformat()}]
    if error is not None:
        video.video_metadata = {**(video.video_metadata or {}), "error": error}
    logger.info(
        "Video status changed",
        extra={"video_id": str(video.id), "from_status": current.value, "to_status": target.value},
    )
    return True


def advance(video: Video, target: VideoStatusEnum) -> None:
    """Walk forward through every intermediate status up to ``target``."""
    current = VideoStatusEnum(video.status)
    while current != target:
        following = _NEXT_STATUS.get(current)
        if following is None:
            raise InvalidVideoTransition(current, target)
        transition(video, following)
        current = following


def apply_transition(session: Session, video: Video, target: VideoStatusEnum, *, error: Optional[str] = None) -> Video:
    if transition(video, target, error=error):
        session.add(video)
        session.commit()
        session.refresh(video)
    return video


def sweep_stale_videos(
    session: Session,
    *,
    older_than_seconds: float,
    project_id: Optional[UUID] = None,
) -> int:
    """Fail in-flight videos whose last transition is older than the threshold."""
    cutoff = utcnow() - timedelta(seconds=older_than_seconds)
    stale = VideosRepository(session).list_stale_in_flight(changed_before=cutoff, project_id=project_id)
    for video in stale:
        transition(video, VideoStatusEnum.failed, error=f"Timed out in {VideoStatusEnum(video.status).value}")
        session.add(video)
    if stale:
        session.commit()
        logger.info(
            "Swept stale videos",
            extra={"count": len(stale), "project_id": str(project_id) if project_id else None},
        )
    return len(stale)
