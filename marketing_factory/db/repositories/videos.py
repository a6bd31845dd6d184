from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select

from marketing_factory.db.enums import PlatformEnum, VideoStatusEnum
from marketing_factory.db.models import Video
from marketing_factory.db.repositories.base import Repository

IN_FLIGHT_STATUSES = (
    VideoStatusEnum.draft,
    VideoStatusEnum.scripting,
    VideoStatusEnum.voicing,
    VideoStatusEnum.rendering,
)


class VideosRepository(Repository):
    def get(self, video_id: UUID) -> Optional[Video]:
        return self.session.get(Video, video_id)

    def list_for_project(self, project_id: UUID) -> List[Video]:
        stmt = select(Video).where(Video.project_id == project_id).order_by(Video.created_at.desc())
        return list(self.session.scalars(stmt).all())

    def list_stale_in_flight(self, *, changed_before: datetime, project_id: Optional[UUID] = None) -> List[Video]:
        stmt = select(Video).where(
            Video.status.in_(IN_FLIGHT_STATUSES),
            Video.status_changed_at < changed_before,
        )
        if project_id is not None:
            stmt = stmt.where(Video.project_id == project_id)
        return list(self.session.scalars(stmt).all())

    def create(
        self,
        project_id: UUID,
        platform: PlatformEnum,
        influencer_id: Optional[UUID] = None,
        **fields,
    ) -> Video:
        video = Video(project_id=project_id, platform=platform, influencer_id=influencer_id, **fields)
        return self.save(video)
