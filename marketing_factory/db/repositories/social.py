from typing import List, Optional
from uuid import UUID

from sqlalchemy import select

from marketing_factory.db.enums import PublishStatusEnum, SocialPlatformEnum
from marketing_factory.db.models import PublishHistory, SocialConnection
from marketing_factory.db.repositories.base import Repository


class SocialConnectionsRepository(Repository):
    def get_active(self, user_id: str, platform: SocialPlatformEnum) -> Optional[SocialConnection]:
        stmt = select(SocialConnection).where(
            SocialConnection.user_id == user_id,
            SocialConnection.platform == platform,
            SocialConnection.is_active.is_(True),
        )
        return self.session.scalars(stmt).first()

    def create(self, user_id: str, platform: SocialPlatformEnum, access_token: str, **fields) -> SocialConnection:
        connection = SocialConnection(user_id=user_id, platform=platform, access_token=access_token, **fields)
        return self.save(connection)


class PublishHistoryRepository(Repository):
    def list_for_video(self, video_id: UUID) -> List[PublishHistory]:
        stmt = select(PublishHistory).where(PublishHistory.video_id == video_id).order_by(PublishHistory.created_at)
        return list(self.session.scalars(stmt).all())

    def record(
        self,
        video_id: UUID,
        *,
        user_id: str,
        platform: SocialPlatformEnum,
        status: PublishStatusEnum,
        post_id: Optional[str] = None,
        post_url: Optional[str] = None,
        error_message: Optional[str] = None,
        commit: bool = True,
    ) -> PublishHistory:
        entry = PublishHistory(
            video_id=video_id,
            user_id=user_id,
            platform=platform,
            status=status,
            post_id=post_id,
            post_url=post_url,
            error_message=error_message,
        )
        if not commit:
            self.session.add(entry)
            self.session.flush()
            return entry
        return self.save(entry)
