from uuid import uuid4

import pytest
from sqlalchemy import select

from marketing_factory.db.enums import (
    PlatformEnum,
    PublishStatusEnum,
    SocialPlatformEnum,
    VideoStatusEnum,
)
from marketing_factory.db.models import PublishHistory, SocialConnection, Video
from marketing_factory.main import app
from marketing_factory.services.social_publisher import PublishResult
from marketing_factory.workflows.deps import get_social_publisher

TEST_USER_ID = "test-user"
OTHER_USER_ID = "someone-else"


class FakePublisher:
    def __init__(self) -> None:
        self.calls = []
        self.error = None

    def publish(self, platform, credentials, options):
        self.calls.append((platform, credentials, options))
        if self.error:
            return PublishResult(success=False, platform=platform, error=self.error)
        return PublishResult(
            success=True,
            platform=platform,
            post_id="post-1",
            post_url=f"https://{platform.value}.test/post-1",
        )


@pytest.fixture()
def publisher(override_dependencies):
    fake = FakePublisher()
    app.dependency_overrides[get_social_publisher] = lambda: fake
    return fake


def _video(db_session, project, **fields) -> Video:
    values = {
        "platform": PlatformEnum.tiktok,
        "status": VideoStatusEnum.ready,
        "title": "Example Co - tiktok Video",
        "script": "Hook. Body. CTA.",
        "video_url": "https://cdn.example.com/videos/1.mp4",
        "thumbnail_url": "https://cdn.example.com/thumbs/1.png",
        "video_metadata": {"hashtags": ["#ExampleCo", "marketing"]},
    }
    values.update(fields)
    video = Video(project_id=project.id, **values)
    db_session.add(video)
    db_session.commit()
    db_session.refresh(video)
    return video


def _connection(db_session, platform=SocialPlatformEnum.tiktok, user_id=TEST_USER_ID, **fields) -> SocialConnection:
    connection = SocialConnection(user_id=user_id, platform=platform, access_token="tok-123", **fields)
    db_session.add(connection)
    db_session.commit()
    return connection


def _history(db_session, video) -> list:
    stmt = select(PublishHistory).where(PublishHistory.video_id == video.id).order_by(PublishHistory.created_at)
    return list(db_session.scalars(stmt).all())


def _publish(client, video, platform="tiktok"):
    return client.post("/api/social/publish", json={"videoId": str(video.id), "platform": platform})


def test_publish_marks_video_published_and_records_history(api_client, publisher, db_session, make_project):
    video = _video(db_session, make_project())
    _connection(db_session, account_id="acct-1")

    resp = _publish(api_client, video)

    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "postId": "post-1",
        "postUrl": "https://tiktok.test/post-1",
        "platform": "tiktok",
    }
    platform, credentials, options = publisher.calls[0]
    assert platform == SocialPlatformEnum.tiktok
    assert (credentials.access_token, credentials.account_id) == ("tok-123", "acct-1")
    assert options.video_url == "https://cdn.example.com/videos/1.mp4"
    assert options.description == "Hook. Body. CTA."
    assert options.hashtags == ["#ExampleCo", "marketing"]

    db_session.refresh(video)
    assert video.status == VideoStatusEnum.published
    assert video.status_history[-1]["status"] == "published"
    history = _history(db_session, video)
    assert [(row.status, row.post_id, row.user_id) for row in history] == [
        (PublishStatusEnum.published, "post-1", TEST_USER_ID)
    ]


def test_publish_already_published_video_to_second_platform(api_client, publisher, db_session, make_project):
    video = _video(db_session, make_project(), status=VideoStatusEnum.published)
    _connection(db_session, platform=SocialPlatformEnum.linkedin, account_id="person-1")

    resp = _publish(api_client, video, platform="linkedin")

    assert resp.status_code == 200
    db_session.refresh(video)
    assert video.status == VideoStatusEnum.published
    assert [row.platform for row in _history(db_session, video)] == [SocialPlatformEnum.linkedin]


def test_publish_without_connection_returns_400(api_client, publisher, db_session, make_project):
    video = _video(db_session, make_project())

    resp = _publish(api_client, video, platform="instagram")

    assert resp.status_code == 400
    assert resp.json() == {
        "error": "No active instagram connection found. Please connect your account first."
    }
    assert publisher.calls == []
    assert _history(db_session, video) == []


def test_publish_ignores_inactive_and_foreign_connections(api_client, publisher, db_session, make_project):
    video = _video(db_session, make_project())
    _connection(db_session, is_active=False)
    _connection(db_session, user_id=OTHER_USER_ID)

    resp = _publish(api_client, video)

    assert resp.status_code == 400
    assert publisher.calls == []


def test_publish_unknown_video_returns_404(api_client, publisher):
    resp = api_client.post("/api/social/publish", json={"videoId": str(uuid4()), "platform": "tiktok"})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Video not found"}
    assert publisher.calls == []


def test_publish_other_users_video_returns_403(api_client, publisher, db_session, make_project):
    video = _video(db_session, make_project(user_id=OTHER_USER_ID))
    _connection(db_session)

    resp = _publish(api_client, video)

    assert resp.status_code == 403
    assert resp.json() == {"error": "Not authorized"}
    assert publisher.calls == []
    db_session.refresh(video)
    assert video.status == VideoStatusEnum.ready


@pytest.mark.parametrize(
    "fields",
    [
        {"status": VideoStatusEnum.rendering},
        {"status": VideoStatusEnum.failed},
        {"video_url": None},
    ],
)
def test_publish_requires_rendered_ready_video(api_client, publisher, db_session, make_project, fields):
    video = _video(db_session, make_project(), **fields)
    _connection(db_session)

    resp = _publish(api_client, video)

    assert resp.status_code == 400
    assert resp.json() == {"error": "Video is not ready to publish"}
    assert publisher.calls == []


def test_publish_failure_returns_500_and_records_attempt(api_client, publisher, db_session, make_project):
    publisher.error = "[tiktok] access token expired status=401"
    video = _video(db_session, make_project())
    _connection(db_session)

    resp = _publish(api_client, video)

    assert resp.status_code == 500
    assert resp.json() == {"error": "Publishing failed", "details": "[tiktok] access token expired status=401"}
    db_session.refresh(video)
    assert video.status == VideoStatusEnum.ready
    history = _history(db_session, video)
    assert [(row.status, row.error_message) for row in history] == [
        (PublishStatusEnum.failed, "[tiktok] access token expired status=401")
    ]


def test_publish_missing_fields_returns_400(api_client, publisher):
    resp = api_client.post("/api/social/publish", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing required fields: videoId, platform"}
    assert publisher.calls == []


def test_publish_rejects_unknown_platform(api_client, publisher, db_session, make_project):
    video = _video(db_session, make_project())
    resp = _publish(api_client, video, platform="myspace")
    assert resp.status_code == 400
    assert publisher.calls == []


def test_publish_requires_authentication(anonymous_client, publisher):
    resp = anonymous_client.post("/api/social/publish", json={"videoId": str(uuid4()), "platform": "tiktok"})
    assert resp.status_code == 401
    assert publisher.calls == []
