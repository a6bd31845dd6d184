import json
from urllib.parse import parse_qs

import httpx
import pytest

from marketing_factory.db.enums import SocialPlatformEnum
from marketing_factory.services.social_publisher import (
    PublishOptions,
    SocialCredentials,
    SocialPublisher,
    format_hashtags,
)

VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42"


def _options(**fields) -> PublishOptions:
    values = {
        "video_url": "https://cdn.test/videos/1.mp4",
        "title": "Meet Acme Notes",
        "description": "Never lose a thought again.",
        "hashtags": ["#AcmeNotes", "productivity"],
    }
    values.update(fields)
    return PublishOptions(**values)


def _publisher(handler, sleeps=None) -> SocialPublisher:
    return SocialPublisher(
        transport=httpx.MockTransport(handler),
        sleep=(sleeps.append if sleeps is not None else lambda _s: None),
        instagram_poll_interval_seconds=5.0,
        instagram_poll_attempts=3,
    )


def test_format_hashtags():
    assert format_hashtags(["#AcmeNotes", "productivity", " ", "##ai"]) == "#AcmeNotes #productivity #ai"


def test_tiktok_pulls_video_from_url_privately():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": {"publish_id": "pub-1"}})

    result = _publisher(handler).publish(SocialPlatformEnum.tiktok, SocialCredentials(access_token="tt"), _options())

    assert result.success is True
    assert (result.post_id, result.post_url) == ("pub-1", None)
    request = seen[0]
    assert request.url.path == "/v2/post/publish/video/init/"
    assert request.headers["Authorization"] == "Bearer tt"
    body = json.loads(request.content)
    assert body["post_info"]["privacy_level"] == "SELF_ONLY"
    assert body["post_info"]["description"] == "Never lose a thought again. #AcmeNotes #productivity"
    assert body["source_info"] == {"source": "PULL_FROM_URL", "video_url": "https://cdn.test/videos/1.mp4"}


def test_instagram_polls_container_until_finished():
    statuses = iter(["IN_PROGRESS", "FINISHED"])
    sleeps = []
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        if request.url.path == "/v19.0/acct-1/media":
            body = json.loads(request.content)
            assert body["media_type"] == "REELS"
            assert body["caption"] == "Meet Acme Notes\n\nNever lose a thought again.\n\n#AcmeNotes #productivity"
            return httpx.Response(200, json={"id": "container-1"})
        if request.url.path == "/v19.0/container-1":
            assert request.url.params["fields"] == "status_code"
            return httpx.Response(200, json={"status_code": next(statuses)})
        if request.url.path == "/v19.0/acct-1/media_publish":
            assert json.loads(request.content)["creation_id"] == "container-1"
            return httpx.Response(200, json={"id": "media-9"})
        return httpx.Response(404)

    result = _publisher(handler, sleeps).publish(
        SocialPlatformEnum.instagram, SocialCredentials(access_token="ig", account_id="acct-1"), _options()
    )

    assert result.success is True
    assert result.post_url == "https://www.instagram.com/reel/media-9/"
    assert sleeps == [5.0, 5.0]
    assert [path for _, path in seen].count("/v19.0/container-1") == 2


def test_instagram_processing_error_is_a_failed_result():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/media"):
            return httpx.Response(200, json={"id": "container-1"})
        return httpx.Response(200, json={"status_code": "ERROR"})

    result = _publisher(handler).publish(
        SocialPlatformEnum.instagram, SocialCredentials(access_token="ig", account_id="acct-1"), _options()
    )

    assert result.success is False
    assert "Video processing failed with status: ERROR" in result.error


def test_instagram_requires_account_id():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    result = _publisher(handler).publish(SocialPlatformEnum.instagram, SocialCredentials(access_token="ig"), _options())
    assert result.success is False
    assert result.error == "Instagram connection has no account id"


def test_linkedin_registers_uploads_and_posts():
    uploads = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v2/assets":
            assert request.url.params["action"] == "registerUpload"
            assert request.headers["X-Restli-Protocol-Version"] == "2.0.0"
            owner = json.loads(request.content)["registerUploadRequest"]["owner"]
            assert owner == "urn:li:person:person-1"
            return httpx.Response(
                200,
                json={
                    "value": {
                        "asset": "urn:li:digitalmediaAsset:abc",
                        "uploadMechanism": {
                            "com.linkedin.digitalmedia.uploading.MediaUploadHttpRequest": {
                                "uploadUrl": "https://upload.linkedin.test/put/abc"
                            }
                        },
                    }
                },
            )
        if request.url.host == "cdn.test":
            return httpx.Response(200, content=VIDEO_BYTES)
        if request.url.host == "upload.linkedin.test":
            uploads.append(request.content)
            return httpx.Response(201)
        if request.url.path == "/v2/ugcPosts":
            body = json.loads(request.content)
            media = body["specificContent"]["com.linkedin.ugc.ShareContent"]["media"][0]
            assert media["media"] == "urn:li:digitalmediaAsset:abc"
            return httpx.Response(201, json={"id": "urn:li:share:42"})
        return httpx.Response(404)

    result = _publisher(handler).publish(
        SocialPlatformEnum.linkedin, SocialCredentials(access_token="li", account_id="person-1"), _options()
    )

    assert result.success is True
    assert result.post_url == "https://www.linkedin.com/feed/update/urn:li:share:42/"
    assert uploads == [VIDEO_BYTES]


def test_twitter_uploads_media_then_tweets():
    commands = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "cdn.test":
            return httpx.Response(200, content=VIDEO_BYTES)
        if request.url.host == "upload.twitter.com":
            assert request.headers["Authorization"] == "Bearer tw"
            if b"APPEND" in request.content:
                commands.append("APPEND")
                return httpx.Response(204)
            form = parse_qs(request.content.decode())
            commands.append(form["command"][0])
            if form["command"][0] == "INIT":
                assert form["total_bytes"] == [str(len(VIDEO_BYTES))]
                return httpx.Response(202, json={"media_id_string": "777"})
            return httpx.Response(200, json={"media_id_string": "777"})
        if request.url.path == "/2/tweets":
            body = json.loads(request.content)
            assert body == {"text": "Meet Acme Notes\n\n#AcmeNotes #productivity", "media": {"media_ids": ["777"]}}
            return httpx.Response(201, json={"data": {"id": "999"}})
        return httpx.Response(404)

    result = _publisher(handler).publish(SocialPlatformEnum.twitter, SocialCredentials(access_token="tw"), _options())

    assert result.success is True
    assert result.post_url == "https://twitter.com/i/status/999"
    assert commands == ["INIT", "APPEND", "FINALIZE"]


@pytest.mark.parametrize("platform", [SocialPlatformEnum.tiktok, SocialPlatformEnum.twitter])
def test_vendor_rejection_is_a_failed_result(platform):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": {"message": "access token expired"}})

    result = _publisher(handler).publish(platform, SocialCredentials(access_token="stale"), _options())

    assert result.success is False
    assert result.platform == platform
    assert "access token expired" in result.error
    assert "status=401" in result.error
