import json

import httpx
import pytest
from jose import jwt

from marketing_factory.services.kling import TOKEN_TTL_SECONDS, KlingClient, build_kling_token
from marketing_factory.services.vendor_http import VendorConfigError, VendorRequestError


def _client(handler) -> KlingClient:
    return KlingClient(
        access_key="ak-test",
        secret_key="sk-test",
        base_url="https://kling.test",
        poll_interval_seconds=0,
        poll_timeout_seconds=30,
        transport=httpx.MockTransport(handler),
        sleep=lambda _seconds: None,
    )


def test_build_kling_token_claims():
    token = build_kling_token("ak-test", "sk-test", now=1_700_000_000)
    assert jwt.get_unverified_header(token)["alg"] == "HS256"
    claims = jwt.get_unverified_claims(token)
    assert claims["iss"] == "ak-test"
    assert claims["exp"] == 1_700_000_000 + TOKEN_TTL_SECONDS
    assert claims["nbf"] == 1_700_000_000 - 5


def test_generate_video_text_to_video():
    requests = []
    polls = iter(["processing", "succeed"])

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        assert request.headers["Authorization"].startswith("Bearer ")
        if request.method == "POST":
            return httpx.Response(200, json={"code": 0, "data": {"task_id": "task-1"}})
        status = next(polls)
        data = {"task_id": "task-1", "task_status": status}
        if status == "succeed":
            data["task_result"] = {"videos": [{"url": "https://kling.test/out.mp4", "duration": "10"}]}
        return httpx.Response(200, json={"code": 0, "data": data})

    result = _client(handler).generate_video(prompt="A founder at a desk", aspect_ratio="16:9")

    assert result.video_url == "https://kling.test/out.mp4"
    assert result.task_id == "task-1"
    assert result.duration == 10
    assert requests[0].url.path == "/v1/videos/text2video"
    body = json.loads(requests[0].content)
    assert body["aspect_ratio"] == "16:9"
    assert body["duration"] == "10"
    assert "image" not in body
    assert [r.url.path for r in requests[1:]] == ["/v1/videos/text2video/task-1"] * 2


def test_generate_video_image_to_video():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "POST":
            return httpx.Response(200, json={"data": {"task_id": "task-2"}})
        return httpx.Response(
            200,
            json={"data": {"task_status": "succeed", "task_result": {"videos": [{"url": "https://kling.test/i.mp4"}]}}},
        )

    result = _client(handler).generate_video(prompt="x", image_url="https://cdn.test/product.png")
    assert result.video_url == "https://kling.test/i.mp4"
    assert requests[0].url.path == "/v1/videos/image2video"
    assert json.loads(requests[0].content)["image"] == "https://cdn.test/product.png"
    assert requests[1].url.path == "/v1/videos/image2video/task-2"


def test_generate_video_failed_task():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(200, json={"data": {"task_id": "task-3"}})
        return httpx.Response(200, json={"data": {"task_status": "failed", "task_status_msg": "content policy"}})

    with pytest.raises(VendorRequestError) as excinfo:
        _client(handler).generate_video(prompt="x")
    assert "content policy" in str(excinfo.value)


def test_generate_video_http_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "invalid token"})

    with pytest.raises(VendorRequestError) as excinfo:
        _client(handler).generate_video(prompt="x")
    assert excinfo.value.status_code == 401
    assert excinfo.value.message == "invalid token"


def test_generate_video_without_task_id():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": {}})

    with pytest.raises(VendorRequestError):
        _client(handler).generate_video(prompt="x")


def test_unconfigured_client_raises_config_error():
    client = KlingClient(access_key="", secret_key="", base_url="https://kling.test")
    assert client.configured is False
    with pytest.raises(VendorConfigError):
        client.generate_video(prompt="x")
