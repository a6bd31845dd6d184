import json

import httpx
import pytest

from marketing_factory.services.fal_images import (
    FalImageClient,
    dimensions_to_aspect_ratio,
    image_dimensions,
    placeholder_avatar_url,
)
from marketing_factory.services.screenshots import normalize_url, scrape_website_info, thumio_url
from marketing_factory.services.vendor_http import VendorConfigError, VendorRequestError, request_json
from marketing_factory.services.voice import VoiceClient

PAGE = """
<html>
  <head>
    <title> Acme Notes </title>
    <meta name="description" content="Notes that write themselves">
    <link rel="icon" href="/favicon.ico">
    <style>body { color: red; }</style>
  </head>
  <body>
    <h1>Capture   everything</h1>
    <script>track()</script>
    <p>Built for students.</p>
  </body>
</html>
"""


def test_normalize_url():
    assert normalize_url(" acme.test ") == "https://acme.test"
    assert normalize_url("http://acme.test") == "http://acme.test"
    assert normalize_url("") == ""


def test_scrape_website_info_extracts_text():
    def handler(request: httpx.Request) -> httpx.Response:
        assert "AIMarketingFactory" in request.headers["User-Agent"]
        return httpx.Response(200, text=PAGE, headers={"Content-Type": "text/html"})

    info = scrape_website_info("https://acme.test/home", transport=httpx.MockTransport(handler))
    assert info.title == "Acme Notes"
    assert info.description == "Notes that write themselves"
    assert info.favicon == "https://acme.test/favicon.ico"
    assert info.content == "Capture everything Built for students."


def test_scrape_website_info_tolerates_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="down")

    info = scrape_website_info("https://acme.test", transport=httpx.MockTransport(handler))
    assert info.title == ""
    assert info.content == ""


def test_thumio_url():
    assert thumio_url("https://acme.test") == "https://image.thum.io/get/width/1440/crop/900/https://acme.test"


@pytest.mark.parametrize(
    ("image_type", "platform", "expected"),
    [
        ("static_post", "linkedin", (1200, 627)),
        ("story", "instagram", (1080, 1920)),
        ("banner", "youtube", (2048, 1440)),
        ("unknown", "tiktok", (1080, 1920)),
        ("thumbnail", "myspace", (1080, 1080)),
    ],
)
def test_image_dimensions(image_type, platform, expected):
    assert image_dimensions(image_type, platform) == expected


def test_dimensions_to_aspect_ratio():
    assert dimensions_to_aspect_ratio(1080, 1080) == "1:1"
    assert dimensions_to_aspect_ratio(1280, 720) == "16:9"
    assert dimensions_to_aspect_ratio(1080, 1920) == "9:16"
    assert dimensions_to_aspect_ratio(1584, 396) == "21:9"


def test_placeholder_avatar_url():
    assert placeholder_avatar_url("Ada Lumen").startswith("https://ui-avatars.com/api/?name=Ada+Lumen&")
    assert "name=AI+Influencer" in placeholder_avatar_url("  ")


def test_fal_generate_sends_key_header():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"images": [{"url": "https://fal.test/out.png"}]})

    client = FalImageClient(
        api_key="fal-key", base_url="https://fal.test", model="fal-ai/test", transport=httpx.MockTransport(handler)
    )
    result = client.generate_marketing_image(prompt="Desk", image_type="static_post", platform="linkedin")

    assert result.image_url == "https://fal.test/out.png"
    assert (result.width, result.height) == (1200, 627)
    assert seen[0].headers["Authorization"] == "Key fal-key"
    assert seen[0].url.path == "/fal-ai/test"
    body = json.loads(seen[0].content)
    assert body["aspect_ratio"] == "16:9"
    assert body["prompt"].startswith("Desk. Avoid: ")


def test_fal_avatar_falls_back_to_placeholder_without_key():
    client = FalImageClient(api_key="")
    url = client.generate_avatar(name="Ada Lumen", visual_profile={"gender": "female"}, appearance="")
    assert url == placeholder_avatar_url("Ada Lumen")


def test_fal_thumbnail_failure_returns_none():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"images": []})

    client = FalImageClient(api_key="fal-key", base_url="https://fal.test", transport=httpx.MockTransport(handler))
    assert client.generate_thumbnail(script="Hello", platform="tiktok") is None


def test_fal_thumbnail_prefers_image_prompt():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"images": [{"url": "https://fal.test/thumb.png"}]})

    client = FalImageClient(api_key="fal-key", base_url="https://fal.test", transport=httpx.MockTransport(handler))
    url = client.generate_thumbnail(
        script="ignored", platform="linkedin", visual_dna="teal accents", image_prompt="Creator holding a phone"
    )

    assert url == "https://fal.test/thumb.png"
    assert seen[0]["prompt"].startswith("Creator holding a phone, landscape video thumbnail, teal accents. Avoid: ")
    assert seen[0]["aspect_ratio"] == "16:9"


def test_voice_recommendations_match_tone_labels():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["xi-api-key"] == "el-key"
        return httpx.Response(
            200,
            json={
                "voices": [
                    {"voice_id": "v1", "name": "Rachel", "labels": {"use case": "narrative story"}},
                    {"voice_id": "v2", "name": "Bella", "labels": {"description": "young"}},
                    {"name": "no id"},
                ]
            },
        )

    client = VoiceClient(api_key="el-key", base_url="https://el.test", transport=httpx.MockTransport(handler))
    assert [voice.voice_id for voice in client.list_voices()] == ["v1", "v2"]
    assert [voice.name for voice in client.recommended_voices("Professional")] == ["Rachel"]
    assert [voice.name for voice in client.recommended_voices("playful")] == ["Bella"]


def test_voice_text_to_speech_returns_audio():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/text-to-speech/v1"
        assert request.headers["Accept"] == "audio/mpeg"
        return httpx.Response(200, content=b"ID3audio")

    client = VoiceClient(api_key="el-key", base_url="https://el.test", transport=httpx.MockTransport(handler))
    assert client.text_to_speech("Hello", "v1") == b"ID3audio"


def test_voice_requires_key():
    with pytest.raises(VendorConfigError):
        VoiceClient(api_key="").list_voices()


def test_request_json_rejects_non_object_payload():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[1, 2])

    with pytest.raises(VendorRequestError) as excinfo:
        request_json("GET", "https://vendor.test/x", vendor="test", transport=httpx.MockTransport(handler))
    assert "Non-object" in excinfo.value.message
