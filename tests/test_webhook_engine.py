import json
from uuid import uuid4

import httpx
import pytest

from marketing_factory.db.enums import ImageTypeEnum, PlatformEnum, VideoStatusEnum
from marketing_factory.db.models import AIInfluencer, Project
from marketing_factory.services.vendor_http import VendorConfigError, VendorRequestError
from marketing_factory.services.webhooks import WorkflowWebhookClient
from marketing_factory.workflows.types import VideoJob
from marketing_factory.workflows.webhook_engine import WebhookMarketingEngine


def _project(**fields) -> Project:
    values = {
        "id": uuid4(),
        "user_id": "test-user",
        "url": "https://acme.test",
        "name": "Acme Notes",
        "description": "AI notes",
        "value_proposition": "Never lose a thought",
        "target_audience": {},
        "competitors": ["Notion"],
        "marketing_constitution": {"visualDna": "bright, airy"},
    }
    values.update(fields)
    return Project(**values)


def _engine(responses: dict):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        name = request.url.path.rsplit("/", 1)[-1]
        seen.append((request.url.path, json.loads(request.content)))
        return httpx.Response(200, json=responses.get(name, {}))

    client = WorkflowWebhookClient(base_url="https://hooks.test/", transport=httpx.MockTransport(handler))
    return WebhookMarketingEngine(client), seen


def test_client_requires_base_url(monkeypatch):
    monkeypatch.setattr("marketing_factory.services.webhooks.settings.WORKFLOW_WEBHOOK_BASE_URL", None)
    with pytest.raises(VendorConfigError):
        WorkflowWebhookClient()


def test_client_rejects_unknown_webhook():
    client = WorkflowWebhookClient(base_url="https://hooks.test")
    assert client.endpoint("ad_copy") == "https://hooks.test/webhook/ad-copy"
    with pytest.raises(ValueError):
        client.endpoint("publish")


def test_onboard_normalizes_url_and_parses_results():
    engine, seen = _engine(
        {
            "onboard": {
                "analysis": {"name": "Acme Notes", "competitors": ["Notion"]},
                "constitution": {"brandVoice": "Playful"},
                "screenshots": ["https://cdn.test/shot.png", None],
            }
        }
    )
    result = engine.onboard("acme.test", user_id="u-1", language="de")

    assert seen[0][0] == "/webhook/onboard"
    assert seen[0][1] == {"url": "https://acme.test", "userId": "u-1", "language": "de"}
    assert result.url == "https://acme.test"
    assert result.analysis.name == "Acme Notes"
    assert result.constitution.brandVoice == "Playful"
    assert result.screenshots == ["https://cdn.test/shot.png"]


def test_draft_influencer_uses_placeholder_avatar():
    engine, seen = _engine({"create-influencer": {"influencer": {"name": "Ada Lumen", "voiceId": "v-1"}}})
    draft = engine.draft_influencer(_project(), gender="male")

    assert seen[0][1]["gender"] == "male"
    assert draft.profile.name == "Ada Lumen"
    assert draft.profile.visualProfile.gender == "male"
    assert draft.avatar_url.startswith("https://ui-avatars.com/api/?name=Ada+Lumen")
    assert draft.voice_id == "v-1"
    assert draft.voice_name == "Kling AI Native"


def test_generate_video_reports_progress_and_maps_response():
    engine, seen = _engine(
        {
            "generate-video": {
                "video": {
                    "videoUrl": "https://cdn.test/v.mp4",
                    "script": "Hello there",
                    "hashtags": ["#acme"],
                    "duration": 12.0,
                    "themeTag": "desk-setup",
                    "audioMoodTags": ["upbeat"],
                }
            }
        }
    )
    project = _project()
    influencer = AIInfluencer(id=uuid4(), project_id=project.id, name="Ada Lumen", avatar_url="https://a", voice_id="v-1")
    statuses = []
    job = VideoJob(
        project=project,
        video_id="video-1",
        platform=PlatformEnum.linkedin,
        prompt="Make it fun",
        title="Acme Notes - linkedin Video",
        influencer=influencer,
        previous_themes=["coffee-shop"],
    )

    result = engine.generate_video(job, on_status=statuses.append)

    assert statuses == [VideoStatusEnum.voicing, VideoStatusEnum.rendering]
    payload = seen[0][1]
    assert payload["platform"] == "linkedin"
    assert payload["influencerName"] == "Ada Lumen"
    assert payload["avatarUrl"] == "https://a"
    assert payload["previousThemes"] == ["coffee-shop"]
    assert result.video_url == "https://cdn.test/v.mp4"
    assert result.title == "Acme Notes - linkedin Video"
    assert result.duration == 12
    assert result.theme_tag == "desk-setup"
    assert result.audio_mood_tags == ["upbeat"]


def test_competitor_analysis_without_competitors_skips_webhook():
    engine, seen = _engine({})
    result = engine.analyze_competitors(_project(competitors=[]))
    assert seen == []
    assert result.marketPosition == "No competitor information found. Re-analyze the project."


def test_ad_copy_unwraps_data():
    engine, seen = _engine(
        {
            "ad-copy": {
                "data": {
                    "variations": [
                        {"id": 1, "approach": "Urgency", "headline": "Now", "body": "Go", "cta": "Buy"}
                    ]
                }
            }
        }
    )
    result = engine.generate_ad_copy(_project(), influencer_name="Ada Lumen", platform="Instagram")
    assert seen[0][1]["influencerName"] == "Ada Lumen"
    assert [variation.approach for variation in result.variations] == ["Urgency"]


def test_generate_image_sends_brand_context():
    engine, seen = _engine({"generate-image": {"imageUrl": "https://cdn.test/i.png", "width": 1200, "height": 627}})
    result = engine.generate_image(
        _project(), prompt="Desk", image_type=ImageTypeEnum.banner, platform="linkedin", brand_colors=["#111111"]
    )
    payload = seen[0][1]
    assert payload["imageType"] == "banner"
    assert payload["brandContext"] == "Acme Notes: AI notes"
    assert payload["visualDna"] == "bright, airy"
    assert (result.width, result.height) == (1200, 627)
    assert result.enhanced_prompt == "Desk"


def test_generate_image_without_url_raises():
    engine, _ = _engine({"generate-image": {"image": {"width": 10}}})
    with pytest.raises(VendorRequestError):
        engine.generate_image(
            _project(), prompt="Desk", image_type=ImageTypeEnum.custom, platform="tiktok", brand_colors=[]
        )


def test_webhook_http_error_propagates():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, json={"error": "upstream down"})

    client = WorkflowWebhookClient(base_url="https://hooks.test", transport=httpx.MockTransport(handler))
    with pytest.raises(VendorRequestError) as excinfo:
        WebhookMarketingEngine(client).generate_ad_copy(_project())
    assert excinfo.value.status_code == 502
    assert excinfo.value.message == "upstream down"
