from marketing_factory.config import settings
from marketing_factory.services.voice import Voice, VoiceClient


def _clear_vendor_keys(monkeypatch):
    for name in ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GEMINI_API_KEY", "ELEVENLABS_API_KEY"):
        monkeypatch.delenv(name, raising=False)
        monkeypatch.setattr(settings, name, None)


def test_liveness(anonymous_client):
    resp = anonymous_client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


def test_database_health(anonymous_client):
    resp = anonymous_client.get("/health/db")
    assert resp.status_code == 200
    assert resp.json() == {"db": "ok"}


def test_service_health_without_vendor_keys(anonymous_client, monkeypatch):
    _clear_vendor_keys(monkeypatch)
    resp = anonymous_client.get("/api/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["timestamp"]
    assert body["services"]["database"] == {"status": "connected"}
    assert body["services"]["llm"]["status"] == "not_configured"
    assert body["services"]["llm"]["models"] == {"default": False, "analysis": False, "creative": False}
    assert body["services"]["voice"] == {"status": "error", "message": "ELEVENLABS_API_KEY not set"}


def test_service_health_reports_voices(anonymous_client, monkeypatch):
    _clear_vendor_keys(monkeypatch)
    monkeypatch.setattr(settings, "ELEVENLABS_API_KEY", "el-key")
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "sk-ant-test")
    monkeypatch.setattr(
        VoiceClient,
        "list_voices",
        lambda self: [Voice(voice_id=f"v{i}", name=f"Voice {i}") for i in range(5)],
    )

    body = anonymous_client.get("/api/health").json()
    assert body["services"]["llm"]["status"] == "configured"
    assert body["services"]["voice"] == {
        "status": "connected",
        "voiceCount": 5,
        "sampleVoices": ["Voice 0", "Voice 1", "Voice 2"],
    }
