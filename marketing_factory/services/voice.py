from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from marketing_factory.config import settings
from marketing_factory.services.vendor_http import VendorConfigError, raise_request_error, request_json

logger = logging.getLogger(__name__)

DEFAULT_VOICE_SETTINGS = {
    "stability": 0.5,
    "similarity_boost": 0.75,
    "style": 0.5,
    "use_speaker_boost": True,
}

_TONE_LABELS = {
    "professional": ("professional", "narrative", "news"),
    "casual": ("conversational", "casual", "young"),
    "playful": ("animated", "young", "conversational"),
    "authoritative": ("professional", "strong", "narrative"),
}


@dataclass
class Voice:
    voice_id: str
    name: str
    category: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    preview_url: Optional[str] = None


class VoiceClient:
    """ElevenLabs voices and text-to-speech."""

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.api_key = (api_key if api_key is not None else settings.ELEVENLABS_API_KEY or "").strip()
        self.base_url = (base_url or settings.ELEVENLABS_BASE_URL).rstrip("/")
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self, accept: str = "application/json") -> dict[str, str]:
        if not self.api_key:
            raise VendorConfigError("ELEVENLABS_API_KEY is required")
        return {"Accept": accept, "Content-Type": "application/json", "xi-api-key": self.api_key}

    def list_voices(self) -> list[Voice]:
        data = request_json(
            "GET",
            f"{self.base_url}/voices",
            vendor="elevenlabs",
            headers=self._headers(),
            timeout=30,
            transport=self._transport,
        )
        voices: list[Voice] = []
        for entry in data.get("voices") or []:
            if not isinstance(entry, dict) or not entry.get("voice_id"):
                continue
            voices.append(
                Voice(
                    voice_id=entry["voice_id"],
                    name=entry.get("name") or entry["voice_id"],
                    category=entry.get("category") or "",
                    labels={k: str(v) for k, v in (entry.get("labels") or {}).items()},
                    preview_url=entry.get("preview_url"),
                )
            )
        return voices

    def recommended_voices(self, brand_tone: str, limit: int = 5) -> list[Voice]:
        preferred = _TONE_LABELS.get((brand_tone or "").strip().lower(), _TONE_LABELS["professional"])
        matches = []
        for voice in self.list_voices():
            labels = [label.lower() for label in voice.labels.values()]
            if any(pref in label for pref in preferred for label in labels):
                matches.append(voice)
        return matches[:limit]

    def text_to_speech(self, text: str, voice_id: str, voice_settings: Optional[dict[str, Any]] = None) -> bytes:
        payload = {
            "text": text,
            "model_id": settings.ELEVENLABS_MODEL_ID,
            "voice_settings": {**DEFAULT_VOICE_SETTINGS, **(voice_settings or {})},
        }
        with httpx.Client(timeout=120, transport=self._transport) as client:
            resp = client.post(
                f"{self.base_url}/text-to-speech/{voice_id}",
                json=payload,
                headers=self._headers(accept="audio/mpeg"),
            )
        if resp.status_code >= 400:
            raise_request_error(resp, vendor="elevenlabs")
        return resp.content
