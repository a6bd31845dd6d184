import logging
from datetime import datetime, timezone

import httpx
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from marketing_factory.config import settings
from marketing_factory.db.deps import get_session
from marketing_factory.llm.client import LLMClient
from marketing_factory.services.vendor_http import VendorConfigError, VendorRequestError
from marketing_factory.services.voice import VoiceClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


def _database_status(session: Session) -> dict:
    try:
        session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        return {"status": "error", "message": str(exc)}
    return {"status": "connected"}


def _llm_status() -> dict:
    client = LLMClient()
    models = {
        "default": settings.LLM_DEFAULT_MODEL,
        "analysis": settings.LLM_ANALYSIS_MODEL,
        "creative": settings.LLM_CREATIVE_MODEL,
    }
    configured = {role: client.is_configured(model) for role, model in models.items()}
    return {"status": "configured" if all(configured.values()) else "not_configured", "models": configured}


def _voice_status() -> dict:
    client = VoiceClient()
    if not client.configured:
        return {"status": "error", "message": "ELEVENLABS_API_KEY not set"}
    try:
        voices = client.list_voices()
    except (VendorConfigError, VendorRequestError, httpx.HTTPError) as exc:
        logger.warning("Voice provider health check failed", extra={"error": str(exc)})
        return {"status": "error", "message": str(exc)[:200]}
    return {"status": "connected", "voiceCount": len(voices), "sampleVoices": [v.name for v in voices[:3]]}


@router.get("/health")
def service_health(session: Session = Depends(get_session)) -> dict:
    services = {
        "database": _database_status(session),
        "llm": _llm_status(),
        "voice": _voice_status(),
    }
    healthy = services["database"]["status"] == "connected"
    return {
        "status": "ok" if healthy else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": services,
    }
