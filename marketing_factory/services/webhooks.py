from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from marketing_factory.config import settings
from marketing_factory.services.vendor_http import VendorConfigError, request_json

logger = logging.getLogger(__name__)

WEBHOOK_ENDPOINTS = {
    "onboard": "onboard",
    "create_influencer": "create-influencer",
    "generate_video": "generate-video",
    "competitor_analysis": "competitor-analysis",
    "ad_copy": "ad-copy",
    "generate_image": "generate-image",
}


class WorkflowWebhookClient:
    """Posts workflow payloads to an external automation host at <base>/webhook/<name>."""

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        resolved = (base_url or settings.WORKFLOW_WEBHOOK_BASE_URL or "").strip()
        if not resolved:
            raise VendorConfigError("WORKFLOW_WEBHOOK_BASE_URL is required when WORKFLOW_MODE=webhook")
        self.base_url = resolved.rstrip("/")
        self.timeout_seconds = timeout_seconds or settings.WORKFLOW_WEBHOOK_TIMEOUT_SECONDS
        self._transport = transport

    def endpoint(self, name: str) -> str:
        try:
            path = WEBHOOK_ENDPOINTS[name]
        except KeyError as exc:
            raise ValueError(f"Unknown workflow webhook: {name}") from exc
        return f"{self.base_url}/webhook/{path}"

    def call(self, name: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = self.endpoint(name)
        logger.info("Calling workflow webhook", extra={"webhook": name, "url": url})
        return request_json(
            "POST",
            url,
            vendor="workflow-webhook",
            headers={"Content-Type": "application/json"},
            json_payload=payload,
            timeout=self.timeout_seconds,
            transport=self._transport,
        )
