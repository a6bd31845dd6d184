from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx
from jose import jwt

from marketing_factory.config import settings
from marketing_factory.services.vendor_http import VendorConfigError, VendorRequestError, request_json

logger = logging.getLogger(__name__)

TOKEN_TTL_SECONDS = 1800
_TOKEN_REFRESH_MARGIN_SECONDS = 60
_MAX_PROMPT_CHARS = 2500


@dataclass
class KlingVideoResult:
    video_url: str
    duration: int
    task_id: str


def build_kling_token(access_key: str, secret_key: str, *, now: Optional[int] = None) -> str:
    """HS256 JWT signed with the secret key; `iss` is the access key."""
    issued_at = int(now if now is not None else time.time())
    payload = {
        "iss": access_key,
        "exp": issued_at + TOKEN_TTL_SECONDS,
        "nbf": issued_at - 5,
        "iat": issued_at,
    }
    return jwt.encode(payload, secret_key, algorithm="HS256", headers={"typ": "JWT"})


class KlingClient:
    def __init__(
        self,
        *,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        base_url: Optional[str] = None,
        poll_interval_seconds: Optional[float] = None,
        poll_timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.access_key = (access_key if access_key is not None else settings.KLING_ACCESS_KEY or "").strip()
        self.secret_key = (secret_key if secret_key is not None else settings.KLING_SECRET_KEY or "").strip()
        self.base_url = (base_url or settings.KLING_BASE_URL).rstrip("/")
        self.poll_interval_seconds = (
            poll_interval_seconds if poll_interval_seconds is not None else settings.KLING_POLL_INTERVAL_SECONDS
        )
        self.poll_timeout_seconds = (
            poll_timeout_seconds if poll_timeout_seconds is not None else settings.KLING_POLL_TIMEOUT_SECONDS
        )
        self._transport = transport
        self._sleep = sleep
        self._token: Optional[str] = None
        self._token_expires_at = 0.0

    @property
    def configured(self) -> bool:
        return bool(self.access_key and self.secret_key)

    def _auth_token(self) -> str:
        if not self.configured:
            raise VendorConfigError("KLING_ACCESS_KEY and KLING_SECRET_KEY are required")
        now = time.time()
        if self._token and now < self._token_expires_at - _TOKEN_REFRESH_MARGIN_SECONDS:
            return self._token
        self._token = build_kling_token(self.access_key, self.secret_key, now=int(now))
        self._token_expires_at = now + TOKEN_TTL_SECONDS
        return self._token

    def _request(self, method: str, path: str, payload: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        return request_json(
            method,
            f"{self.base_url}{path}",
            vendor="kling",
            headers={"Authorization": f"Bearer {self._auth_token()}", "Content-Type": "application/json"},
            json_payload=payload,
            transport=self._transport,
        )

    def generate_video(
        self,
        *,
        prompt: str,
        negative_prompt: str = "",
        duration: int = 10,
        aspect_ratio: str = "9:16",
        image_url: Optional[str] = None,
        mode: str = "pro",
        cfg_scale: float = 0.5,
    ) -> KlingVideoResult:
        """
        Submit a text-to-video (or image-to-video when a reference frame is given) task and
        poll until it finishes.
        """
        kind = "image2video" if image_url else "text2video"
        body: dict[str, Any] = {
            "model_name": settings.KLING_MODEL_NAME,
            "prompt": prompt[:_MAX_PROMPT_CHARS],
            "negative_prompt": negative_prompt,
            "duration": str(duration),
            "aspect_ratio": aspect_ratio,
            "mode": mode,
            "cfg_scale": cfg_scale,
        }
        if image_url:
            body["image"] = image_url

        submitted = self._request("POST", f"/v1/videos/{kind}", body)
        task_id = (submitted.get("data") or {}).get("task_id")
        if not task_id:
            raise VendorRequestError("No task_id returned", vendor="kling", details=submitted)
        logger.info("Kling task submitted", extra={"task_id": task_id, "kind": kind, "aspect_ratio": aspect_ratio})

        started = time.monotonic()
        while (time.monotonic() - started) < self.poll_timeout_seconds:
            self._sleep(self.poll_interval_seconds)
            status_payload = self._request("GET", f"/v1/videos/{kind}/{task_id}")
            data = status_payload.get("data") or {}
            task_status = data.get("task_status")
            if task_status == "succeed":
                videos = (data.get("task_result") or {}).get("videos") or []
                video_url = videos[0].get("url") if videos else None
                if not video_url:
                    raise VendorRequestError("Task succeeded without a video URL", vendor="kling", details=data)
                return KlingVideoResult(video_url=video_url, duration=duration, task_id=task_id)
            if task_status == "failed":
                raise VendorRequestError(
                    f"Video generation failed: {data.get('task_status_msg') or 'Unknown error'}",
                    vendor="kling",
                    details=data,
                )

        raise VendorRequestError(f"Timed out after {int(self.poll_timeout_seconds)}s", vendor="kling")
