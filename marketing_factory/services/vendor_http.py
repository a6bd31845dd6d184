from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import httpx


class VendorConfigError(RuntimeError):
    pass


@dataclass
class VendorRequestError(RuntimeError):
    message: str
    vendor: str = "vendor"
    status_code: int | None = None
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        status = f" status={self.status_code}" if self.status_code is not None else ""
        return f"[{self.vendor}] {self.message}{status}".strip()


def request_json(
    method: str,
    url: str,
    *,
    vendor: str,
    headers: Optional[dict[str, str]] = None,
    json_payload: Optional[dict[str, Any]] = None,
    params: Optional[dict[str, Any]] = None,
    timeout: float = 60.0,
    transport: Optional[httpx.BaseTransport] = None,
) -> dict[str, Any]:
    try:
        with httpx.Client(timeout=timeout, transport=transport) as client:
            resp = client.request(method=method, url=url, json=json_payload, params=params, headers=headers)
    except httpx.HTTPError as exc:
        raise VendorRequestError(f"{method} {url} failed: {exc}", vendor=vendor) from exc

    if resp.status_code >= 400:
        raise_request_error(resp, vendor=vendor)

    try:
        data = resp.json()
    except ValueError as exc:
        raise VendorRequestError(
            f"Non-JSON payload for {method} {url}",
            vendor=vendor,
            status_code=resp.status_code,
        ) from exc

    if not isinstance(data, dict):
        raise VendorRequestError(
            f"Non-object JSON payload for {method} {url}",
            vendor=vendor,
            status_code=resp.status_code,
        )
    return data


def raise_request_error(resp: httpx.Response, *, vendor: str) -> None:
    details: dict[str, Any] | None = None
    message = f"Request failed ({resp.status_code})"

    try:
        payload = resp.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        error = payload.get("error") or payload.get("detail") or payload.get("message")
        if isinstance(error, dict):
            message = str(error.get("message") or message)
        elif isinstance(error, str) and error:
            message = error
        details = payload
    elif resp.text:
        details = {"body": resp.text[:500]}

    raise VendorRequestError(message=message, vendor=vendor, status_code=resp.status_code, details=details)
