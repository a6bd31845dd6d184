from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote, urljoin

import httpx
from bs4 import BeautifulSoup

from marketing_factory.config import settings
from marketing_factory.services.vendor_http import VendorRequestError

logger = logging.getLogger(__name__)

SCRAPER_USER_AGENT = "Mozilla/5.0 (compatible; AIMarketingFactory/1.0)"
_MAX_CONTENT_CHARS = 3000
_SCRAPE_TIMEOUT_SECONDS = 15
_CAPTURE_TIMEOUT_SECONDS = 60


@dataclass
class WebsiteInfo:
    title: str = ""
    description: str = ""
    content: str = ""
    favicon: str = ""


def normalize_url(url: str) -> str:
    cleaned = (url or "").strip()
    if cleaned and not cleaned.lower().startswith(("http://", "https://")):
        cleaned = f"https://{cleaned}"
    return cleaned


def screenshotone_url(url: str) -> str:
    return (
        "https://api.screenshotone.com/take"
        f"?url={quote(url, safe='')}&viewport_width=1440&viewport_height=900&format=png&full_page=false&delay=3"
    )


def thumio_url(url: str) -> str:
    return f"https://image.thum.io/get/width/1440/crop/900/{url}"


def capture_website(url: str, *, transport: Optional[httpx.BaseTransport] = None) -> bytes:
    """PNG of the first viewport; falls back to thum.io when the primary service refuses."""
    headers = {}
    if settings.SCREENSHOTONE_API_KEY:
        headers["Authorization"] = f"Bearer {settings.SCREENSHOTONE_API_KEY}"
    with httpx.Client(timeout=_CAPTURE_TIMEOUT_SECONDS, follow_redirects=True, transport=transport) as client:
        try:
            resp = client.get(screenshotone_url(url), headers=headers)
            if resp.status_code < 400 and resp.content:
                return resp.content
            logger.info("Primary screenshot capture failed; trying fallback", extra={"status": resp.status_code})
        except httpx.HTTPError as exc:
            logger.info("Primary screenshot capture errored; trying fallback", extra={"error": str(exc)})

        try:
            fallback = client.get(thumio_url(url))
        except httpx.HTTPError as exc:
            raise VendorRequestError(f"Screenshot capture failed: {exc}", vendor="screenshot") from exc
    if fallback.status_code >= 400 or not fallback.content:
        raise VendorRequestError("Screenshot capture failed", vendor="screenshot", status_code=fallback.status_code)
    return fallback.content


def scrape_website_info(url: str, *, transport: Optional[httpx.BaseTransport] = None) -> WebsiteInfo:
    try:
        with httpx.Client(timeout=_SCRAPE_TIMEOUT_SECONDS, follow_redirects=True, transport=transport) as client:
            resp = client.get(url, headers={"User-Agent": SCRAPER_USER_AGENT})
        resp.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("Website scrape failed", extra={"url": url, "error": str(exc)})
        return WebsiteInfo()

    soup = BeautifulSoup(resp.text, "html.parser")

    title = soup.title.get_text(strip=True) if soup.title else ""

    description = ""
    meta_desc = soup.find("meta", attrs={"name": "description"})
    if meta_desc and meta_desc.get("content"):
        description = meta_desc["content"].strip()

    favicon = ""
    for link in soup.find_all("link", href=True):
        rel = " ".join(link.get("rel") or []).lower()
        if rel in ("icon", "shortcut icon"):
            favicon = urljoin(url, link["href"])
            break

    body = soup.body or soup
    for tag in body.find_all(["script", "style", "noscript"]):
        tag.decompose()
    content = " ".join(body.get_text(separator=" ").split())[:_MAX_CONTENT_CHARS]

    return WebsiteInfo(title=title, description=description, content=content, favicon=favicon)
