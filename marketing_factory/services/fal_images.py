from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote_plus

import httpx

from marketing_factory.config import settings
from marketing_factory.services.vendor_http import VendorConfigError, VendorRequestError, request_json

logger = logging.getLogger(__name__)

NEGATIVE_PROMPT = (
    "lowres, bad anatomy, text overlap, distorted UI, cartoon, messy background, unrealistic skin, "
    "blurry, watermark, logo, text, deformed, disfigured, extra limbs"
)

IMAGE_DIMENSIONS: dict[str, dict[str, tuple[int, int]]] = {
    "static_post": {
        "instagram": (1080, 1080),
        "tiktok": (1080, 1080),
        "linkedin": (1200, 627),
        "youtube": (1280, 720),
    },
    "carousel_slide": {
        "instagram": (1080, 1080),
        "linkedin": (1080, 1080),
        "tiktok": (1080, 1080),
        "youtube": (1280, 720),
    },
    "thumbnail": {
        "instagram": (1080, 1080),
        "tiktok": (1080, 1920),
        "linkedin": (1280, 720),
        "youtube": (1280, 720),
    },
    "story": {
        "instagram": (1080, 1920),
        "tiktok": (1080, 1920),
        "linkedin": (1080, 1920),
        "youtube": (1080, 1920),
    },
    "banner": {
        "instagram": (1080, 566),
        "tiktok": (1080, 566),
        "linkedin": (1584, 396),
        "youtube": (2560, 1440),
    },
    "custom": {
        "instagram": (1080, 1080),
        "tiktok": (1080, 1920),
        "linkedin": (1200, 627),
        "youtube": (1280, 720),
    },
}

_MAX_DIMENSION = 2048
_UNSAFE_PROMPT_CHARS = re.compile(r"[^a-zA-Z0-9 ,.\-]")

_HAIR_STYLES = ("blonde", "brunette", "black-haired", "auburn", "red-haired", "dark brown-haired")
_BACKGROUNDS = ("soft blue", "warm beige", "light gray", "pastel green", "white", "gradient purple")
_EXPRESSIONS = ("warm smile", "confident gaze", "friendly expression", "gentle smile")


def image_dimensions(image_type: str, platform: str) -> tuple[int, int]:
    by_platform = IMAGE_DIMENSIONS.get(image_type) or IMAGE_DIMENSIONS["custom"]
    width, height = by_platform.get(platform) or by_platform.get("instagram") or (1080, 1080)
    return min(width, _MAX_DIMENSION), min(height, _MAX_DIMENSION)


def dimensions_to_aspect_ratio(width: int, height: int) -> str:
    ratio = width / height
    if abs(ratio - 1) < 0.05:
        return "1:1"
    if ratio > 1:
        if ratio >= 2.2:
            return "21:9"
        if ratio >= 1.7:
            return "16:9"
        if ratio >= 1.4:
            return "3:2"
        if ratio >= 1.25:
            return "4:3"
        return "5:4"
    if ratio <= 0.6:
        return "9:16"
    if ratio <= 0.7:
        return "2:3"
    if ratio <= 0.8:
        return "3:4"
    return "4:5"


def placeholder_avatar_url(name: str) -> str:
    cleaned = (name or "").strip() or "AI Influencer"
    return f"https://ui-avatars.com/api/?name={quote_plus(cleaned)}&size=512&background=6366f1&color=fff"


def _sanitize(text: str, limit: int) -> str:
    return _UNSAFE_PROMPT_CHARS.sub("", text or "")[:limit]


@dataclass
class GeneratedImageResult:
    image_url: str
    width: int
    height: int
    prompt: str


class FalImageClient:
    """Text-to-image through the fal.ai queue endpoint."""

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.api_key = (api_key if api_key is not None else settings.FAL_KEY or "").strip()
        self.base_url = (base_url or settings.FAL_BASE_URL).rstrip("/")
        self.model = model or settings.FAL_IMAGE_MODEL
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def generate(self, prompt: str, *, aspect_ratio: str = "1:1") -> str:
        if not self.api_key:
            raise VendorConfigError("FAL_KEY is required")
        data = request_json(
            "POST",
            f"{self.base_url}/{self.model}",
            vendor="fal",
            headers={"Authorization": f"Key {self.api_key}", "Content-Type": "application/json"},
            json_payload={
                "prompt": f"{prompt}. Avoid: {NEGATIVE_PROMPT}",
                "aspect_ratio": aspect_ratio,
                "resolution": "1K",
                "num_images": 1,
                "safety_tolerance": "2",
            },
            transport=self._transport,
        )
        images = data.get("images") or []
        url = images[0].get("url") if images and isinstance(images[0], dict) else None
        if not url:
            raise VendorRequestError("Response contained no image URL", vendor="fal", details=data)
        return url

    def generate_avatar(self, *, name: str, visual_profile: dict, appearance: str, visual_dna: str = "") -> str:
        """
        Portrait headshot for an influencer persona.

        Falls back to a deterministic placeholder built from the persona name when the
        provider is unavailable, so callers always get a usable URL.
        """
        gender = "man" if (visual_profile.get("gender") or "").lower() == "male" else "woman"
        age = visual_profile.get("ageRange") or "28"
        detail = (
            _sanitize(visual_profile.get("features", ""), 80)
            or _sanitize(appearance, 100)
            or visual_profile.get("style")
            or "business casual"
        )
        dna = f", {visual_dna}" if visual_dna else ""
        prompt = (
            f"photorealistic portrait headshot of a {random.choice(_HAIR_STYLES)} {gender} aged {age}, {detail}, "
            f"{random.choice(_BACKGROUNDS)} background, studio lighting, {random.choice(_EXPRESSIONS)}, 8k uhd{dna}"
        )
        try:
            return self.generate(prompt, aspect_ratio="1:1")
        except (VendorConfigError, VendorRequestError) as exc:
            logger.warning("Avatar generation unavailable; using placeholder", extra={"name": name, "error": str(exc)})
            return placeholder_avatar_url(name)

    def generate_thumbnail(
        self,
        *,
        script: str,
        platform: str,
        visual_dna: str = "",
        image_prompt: Optional[str] = None,
    ) -> Optional[str]:
        orientation = "landscape" if platform == "linkedin" else "portrait"
        aspect_ratio = "16:9" if platform == "linkedin" else "9:16"
        dna = f", {visual_dna}" if visual_dna else ", vibrant colors, clean design"
        if image_prompt:
            prompt = f"{image_prompt}, {orientation} video thumbnail{dna}"
        else:
            topic = re.sub(r"[^a-zA-Z0-9 ]", "", (script or "")[:60])
            prompt = f"{orientation} video thumbnail, {topic}, professional marketing{dna}"
        try:
            return self.generate(prompt, aspect_ratio=aspect_ratio)
        except (VendorConfigError, VendorRequestError) as exc:
            logger.warning("Thumbnail generation failed", extra={"platform": platform, "error": str(exc)})
            return None

    def generate_marketing_image(
        self,
        *,
        prompt: str,
        image_type: str,
        platform: str,
        size: Optional[tuple[int, int]] = None,
    ) -> GeneratedImageResult:
        width, height = size or image_dimensions(image_type, platform)
        url = self.generate(prompt, aspect_ratio=dimensions_to_aspect_ratio(width, height))
        return GeneratedImageResult(image_url=url, width=width, height=height, prompt=prompt)
