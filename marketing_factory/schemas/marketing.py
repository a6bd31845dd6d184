"""
Structured shapes for LLM output.

Every model carries defaults so a partial or malformed completion still validates
into something the handlers can persist; `coerce_model` never raises.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

DEFAULT_COLOR_PALETTE = ["#6366f1", "#8b5cf6", "#ec4899"]
DEFAULT_VISUAL_DNA = "photorealistic, 8k UHD, clean modern environment, soft studio lighting, professional vibes"


def _utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _string_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if item is not None and str(item).strip()]
    return [str(value)]


class _LenientModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TargetAudience(_LenientModel):
    demographics: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    painPoints: list[str] = Field(default_factory=list)

    @field_validator("demographics", "interests", "painPoints", mode="before")
    @classmethod
    def _as_list(cls, value: Any) -> list[str]:
        return _string_list(value)


class ProjectAnalysis(_LenientModel):
    name: str = "Unknown Project"
    description: str = ""
    valueProposition: str = ""
    targetAudience: TargetAudience = Field(default_factory=TargetAudience)
    competitors: list[str] = Field(default_factory=list)
    brandTone: str = "professional"
    keywords: list[str] = Field(default_factory=list)

    @field_validator("competitors", "keywords", mode="before")
    @classmethod
    def _as_list(cls, value: Any) -> list[str]:
        return _string_list(value)

    @field_validator("name", "brandTone", mode="before")
    @classmethod
    def _blank_to_default(cls, value: Any, info) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields[info.field_name].default
        return value


class MessagingFramework(_LenientModel):
    hook: str = "Did you know..."
    problem: str = "The challenge is..."
    solution: str = ""
    cta: str = "Try it now!"


class VisualGuidelines(_LenientModel):
    colorPalette: list[str] = Field(default_factory=lambda: list(DEFAULT_COLOR_PALETTE))
    mood: str = "Modern and dynamic"
    style: str = "Clean and professional"

    @field_validator("colorPalette", mode="before")
    @classmethod
    def _palette(cls, value: Any) -> list[str]:
        colors = _string_list(value)
        return colors or list(DEFAULT_COLOR_PALETTE)


class MarketingConstitution(_LenientModel):
    brandVoice: str = "Professional and engaging"
    contentPillars: list[str] = Field(default_factory=lambda: ["Innovation", "Value", "Trust"])
    messagingFramework: MessagingFramework = Field(default_factory=MessagingFramework)
    visualGuidelines: VisualGuidelines = Field(default_factory=VisualGuidelines)
    brandPersona: str = "A modern, professional and innovative character"
    visualDna: str = DEFAULT_VISUAL_DNA

    @field_validator("contentPillars", mode="before")
    @classmethod
    def _pillars(cls, value: Any) -> list[str]:
        return _string_list(value) or ["Innovation", "Value", "Trust"]

    @field_validator("brandVoice", "brandPersona", "visualDna", mode="before")
    @classmethod
    def _blank_to_default(cls, value: Any, info) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields[info.field_name].default
        return value


class VisualProfile(_LenientModel):
    gender: str = "neutral"
    ageRange: str = "25-35"
    style: str = "business casual"
    features: str = "Clean, modern look"

    @field_validator("gender", "ageRange", "style", "features", mode="before")
    @classmethod
    def _as_text(cls, value: Any, info) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields[info.field_name].default
        return str(value)


class InfluencerProfile(_LenientModel):
    name: str
    personality: str = ""
    backstory: str = ""
    appearanceDescription: str = ""
    visualProfile: VisualProfile = Field(default_factory=VisualProfile)

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("name must not be empty")
        return value.strip()


class VideoScript(_LenientModel):
    title: str
    hook: str = ""
    body: str = ""
    cta: str = ""
    fullScript: str = ""
    hashtags: list[str] = Field(default_factory=list)
    estimatedDuration: int = 10

    @field_validator("hashtags", mode="before")
    @classmethod
    def _tags(cls, value: Any) -> list[str]:
        return _string_list(value)


class HookVariation(_LenientModel):
    id: int
    text: str
    style: Literal["question", "shock", "curiosity", "pain-point", "social-proof"] = "curiosity"
    estimatedImpact: Literal["high", "medium", "low"] = "medium"

    @field_validator("style", "estimatedImpact", mode="before")
    @classmethod
    def _normalize_choice(cls, value: Any, info) -> Any:
        allowed = {
            "style": ("question", "shock", "curiosity", "pain-point", "social-proof"),
            "estimatedImpact": ("high", "medium", "low"),
        }[info.field_name]
        cleaned = str(value or "").strip().lower().replace(" ", "-").replace("_", "-")
        return cleaned if cleaned in allowed else cls.model_fields[info.field_name].default


class StoryboardScene(_LenientModel):
    sceneNumber: int
    startSecond: int
    endSecond: int
    narration: str = ""
    visualDescription: str = ""
    screenContent: Optional[str] = None
    cameraDirection: str = "Medium shot"
    emotion: str = "confident"
    lens: Optional[str] = None
    lighting: Optional[str] = None
    performanceDirection: Optional[str] = None
    ugcKeywords: list[str] = Field(default_factory=list)


class ProblemSolutionPair(_LenientModel):
    problem: str
    feature: str
    videoMoment: str = ""


class Storyboard(_LenientModel):
    hookVariations: list[HookVariation] = Field(default_factory=list)
    selectedHook: Optional[int] = None
    scenes: list[StoryboardScene] = Field(default_factory=list)
    totalDuration: int
    platform: str
    problemSolutionMap: list[ProblemSolutionPair] = Field(default_factory=list)
    createdAt: str = Field(default_factory=_utc_iso)


class MasterPrompt(_LenientModel):
    videoPrompt: str = (
        "A confident person speaking to camera in a modern setting, natural lighting, "
        "shallow depth of field, cinematic quality"
    )
    negativePrompt: str = "cartoon, 3d render, anime, blurry, distorted, low quality, glitch, extra fingers"
    videoScript: str = ""
    imagePrompt: str = "Professional person in modern setting, holding tablet, warm smile, magazine quality photo"
    audioMoodTags: list[str] = Field(default_factory=lambda: ["confident", "professional"])
    themeTag: str = ""


class CompetitorEntry(_LenientModel):
    name: str
    url: Optional[str] = None
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    opportunities: list[str] = Field(default_factory=list)
    threats: list[str] = Field(default_factory=list)
    ourAdvantage: str = ""
    estimatedPosition: Optional[str] = None


class CompetitorAnalysis(_LenientModel):
    competitors: list[CompetitorEntry] = Field(default_factory=list)
    marketPosition: str = ""
    marketOpportunities: list[str] = Field(default_factory=list)
    attackStrategies: list[str] = Field(default_factory=list)
    generatedAt: str = Field(default_factory=_utc_iso)


class AdCopyVariation(_LenientModel):
    id: int
    approach: str
    headline: str
    body: str
    cta: str
    platform: str = "Facebook"


class AdCopyResult(_LenientModel):
    variations: list[AdCopyVariation] = Field(default_factory=list)
    generatedAt: str = Field(default_factory=_utc_iso)


ModelT = TypeVar("ModelT", bound=BaseModel)


def coerce_model(model_cls: Type[ModelT], payload: Any, *, fallback: ModelT) -> ModelT:
    if isinstance(payload, model_cls):
        return payload
    if not isinstance(payload, dict):
        return fallback
    try:
        return model_cls.model_validate(payload)
    except ValidationError as exc:
        logger.warning(
            "Structured payload failed validation; using fallback",
            extra={"model": model_cls.__name__, "errors": exc.error_count()},
        )
        return fallback
