from typing import Any, List, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from marketing_factory.db.enums import ImageTypeEnum, PlatformEnum, SocialPlatformEnum

SUPPORTED_LANGUAGES = ("en", "tr", "es", "de", "fr")
IMAGE_PLATFORMS = ("instagram", "tiktok", "linkedin", "youtube")


class _Request(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("language", mode="before", check_fields=False)
    @classmethod
    def _language(cls, value: Any) -> str:
        cleaned = str(value or "en").strip().lower()
        return cleaned if cleaned in SUPPORTED_LANGUAGES else "en"


class OnboardRequest(_Request):
    url: str = Field(min_length=1)
    language: str = "en"


class CreateInfluencerRequest(_Request):
    projectId: UUID
    gender: str = "female"

    @field_validator("gender", mode="before")
    @classmethod
    def _gender(cls, value: Any) -> str:
        cleaned = str(value or "female").strip().lower()
        if cleaned not in ("female", "male", "neutral"):
            raise ValueError("gender must be one of female, male, neutral")
        return cleaned


class GenerateVideoRequest(_Request):
    projectId: UUID
    platform: PlatformEnum
    prompt: Optional[str] = None
    title: Optional[str] = None
    influencerId: Optional[UUID] = None
    productImageUrls: List[str] = Field(default_factory=list)
    language: str = "en"

    @field_validator("platform", mode="before")
    @classmethod
    def _platform(cls, value: Any) -> Any:
        if value is None:
            return value
        cleaned = str(value).strip().lower()
        if cleaned not in PlatformEnum.__members__:
            allowed = ", ".join(PlatformEnum.__members__)
            raise ValueError(f"Invalid platform. Must be one of: {allowed}")
        return cleaned


class CompetitorAnalysisRequest(_Request):
    projectId: UUID


class AdCopyRequest(_Request):
    projectId: UUID
    platform: Optional[str] = None
    count: Optional[int] = Field(default=None, ge=1, le=10)


class GenerateImageRequest(_Request):
    projectId: UUID
    prompt: str = Field(min_length=1)
    imageType: ImageTypeEnum
    platform: str = Field(min_length=1)
    width: Optional[int] = Field(default=None, ge=64, le=2048)
    height: Optional[int] = Field(default=None, ge=64, le=2048)
    brandColors: Optional[List[str]] = None
    hasLogo: bool = Field(default=False, validation_alias=AliasChoices("hasLogo", "withBrandOverlay"))

    @field_validator("platform")
    @classmethod
    def _image_platform(cls, value: str) -> str:
        cleaned = value.lower()
        if cleaned not in IMAGE_PLATFORMS:
            raise ValueError(f"Invalid platform. Must be one of: {', '.join(IMAGE_PLATFORMS)}")
        return cleaned


class PublishVideoRequest(_Request):
    videoId: UUID
    platform: SocialPlatformEnum
