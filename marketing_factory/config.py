import json
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load env values for components that read os.environ directly (e.g., the LLM SDKs).
_project_root = Path(__file__).resolve().parents[1]
load_dotenv(_project_root / ".env", override=False)


def _coerce_json(value: str):
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


class Settings(BaseSettings):
    DATABASE_URL: str

    # Hosted auth: JWKS for asymmetric tokens, shared secret for HS256 tokens.
    AUTH_JWKS_URL: str | None = None
    AUTH_JWT_SECRET: str | None = None
    AUTH_JWT_ISSUER: str | None = None
    AUTH_AUDIENCE: str = "authenticated"

    BACKEND_CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    OPENAI_API_KEY: str | None = None
    ANTHROPIC_API_KEY: str | None = None
    GEMINI_API_KEY: str | None = None
    LLM_DEFAULT_MODEL: str = "claude-3-5-haiku-latest"
    LLM_ANALYSIS_MODEL: str = "gpt-4o-mini"
    LLM_CREATIVE_MODEL: str = "claude-sonnet-4-20250514"
    LLM_REQUEST_TIMEOUT: int = 120
    LLM_REQUEST_RETRIES: int = 3

    FAL_KEY: str | None = None
    FAL_BASE_URL: str = "https://queue.fal.run"
    FAL_IMAGE_MODEL: str = "fal-ai/nano-banana-pro"

    ELEVENLABS_API_KEY: str | None = None
    ELEVENLABS_BASE_URL: str = "https://api.elevenlabs.io/v1"
    ELEVENLABS_MODEL_ID: str = "eleven_multilingual_v2"

    KLING_ACCESS_KEY: str | None = None
    KLING_SECRET_KEY: str | None = None
    KLING_BASE_URL: str = "https://api.klingai.com"
    KLING_MODEL_NAME: str = "kling-v1-6"
    KLING_POLL_INTERVAL_SECONDS: float = 8.0
    KLING_POLL_TIMEOUT_SECONDS: float = 600.0

    SCREENSHOTONE_API_KEY: str | None = None

    MEDIA_STORAGE_BUCKET: str | None = None
    MEDIA_STORAGE_ENDPOINT: str | None = None
    MEDIA_STORAGE_REGION: str | None = None
    MEDIA_STORAGE_ACCESS_KEY: str | None = None
    MEDIA_STORAGE_SECRET_KEY: str | None = None
    MEDIA_STORAGE_PREFIX: str | None = "project-assets"
    MEDIA_STORAGE_PUBLIC_BASE_URL: str | None = None
    MEDIA_STORAGE_PRESIGN_TTL_SECONDS: int = 604800
    MEDIA_STORAGE_FORCE_PATH_STYLE: bool = True
    MEDIA_STORAGE_USE_SSL: bool = True

    WORKFLOW_MODE: Literal["inline", "webhook"] = "inline"
    WORKFLOW_WEBHOOK_BASE_URL: str | None = None
    WORKFLOW_WEBHOOK_TIMEOUT_SECONDS: float = 300.0

    VIDEO_STALE_AFTER_SECONDS: int = 900

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("WORKFLOW_MODE", mode="before")
    @classmethod
    def normalize_mode(cls, value: str) -> str:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    model_config = SettingsConfigDict(env_file=".env", env_json_loads=_coerce_json, extra="ignore")


settings = Settings()
