from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from anthropic import Anthropic
from google.api_core import retry as api_retry
import google.generativeai as genai
from openai import OpenAI

from marketing_factory.config import settings

logger = logging.getLogger(__name__)


class LLMClientConfigError(Exception):
    pass


# Not JSON on purpose: callers that parse structured output fall back to their canned defaults.
STUB_OUTPUT = "Stub output generated locally without an LLM provider key."
DEFAULT_SYSTEM_PROMPT = "You are an expert marketing strategist and content creator."


@dataclass
class LLMGenerationParams:
    model: str
    max_tokens: Optional[int] = 2048
    temperature: float = 0.7
    system: Optional[str] = None


class LLMClient:
    """
    Provider-routing text generation.

    Model ids select the SDK: gpt-/o-series go to OpenAI, claude-* to Anthropic and
    everything else to Gemini. Router-style ids such as ``anthropic/claude-3-5-haiku``
    are routed by their vendor prefix. Transient failures are retried inside the SDK
    clients; a request that still fails is tried once more on the default model and
    the last provider error is raised. Without any provider key the client returns
    ``STUB_OUTPUT``.
    """

    def __init__(self, default_model: Optional[str] = None, max_retries: Optional[int] = None) -> None:
        self.default_model = default_model or settings.LLM_DEFAULT_MODEL
        self.max_retries = settings.LLM_REQUEST_RETRIES if max_retries is None else max_retries
        self._gemini_configured = False
        self._anthropic_client: Optional[Anthropic] = None
        self._openai_client: Optional[OpenAI] = None

    def generate_text(self, prompt: str, params: Optional[LLMGenerationParams] = None) -> str:
        requested = params.model if params and params.model else self.default_model
        models = [requested] if requested == self.default_model else [requested, self.default_model]
        last_error: Optional[Exception] = None
        for model in models:
            try:
                text = self._dispatch(prompt, model, params)
            except LLMClientConfigError as exc:
                logger.info("LLM provider not configured", extra={"model": model, "error": str(exc)})
                continue
            except Exception as exc:  # noqa: BLE001
                last_error = exc
                logger.warning("LLM call failed", extra={"model": model, "requested_model": requested}, exc_info=exc)
                continue
            if text:
                return text
            logger.warning("LLM returned an empty completion", extra={"model": model})
            return ""
        if last_error is not None:
            raise last_error
        return STUB_OUTPUT

    def is_configured(self, model: Optional[str] = None) -> bool:
        provider, _ = self._resolve_provider(model or self.default_model)
        key_name = {"openai": "OPENAI_API_KEY", "anthropic": "ANTHROPIC_API_KEY", "gemini": "GEMINI_API_KEY"}[provider]
        return bool(self._api_key(key_name))

    def _dispatch(self, prompt: str, model: str, params: Optional[LLMGenerationParams]) -> Optional[str]:
        provider, model_name = self._resolve_provider(model)
        if provider == "openai":
            return self._generate_with_openai(prompt, model_name, params)
        if provider == "anthropic":
            return self._generate_with_anthropic(prompt, model_name, params)
        return self._generate_with_gemini(prompt, model_name, params)

    def _resolve_provider(self, model: str) -> tuple[str, str]:
        if "/" in model and not model.startswith("models/"):
            vendor, _, name = model.partition("/")
            vendor = vendor.lower()
            if vendor == "openai":
                return "openai", name
            if vendor == "anthropic":
                return "anthropic", name
            if vendor == "google":
                return "gemini", name
            model = name
        if self._is_openai_model(model):
            return "openai", model
        if model.startswith("claude"):
            return "anthropic", model
        return "gemini", model

    def _is_openai_model(self, model: str) -> bool:
        lower = model.lower()
        prefixes = ("gpt-", "chatgpt-", "o1", "o3", "o4", "omni-")
        return any(lower.startswith(prefix) for prefix in prefixes)

    def _api_key(self, name: str) -> Optional[str]:
        return getattr(settings, name, None) or os.getenv(name)

    def _system_prompt(self, params: Optional[LLMGenerationParams]) -> str:
        return (params.system if params and params.system else None) or DEFAULT_SYSTEM_PROMPT

    def _generate_with_openai(self, prompt: str, model: str, params: Optional[LLMGenerationParams]) -> Optional[str]:
        api_key = self._api_key("OPENAI_API_KEY")
        if not api_key:
            raise LLMClientConfigError("OPENAI_API_KEY is not configured")

        if not self._openai_client:
            client_kwargs = {
                "api_key": api_key,
                "timeout": settings.LLM_REQUEST_TIMEOUT,
                "max_retries": self.max_retries,
            }
            base_url = os.getenv("OPENAI_BASE_URL")
            if base_url:
                client_kwargs["base_url"] = base_url
            self._openai_client = OpenAI(**client_kwargs)

        completion = self._openai_client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": self._system_prompt(params)},
                {"role": "user", "content": prompt},
            ],
            temperature=params.temperature if params else 0.7,
            max_tokens=params.max_tokens if params else None,
        )
        if completion and completion.choices:
            return getattr(completion.choices[0].message, "content", None)
        return None

    def _generate_with_gemini(self, prompt: str, model: str, params: Optional[LLMGenerationParams]) -> Optional[str]:
        api_key = self._api_key("GEMINI_API_KEY")
        if not api_key:
            raise LLMClientConfigError("GEMINI_API_KEY is not configured")

        if not self._gemini_configured:
            genai.configure(api_key=api_key)
            self._gemini_configured = True

        generation_config = {
            "temperature": params.temperature if params else 0.7,
        }
        if params and params.max_tokens:
            generation_config["max_output_tokens"] = params.max_tokens

        model_name = model if model.startswith("models/") else f"models/{model}"
        model_client = genai.GenerativeModel(
            model_name=model_name,
            generation_config=generation_config,
            system_instruction=self._system_prompt(params),
        )
        request_options: dict = {"timeout": settings.LLM_REQUEST_TIMEOUT}
        if self.max_retries:
            request_options["retry"] = api_retry.Retry(initial=1.0, maximum=10.0, timeout=settings.LLM_REQUEST_TIMEOUT)
        result = model_client.generate_content(prompt, request_options=request_options)
        text = None
        if result and getattr(result, "candidates", None):
            first = result.candidates[0]
            if first and first.content and getattr(first.content, "parts", None):
                parts = first.content.parts
                if parts and getattr(parts[0], "text", None):
                    text = parts[0].text
        if not text and hasattr(result, "text"):
            text = result.text
        return text

    def _generate_with_anthropic(self, prompt: str, model: str, params: Optional[LLMGenerationParams]) -> Optional[str]:
        api_key = self._api_key("ANTHROPIC_API_KEY")
        if not api_key:
            raise LLMClientConfigError("ANTHROPIC_API_KEY is not configured")

        if not self._anthropic_client:
            self._anthropic_client = Anthropic(api_key=api_key, max_retries=self.max_retries)

        response = self._anthropic_client.messages.create(
            model=model,
            max_tokens=params.max_tokens if params and params.max_tokens else 2048,
            temperature=params.temperature if params else 0.7,
            system=self._system_prompt(params),
            messages=[{"role": "user", "content": prompt}],
            timeout=settings.LLM_REQUEST_TIMEOUT,
        )
        text_parts = [content.text for content in response.content if getattr(content, "text", None)]
        return "".join(text_parts) if text_parts else None
