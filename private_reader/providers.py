from __future__ import annotations

import json
import logging
from typing import Protocol

import anthropic
import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from private_reader.config import Settings, get_settings
from private_reader.errors import EmptyResponseError, ProviderError

logger = logging.getLogger(__name__)


class LLMProvider(Protocol):
    name: str

    def generate(self, prompt: str, model: str) -> str: ...


class GeminiClient:
    """Google Gemini through the google-genai SDK (API key mode)."""

    name = "Gemini"

    def __init__(self, settings: Settings, client: genai.Client | None = None) -> None:
        self._settings = settings
        if client is None:
            api_key = settings.require("gemini_api_key", "GEMINI_API_KEY")
            client = genai.Client(
                api_key=api_key,
                http_options=types.HttpOptions(timeout=int(settings.llm_timeout * 1000)),
            )
        self.client = client

    def generate(self, prompt: str, model: str) -> str:
        try:
            resp = self.client.models.generate_content(
                model=model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    temperature=self._settings.llm_temperature,
                ),
            )
        except genai_errors.APIError as e:
            raise ProviderError(self.name, f"Gemini API error: {e.code} - {e.message}", status_code=gemini_status(e)) from e
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"Gemini API unreachable: {e}") from e

        text = (resp.text or "").strip()
        if not text:
            raise EmptyResponseError(self.name)
        return text


def gemini_status(e: genai_errors.APIError) -> int | None:
    message = f"{e.status or ''} {e.message or ''}"
    if "API_KEY_INVALID" in message or "API key not valid" in message:
        return 401
    if e.status == "RESOURCE_EXHAUSTED":
        return 429
    return e.code


class DeepSeekClient:
    """DeepSeek's OpenAI-compatible chat completions endpoint, called with httpx."""

    name = "DeepSeek"

    def __init__(self, settings: Settings, transport: httpx.BaseTransport | None = None) -> None:
        self._settings = settings
        self._api_key = settings.require("deepseek_api_key", "DEEPSEEK_API_KEY")
        self._transport = transport

    def generate(self, prompt: str, model: str) -> str:
        url = f"{self._settings.deepseek_base_url.rstrip('/')}/v1/chat/completions"
        payload = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "response_format": {"type": "json_object"},
            "temperature": self._settings.llm_temperature,
        }
        try:
            with httpx.Client(timeout=self._settings.llm_timeout, transport=self._transport) as client:
                r = client.post(
                    url,
                    headers={"Authorization": f"Bearer {self._api_key}", "Content-Type": "application/json"},
                    json=payload,
                )
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"DeepSeek API unreachable: {e}") from e

        if r.status_code >= 400:
            raise ProviderError(self.name, f"DeepSeek API error: {r.status_code} - {_error_body(r)}", status_code=r.status_code)

        try:
            data = r.json()
            text = data["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError):
            text = ""
        text = text.strip()
        if not text:
            raise EmptyResponseError(self.name)
        return text


class AnthropicClient:
    """Anthropic Claude through the messages API."""

    name = "Anthropic"

    def __init__(self, settings: Settings, client: anthropic.Anthropic | None = None) -> None:
        self._settings = settings
        if client is None:
            api_key = settings.require("anthropic_api_key", "ANTHROPIC_API_KEY")
            client = anthropic.Anthropic(api_key=api_key, timeout=settings.llm_timeout)
        self.client = client

    def generate(self, prompt: str, model: str) -> str:
        try:
            response = self.client.messages.create(
                model=model,
                max_tokens=self._settings.llm_max_tokens,
                temperature=self._settings.llm_temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIStatusError as e:
            raise ProviderError(self.name, f"Anthropic API error: {e.status_code} - {e.message}", status_code=e.status_code) from e
        except anthropic.APIConnectionError as e:
            raise ProviderError(self.name, f"Anthropic API unreachable: {e}") from e

        text = "".join(block.text for block in response.content if getattr(block, "type", None) == "text").strip()
        if not text:
            raise EmptyResponseError(self.name)
        return text


_PREFIXES: dict[str, type] = {
    "gemini-": GeminiClient,
    "deepseek-": DeepSeekClient,
    "claude-": AnthropicClient,
}


def provider_class_for(model: str) -> type:
    for prefix, cls in _PREFIXES.items():
        if model.startswith(prefix):
            return cls
    raise ValueError(f"No provider for model {model!r}")


def get_provider(model: str, settings: Settings | None = None) -> LLMProvider:
    """Instantiate the vendor client for `model`; raises ConfigurationError if its key is missing."""
    settings = settings or get_settings()
    return provider_class_for(model)(settings)


def generate(prompt: str, model: str, settings: Settings | None = None) -> str:
    provider = get_provider(model, settings)
    logger.info("Calling %s API with model %s (prompt length %d)", provider.name, model, len(prompt))
    return provider.generate(prompt, model)


def _error_body(r: httpx.Response) -> str:
    try:
        return json.dumps(r.json())
    except ValueError:
        return r.text[:500] or "Unknown error"
