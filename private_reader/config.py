from __future__ import annotations

import os
from dataclasses import dataclass

from private_reader.errors import ConfigurationError


def _env(name: str, default: str | None = None) -> str | None:
    val = os.environ.get(name)
    if val is None or val.strip() == "":
        return default
    return val


def _env_bool(name: str, default: bool = False) -> bool:
    val = _env(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


DEFAULT_MODEL = "gemini-2.5-flash"


@dataclass(frozen=True)
class ModelOption:
    value: str
    label: str
    cost: float


AVAILABLE_MODELS: tuple[ModelOption, ...] = (
    ModelOption("gemini-2.5-flash", "Gemini Flash 2.5", 0.15),
    ModelOption("gemini-2.5-pro", "Gemini Pro 2.5", 0.60),
    ModelOption("deepseek-chat", "DeepSeek Chat V3.2", 0.15),
    ModelOption("deepseek-reasoner", "DeepSeek Reasoner V3.2", 0.20),
    ModelOption("claude-sonnet-4-5", "Claude Sonnet 4.5", 0.90),
    ModelOption("claude-haiku-4-5", "Claude Haiku 4.5", 0.30),
)


def is_known_model(model: str) -> bool:
    return any(m.value == model for m in AVAILABLE_MODELS)


@dataclass(frozen=True)
class Settings:
    """
    Snapshot of the environment for a single request.

    Credentials are optional here; callers use `require()` so that a missing
    key surfaces as a configuration error for the request that needs it.
    """

    access_password: str | None
    gemini_api_key: str | None
    deepseek_api_key: str | None
    deepseek_base_url: str
    anthropic_api_key: str | None
    tavily_api_key: str | None
    search_provider: str
    search_max_results: int
    search_include_raw_content: bool
    grounding_model: str
    llm_temperature: float
    llm_max_tokens: int
    llm_timeout: float
    search_timeout: float
    environment: str

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def require(self, field_name: str, env_name: str) -> str:
        value = getattr(self, field_name)
        if not value:
            raise ConfigurationError(env_name)
        return value


def get_settings() -> Settings:
    # Not cached: credentials may be added to the environment without a restart.
    return Settings(
        access_password=_env("ACCESS_PASSWORD"),
        gemini_api_key=_env("GEMINI_API_KEY") or _env("GOOGLE_API_KEY"),
        deepseek_api_key=_env("DEEPSEEK_API_KEY"),
        deepseek_base_url=_env("DEEPSEEK_BASE_URL", "https://api.deepseek.com") or "",
        anthropic_api_key=_env("ANTHROPIC_API_KEY"),
        tavily_api_key=_env("TAVILY_API_KEY"),
        search_provider=(_env("SEARCH_PROVIDER", "tavily") or "tavily").lower(),
        search_max_results=int(_env("SEARCH_MAX_RESULTS", "2") or "2"),
        search_include_raw_content=_env_bool("SEARCH_INCLUDE_RAW_CONTENT"),
        grounding_model=_env("GROUNDING_MODEL", DEFAULT_MODEL) or DEFAULT_MODEL,
        llm_temperature=float(_env("LLM_TEMPERATURE", "0.7") or "0.7"),
        llm_max_tokens=int(_env("LLM_MAX_TOKENS", "4096") or "4096"),
        llm_timeout=float(_env("LLM_TIMEOUT", "120") or "120"),
        search_timeout=float(_env("SEARCH_TIMEOUT", "30") or "30"),
        environment=_env("ENVIRONMENT", "development") or "development",
    )
