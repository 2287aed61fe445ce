"""Error taxonomy shared by the provider, normalizer and search layers."""

from __future__ import annotations

from enum import Enum


class ErrorCategory(str, Enum):
    CONFIGURATION = "configuration"
    PROVIDER = "provider"
    RESPONSE_SHAPE = "response_shape"


class ReaderError(RuntimeError):
    """Base exception for failures the HTTP layer knows how to report."""

    def __init__(self, message: str, *, category: ErrorCategory) -> None:
        super().__init__(message)
        self.message = message
        self.category = category


class ConfigurationError(ReaderError):
    """Raised when a required environment variable is missing."""

    def __init__(self, env_name: str) -> None:
        self.env_name = env_name
        super().__init__(f"Server configuration error: {env_name} not set", category=ErrorCategory.CONFIGURATION)


class ProviderError(ReaderError):
    """
    Raised when an LLM or search vendor call fails.

    `status_code` is the vendor's HTTP status, or None when the request never
    got a response (connection failure, timeout).
    """

    def __init__(self, provider: str, message: str, *, status_code: int | None = None) -> None:
        self.provider = provider
        self.status_code = status_code
        super().__init__(message, category=ErrorCategory.PROVIDER)


class EmptyResponseError(ProviderError):
    def __init__(self, provider: str) -> None:
        super().__init__(provider, f"No response received from {provider} API")


class ResponseParseError(ReaderError):
    """Raised when a vendor answer is not JSON or lacks required fields."""

    def __init__(self, message: str, *, raw: str) -> None:
        self.raw = raw
        super().__init__(message, category=ErrorCategory.RESPONSE_SHAPE)
