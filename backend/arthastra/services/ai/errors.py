"""Error taxonomy for hosted LLM calls."""

from __future__ import annotations

import openai

_QUOTA_MARKERS = ("429", "quota")


class LLMError(Exception):
    """Base class for every failure talking to the completion provider."""


class LLMNotConfiguredError(LLMError):
    """No API key is configured."""


class QuotaExceededError(LLMError):
    """Rate-limit / quota rejection. Retryable on another key or model."""


class LLMProviderError(LLMError):
    """Hard failure reported by the provider."""


class EmptyModelResponse(LLMError):
    """The provider answered without any text."""


class MalformedModelOutput(LLMError):
    """Expected structured output could not be parsed from the model text."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


def is_quota_error(exc: BaseException) -> bool:
    if isinstance(exc, (QuotaExceededError, openai.RateLimitError)):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _QUOTA_MARKERS)


def is_retryable(exc: BaseException) -> bool:
    """Only quota errors justify moving to the next key/model."""
    return is_quota_error(exc)


def classify_error(exc: Exception) -> LLMError:
    """Map an SDK exception onto the taxonomy above."""
    if isinstance(exc, LLMError):
        return exc
    if is_quota_error(exc):
        return QuotaExceededError(str(exc))
    return LLMProviderError(str(exc))
