"""OpenAI chat-completion client with key rotation and model fallback.

One ``LLMClient`` is built per process (see ``arthastra.main``) and injected
into the agents. It owns the ``ApiKeyPool`` and lazily builds the SDK client
for the current key, rebuilding it whenever the key rotates.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from fastapi import Request
from openai import AsyncOpenAI

from arthastra.config import settings
from arthastra.services.ai.errors import (
    EmptyModelResponse,
    LLMNotConfiguredError,
    classify_error,
    is_retryable,
)
from arthastra.services.ai.key_pool import ApiKeyPool

logger = logging.getLogger(__name__)

Message = dict[str, str]


@dataclass
class RetryPolicy:
    """Ordered models to try; a retryable error rotates the key and advances."""
    models: list[str]
    retryable: Callable[[BaseException], bool] = is_retryable
    delay_seconds: float = 1.0


class LLMClient:
    def __init__(
        self,
        key_pool: ApiKeyPool,
        policy: RetryPolicy,
        client_factory: Callable[[str], Any] = lambda key: AsyncOpenAI(api_key=key),
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.key_pool = key_pool
        self.policy = policy
        self._client_factory = client_factory
        self._sleep = sleep
        self._client: Any = None

    @classmethod
    def from_settings(cls) -> "LLMClient":
        pool = ApiKeyPool(settings.openai_key_list, cooldown_seconds=settings.llm_key_cooldown_seconds)
        policy = RetryPolicy(
            models=settings.openai_model_list,
            delay_seconds=settings.llm_retry_delay_seconds,
        )
        return cls(pool, policy)

    @property
    def configured(self) -> bool:
        return len(self.key_pool) > 0

    def current(self) -> Any:
        if self._client is None:
            self._client = self._client_factory(self.key_pool.next_key())
        return self._client

    def rotate(self) -> Any:
        """Park the current key and rebuild the SDK client on the next one."""
        self.key_pool.mark_exhausted()
        self._client = self._client_factory(self.key_pool.next_key())
        return self._client

    async def _complete_once(self, model: str, messages: list[Message],
                             temperature: float, max_tokens: int) -> str:
        try:
            resp = await self.current().chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except Exception as exc:
            raise classify_error(exc) from exc
        text = resp.choices[0].message.content if resp.choices else None
        if not text or not text.strip():
            raise EmptyModelResponse("Empty response from AI")
        return text

    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        caller: str = "llm",
    ) -> str:
        """Run the chat completion through the retry policy.

        Non-retryable errors and the error from the last model propagate.
        """
        temperature = settings.llm_temperature if temperature is None else temperature
        max_tokens = max_tokens or settings.llm_max_tokens
        models = self.policy.models

        for index, model in enumerate(models):
            try:
                return await self._complete_once(model, messages, temperature, max_tokens)
            except Exception as exc:
                is_last = index == len(models) - 1
                if is_last or not self.policy.retryable(exc):
                    logger.error("[%s] Final generation error on %s: %s", caller, model, exc)
                    raise
                logger.warning("[%s] Quota exceeded for %s, rotating key and falling back", caller, model)
                self.rotate()
                await self._sleep(self.policy.delay_seconds)

        raise LLMNotConfiguredError("No models configured")

    async def generate(self, prompt: str, **kwargs) -> str:
        return await self.complete([{"role": "user", "content": prompt}], **kwargs)


def get_llm(request: Request) -> LLMClient:
    """FastAPI dependency: the process-wide client built in the app lifespan."""
    return request.app.state.llm
