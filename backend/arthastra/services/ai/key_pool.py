"""Round-robin API key pool with exhaustion tracking.

Spreads completion traffic across several provider keys. A key that hits its
quota is parked until ``cooldown_seconds`` have passed since it was last
handed out (provider quotas reset per minute).
"""

import logging
import threading
import time
from typing import Callable, Iterable

from arthastra.services.ai.errors import LLMNotConfiguredError

logger = logging.getLogger(__name__)


class ApiKeyPool:
    def __init__(
        self,
        keys: Iterable[str],
        cooldown_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.keys: list[str] = [k for k in keys if k]
        self.cursor = 0
        self.exhausted: set[int] = set()
        self.last_used: dict[int, float] = {}
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._current: int | None = None
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self.keys)

    def _release_cooled_down(self, now: float) -> None:
        for index in list(self.exhausted):
            if now - self.last_used.get(index, 0.0) > self.cooldown_seconds:
                self.exhausted.discard(index)

    def next_key(self) -> str:
        """Return the next non-exhausted key.

        When every key is exhausted the set is cleared and the first key is
        retried.
        """
        if not self.keys:
            raise LLMNotConfiguredError("No API keys configured. Set OPENAI_API_KEYS in .env")

        with self._lock:
            now = self._clock()
            self._release_cooled_down(now)

            for _ in range(len(self.keys)):
                index = self.cursor % len(self.keys)
                self.cursor += 1
                if index not in self.exhausted:
                    self.last_used[index] = now
                    self._current = index
                    logger.info("Using API key %d/%d", index + 1, len(self.keys))
                    return self.keys[index]

            logger.warning("All API keys exhausted, retrying the first key")
            self.exhausted.clear()
            self.last_used[0] = now
            self._current = 0
            return self.keys[0]

    def mark_exhausted(self) -> None:
        """Park the key most recently handed out."""
        with self._lock:
            if self._current is None:
                return
            self.exhausted.add(self._current)
            logger.warning("API key %d marked as exhausted", self._current + 1)

    def stats(self) -> dict:
        with self._lock:
            return {
                "total": len(self.keys),
                "available": len(self.keys) - len(self.exhausted),
                "exhausted": len(self.exhausted),
            }
