"""Tests for the round-robin API key pool."""

import pytest

from arthastra.services.ai.errors import LLMNotConfiguredError
from arthastra.services.ai.key_pool import ApiKeyPool


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestApiKeyPool:

    def test_round_robin(self):
        pool = ApiKeyPool(["a", "b", "c"])
        assert [pool.next_key() for _ in range(4)] == ["a", "b", "c", "a"]

    def test_blank_keys_are_dropped(self):
        pool = ApiKeyPool(["a", "", "b"])
        assert len(pool) == 2

    def test_no_keys_raises(self):
        with pytest.raises(LLMNotConfiguredError):
            ApiKeyPool([]).next_key()

    def test_exhausted_key_is_skipped(self):
        pool = ApiKeyPool(["a", "b"], clock=FakeClock())
        assert pool.next_key() == "a"
        pool.mark_exhausted()
        assert pool.next_key() == "b"
        assert pool.next_key() == "b"
        assert pool.stats() == {"total": 2, "available": 1, "exhausted": 1}

    def test_all_exhausted_resets_to_first(self):
        pool = ApiKeyPool(["a", "b"], clock=FakeClock())
        pool.next_key()
        pool.mark_exhausted()
        pool.next_key()
        pool.mark_exhausted()
        assert pool.next_key() == "a"
        assert pool.stats()["exhausted"] == 0

    def test_cooldown_releases_key(self):
        clock = FakeClock()
        pool = ApiKeyPool(["a", "b"], cooldown_seconds=60, clock=clock)
        pool.next_key()
        pool.mark_exhausted()
        clock.now += 30
        assert pool.next_key() == "b"
        assert pool.next_key() == "b"
        clock.now += 31
        assert pool.next_key() == "a"

    def test_mark_exhausted_before_use_is_noop(self):
        pool = ApiKeyPool(["a"])
        pool.mark_exhausted()
        assert pool.stats()["exhausted"] == 0
