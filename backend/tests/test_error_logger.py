"""Tests for the centralised error logger."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from arthastra.models.error_log import ErrorLog, ErrorSeverity
from arthastra.services.error_logger import log_error


def _raise_and_catch(exc: Exception) -> Exception:
    try:
        raise exc
    except Exception as caught:
        return caught


class TestLogError:

    @pytest.mark.asyncio
    async def test_without_session_only_logs(self, caplog):
        with caplog.at_level("ERROR", logger="arthastra.errors"):
            result = await log_error(ValueError("bad input"), module="tests")
        assert result is None
        assert "ValueError: bad input" in caplog.text

    @pytest.mark.asyncio
    async def test_persists_entry(self):
        db = MagicMock()
        db.flush = AsyncMock()
        exc = _raise_and_catch(RuntimeError("boom\x00"))

        entry = await log_error(
            exc, db=db, severity=ErrorSeverity.CRITICAL,
            request_method="POST", request_path="/api/chat", status_code=500, user_id=3,
        )

        assert isinstance(entry, ErrorLog)
        db.add.assert_called_once_with(entry)
        assert entry.severity == ErrorSeverity.CRITICAL
        assert entry.error_type == "RuntimeError"
        assert entry.message == "boom "
        assert "RuntimeError" in entry.traceback
        assert entry.function_name == "_raise_and_catch"
        assert entry.module.endswith("test_error_logger.py")
        assert entry.user_id == 3

    @pytest.mark.asyncio
    async def test_db_failure_is_swallowed(self):
        db = MagicMock()
        db.flush = AsyncMock(side_effect=RuntimeError("connection lost"))
        assert await log_error(ValueError("x"), db=db, module="tests") is None
