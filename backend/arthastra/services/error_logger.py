"""Centralised error logging: Python logger plus the ``error_logs`` table.

Usage:
    from arthastra.services.error_logger import log_error
    try:
        ...
    except Exception as e:
        await log_error(e, db=db, module="api.users", function_name="register")

Unhandled request errors are captured by ``ErrorCaptureMiddleware``.
"""

from __future__ import annotations

import logging
import traceback as tb_module
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from arthastra.models.error_log import ErrorLog, ErrorSeverity

logger = logging.getLogger("arthastra.errors")


def _clean(value: object, max_len: int) -> str:
    """Replace control characters (except common whitespace) and truncate."""
    text = "".join(ch if (ch >= " " or ch in "\n\r\t") else " " for ch in str(value))
    return text[:max_len]


def _origin(exc: BaseException) -> tuple[Optional[str], Optional[str]]:
    frame = exc.__traceback__
    if frame is None:
        return None, None
    while frame.tb_next:
        frame = frame.tb_next
    code = frame.tb_frame.f_code
    return code.co_filename, code.co_name


async def log_error(
    exc: Exception,
    *,
    db: Optional[AsyncSession] = None,
    severity: ErrorSeverity = ErrorSeverity.ERROR,
    module: Optional[str] = None,
    function_name: Optional[str] = None,
    request_method: Optional[str] = None,
    request_path: Optional[str] = None,
    status_code: Optional[int] = None,
    response_time_ms: Optional[float] = None,
    user_id: Optional[int] = None,
) -> Optional[ErrorLog]:
    """Log ``exc`` and, when a session is given, persist it.

    Returns the ErrorLog row, or None when persisting was skipped or failed.
    """
    error_type = type(exc).__name__
    message = _clean(exc, 2000)

    if not module:
        module, origin_function = _origin(exc)
        function_name = function_name or origin_function

    prefix = f"{request_method or '?'} {request_path} -> " if request_path else ""
    logger.error("%s[%s] %s: %s", prefix, severity.value.upper(), error_type, message, exc_info=exc)

    if db is None:
        return None

    try:
        entry = ErrorLog(
            severity=severity,
            error_type=error_type,
            message=message,
            traceback=_clean("".join(tb_module.format_exception(type(exc), exc, exc.__traceback__)), 10000),
            module=_clean(module, 300) if module else None,
            function_name=_clean(function_name, 200) if function_name else None,
            request_method=request_method,
            request_path=_clean(request_path, 500) if request_path else None,
            status_code=status_code,
            response_time_ms=response_time_ms,
            user_id=user_id,
        )
        db.add(entry)
        await db.flush()
        return entry
    except Exception as db_err:
        # Error logging must never crash the request
        logger.warning("Could not store error_logs row for %s: %s", error_type, db_err)
        return None


async def log_error_standalone(exc: Exception, **kwargs) -> Optional[ErrorLog]:
    """Log with a private session (for middleware and background jobs)."""
    from arthastra.database import async_session

    try:
        async with async_session() as db:
            entry = await log_error(exc, db=db, **kwargs)
            await db.commit()
            return entry
    except Exception as db_err:
        logger.warning("Standalone error logging failed: %s", db_err)
        return None
