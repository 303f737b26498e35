"""Middleware that records failed requests in ``error_logs``.

5xx responses and unhandled exceptions are stored as errors; other 4xx
responses (except auth failures) as warnings.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from fastapi import Request, Response
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

from arthastra.auth_utils import session_user_id
from arthastra.models.error_log import ErrorSeverity
from arthastra.services.error_logger import log_error_standalone

logger = logging.getLogger("arthastra.middleware")

# Auth failures are routine; not worth a row each
_UNLOGGED_STATUS = (401, 403)


def _since(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class ErrorCaptureMiddleware(BaseHTTPMiddleware):
    """Turns unhandled exceptions into a plain 500 and records every failed request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        user_id: Optional[int] = session_user_id(request)
        context = {
            "module": "middleware.error_capture",
            "request_method": request.method,
            "request_path": str(request.url.path),
            "user_id": user_id,
        }

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception("%s %s raised %s", request.method, request.url.path, type(exc).__name__)
            await log_error_standalone(
                exc,
                severity=ErrorSeverity.CRITICAL if isinstance(exc, SQLAlchemyError) else ErrorSeverity.ERROR,
                status_code=500,
                response_time_ms=_since(start),
                **context,
            )
            return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})

        status_code = response.status_code
        if status_code < 400 or status_code in _UNLOGGED_STATUS:
            return response

        await log_error_standalone(
            Exception(f"HTTP {status_code} on {request.method} {request.url.path}"),
            severity=ErrorSeverity.ERROR if status_code >= 500 else ErrorSeverity.WARNING,
            function_name="dispatch",
            status_code=status_code,
            response_time_ms=_since(start),
            **context,
        )
        return response
