"""ArthAstra advisor API - FastAPI entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from arthastra.config import settings
from arthastra.database import engine, Base
from arthastra.middleware.error_capture import ErrorCaptureMiddleware
from arthastra.api import users, alerts, cron, tools, advisor, notify
from arthastra.services.ai.llm_client import LLMClient

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the shared LLM client; create tables in development."""
    app.state.llm = LLMClient.from_settings()
    if not app.state.llm.configured:
        logger.warning("No OpenAI API keys configured; AI endpoints will return 503")
    if settings.environment == "development":
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


limiter = Limiter(key_func=get_remote_address)

app = FastAPI(
    title="ArthAstra Advisor API",
    description="Loan eligibility, offers, credit simulation and AI advice for Indian borrowers",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Error capture middleware (outermost, catches everything)
app.add_middleware(ErrorCaptureMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept"],
)

# Routers
app.include_router(users.router, prefix="/api/user", tags=["Users"])
app.include_router(alerts.router, prefix="/api/alerts", tags=["Alerts"])
app.include_router(cron.router, prefix="/api/cron", tags=["Cron"])
app.include_router(tools.router, prefix="/api/tools", tags=["Calculators"])
app.include_router(advisor.router, prefix="/api", tags=["AI Advisor"])
app.include_router(notify.router, prefix="/api", tags=["Notifications"])


@app.get("/api/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "arthastra-api",
        "version": "0.1.0",
        "llm_keys": app.state.llm.key_pool.stats() if hasattr(app.state, "llm") else None,
    }
