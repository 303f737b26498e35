"""Celery periodic tasks: alert generation and the drop-off WhatsApp sweep."""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from arthastra.tasks import celery_app
from arthastra.config import settings
from arthastra.services import alert_engine

logger = logging.getLogger(__name__)

__all__ = ["generate_alerts_task", "process_drop_offs_task"]


def _get_async_session():
    """A private engine and its session factory; the caller disposes the engine."""
    engine = create_async_engine(settings.database_url)
    return engine, async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def _run_in_session(job) -> dict:
    """Run ``job(db)`` to completion in a fresh loop and session."""

    async def _run():
        engine, session_factory = _get_async_session()
        try:
            async with session_factory() as db:
                try:
                    stats = await job(db)
                    await db.commit()
                    return stats
                except Exception:
                    await db.rollback()
                    raise
        finally:
            # The pool belongs to this run's event loop
            await engine.dispose()

    return asyncio.run(_run())


@celery_app.task(name="arthastra.tasks.alert_tasks.generate_alerts_task")
def generate_alerts_task() -> dict:
    """Score changes, drop-offs and EMI reminders for every user."""
    stats = _run_in_session(alert_engine.generate_alerts)
    logger.info("Alert generation task finished: %s", stats)
    return stats


@celery_app.task(name="arthastra.tasks.alert_tasks.process_drop_offs_task")
def process_drop_offs_task() -> dict:
    stats = _run_in_session(alert_engine.process_drop_offs)
    logger.info("Drop-off sweep task finished: %d processed", stats["processed"])
    return stats
