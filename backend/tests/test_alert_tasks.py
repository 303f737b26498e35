"""Tests for the Celery alert tasks (run eagerly, database session mocked)."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from arthastra.services import alert_engine
from arthastra.tasks import celery_app
from arthastra.tasks.alert_tasks import generate_alerts_task, process_drop_offs_task


def _engine_and_session():
    session = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=session)
    factory.return_value.__aexit__ = AsyncMock(return_value=False)
    engine = MagicMock()
    engine.dispose = AsyncMock()
    return (engine, factory), session


class TestBeatSchedule:

    def test_tasks_registered(self):
        assert "arthastra.tasks.alert_tasks.generate_alerts_task" in celery_app.tasks
        assert "arthastra.tasks.alert_tasks.process_drop_offs_task" in celery_app.tasks

    def test_schedule(self):
        schedule = celery_app.conf.beat_schedule
        assert schedule["generate-alerts-hourly"]["task"].endswith("generate_alerts_task")
        assert schedule["drop-off-sweep-daily"]["task"].endswith("process_drop_offs_task")


class TestTasks:

    def test_generate_alerts_commits(self):
        parts, session = _engine_and_session()
        stats = {"alerts_created": 3, "whatsapp_sent": 1, "timestamp": "t"}
        with patch("arthastra.tasks.alert_tasks._get_async_session", return_value=parts), \
             patch.object(alert_engine, "generate_alerts", AsyncMock(return_value=stats)) as run:
            assert generate_alerts_task() == stats
        run.assert_awaited_once_with(session)
        session.commit.assert_awaited_once()
        parts[0].dispose.assert_awaited_once()

    def test_failure_rolls_back(self):
        parts, session = _engine_and_session()
        with patch("arthastra.tasks.alert_tasks._get_async_session", return_value=parts), \
             patch.object(alert_engine, "process_drop_offs", AsyncMock(side_effect=RuntimeError("db down"))):
            with pytest.raises(RuntimeError):
                process_drop_offs_task()
        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()
        parts[0].dispose.assert_awaited_once()
