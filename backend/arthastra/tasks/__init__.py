"""Background workers.

Run with ``celery -A arthastra.tasks worker -B``. Redis is both broker and
result store; both jobs also have HTTP triggers under ``/api/cron``.
"""

from celery import Celery
from celery.schedules import crontab

from arthastra.config import settings

_TASK_PREFIX = "arthastra.tasks.alert_tasks"

celery_app = Celery("arthastra", broker=settings.redis_url, backend=settings.redis_url)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    enable_utc=True,
    timezone="Asia/Kolkata",
    beat_schedule={
        "generate-alerts-hourly": {
            "task": f"{_TASK_PREFIX}.generate_alerts_task",
            "schedule": crontab(minute=0),
        },
        # Users see the nudge in the morning, local time
        "drop-off-sweep-daily": {
            "task": f"{_TASK_PREFIX}.process_drop_offs_task",
            "schedule": crontab(hour=10, minute=0),
        },
    },
)

# Registers the task functions on celery_app
from arthastra.tasks.alert_tasks import *  # noqa: E402,F401,F403
