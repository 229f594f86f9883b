"""Celery tasks for RetroScreen.

This module configures Celery and registers the periodic tasks.
"""

from celery import Celery
from celery.schedules import crontab

from app.config import get_settings

settings = get_settings()

celery_app = Celery(
    "retroscreen",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "app.tasks.candidates",
    ],
)

celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    # Beat schedules in the same timezone that defines "today"
    timezone=settings.timezone,
    enable_utc=True,
    # Task behavior
    task_track_started=True,
    task_time_limit=120,
    task_soft_time_limit=90,
    result_expires=86400,
    worker_prefetch_multiplier=1,
)

celery_app.conf.beat_schedule = {
    # Decide the day's featured screening before the posting automation runs
    "select-daily-candidate": {
        "task": "app.tasks.candidates.select_daily_candidate",
        "schedule": crontab(hour=settings.candidate_task_hour, minute=0),
        "options": {"expires": 3600},
    },
}
