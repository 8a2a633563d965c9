"""
Celery application for async task processing
"""
from celery import Celery
from talent.core.config import settings

celery_app = Celery(
    "talent",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "talent.tasks.resume_tasks",
    ],
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes
    task_soft_time_limit=240,  # 4 minutes
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
    result_expires=3600,  # 1 hour
    beat_schedule={
        "retry-pending-events": {
            "task": "talent.tasks.resume_tasks.retry_pending_events_task",
            "schedule": float(settings.EVENT_RETRY_INTERVAL_SECONDS),
        },
    },
)
