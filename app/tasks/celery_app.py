from celery import Celery
from celery.schedules import crontab

from app.config import settings

celery_app = Celery(
    "sk_portal_notifications",
    broker=settings.broker_url,
    backend=settings.result_backend,
    include=["app.tasks.notification_tasks"]
)

# Celery Configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.timezone,
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes
    task_soft_time_limit=240,  # 4 minutes
    worker_max_tasks_per_child=100,  # Restart worker after 100 tasks
    worker_prefetch_multiplier=1,  # One task per worker
)

celery_app.conf.task_routes = {
    "app.tasks.notification_tasks.*": {"queue": "notifications"}
}

# Retry policy
celery_app.conf.task_default_retry_delay = 60  # 1 minute
celery_app.conf.task_max_retries = 1  # Retry once

# Reminders go out the evening before, feedback requests the morning after
celery_app.conf.beat_schedule = {
    "send-event-reminders-for-tomorrow": {
        "task": "send_event_reminders_for_tomorrow",
        "schedule": crontab(hour=18, minute=0),
    },
    "send-event-feedback-requests": {
        "task": "send_event_feedback_requests",
        "schedule": crontab(hour=9, minute=0),
    },
}
