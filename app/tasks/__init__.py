from app.tasks.celery_app import celery_app
from app.tasks.notification_tasks import (
    generate_user_notifications,
    send_event_reminders_for_tomorrow_task,
    send_event_feedback_requests_task
)

__all__ = [
    "celery_app",
    "generate_user_notifications",
    "send_event_reminders_for_tomorrow_task",
    "send_event_feedback_requests_task"
]
