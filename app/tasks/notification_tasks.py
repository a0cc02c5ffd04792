import asyncio
from celery import Task
from celery.utils.log import get_task_logger
from app.database import AsyncSessionLocal, engine
from app.services.event_notification_service import send_event_feedback_requests, send_event_reminders_for_tomorrow
from app.services.generation_service import generate_all_notifications
from app.tasks.celery_app import celery_app

logger = get_task_logger(__name__)

class BaseTaskWithRetry(Task):
    """Base task class with retry logic."""
    max_retries = 1
    default_retry_delay = 60  # 1 minute

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        """Log task failure using Celery's task logger."""
        logger.error(
            "Task failed: %s (task_id: %s, task_args: %s, task_kwargs: %s)",
            str(exc),
            task_id,
            args,
            kwargs,
            exc_info=exc
        )
        super().on_failure(exc, task_id, args, kwargs, einfo)

# Each task runs its own event loop; pooled connections must not outlive it.
async def _generate_for_user(user_id: str) -> int:
    try:
        async with AsyncSessionLocal() as db:
            return await generate_all_notifications(db, user_id)
    finally:
        await engine.dispose()

async def _send_tomorrow_reminders() -> int:
    try:
        async with AsyncSessionLocal() as db:
            return await send_event_reminders_for_tomorrow(db)
    finally:
        await engine.dispose()

async def _send_feedback_requests() -> int:
    try:
        async with AsyncSessionLocal() as db:
            return await send_event_feedback_requests(db)
    finally:
        await engine.dispose()

@celery_app.task(
    bind=True,
    base=BaseTaskWithRetry,
    name="generate_user_notifications"
)
def generate_user_notifications(self, user_id: str) -> dict:
    """
    Generate every kind of notification for one user.
    """
    logger.info("Starting notification generation", extra={"user_id": user_id})
    try:
        created = asyncio.run(_generate_for_user(user_id))
    except Exception as e:
        logger.error(
            "Error generating notifications",
            exc_info=e,
            extra={"user_id": user_id}
        )
        raise self.retry(exc=e)

    logger.info(
        "Successfully generated notifications",
        extra={"user_id": user_id, "notification_count": created}
    )
    return {"status": "success", "user_id": user_id, "notification_count": created}

@celery_app.task(
    bind=True,
    base=BaseTaskWithRetry,
    name="send_event_reminders_for_tomorrow"
)
def send_event_reminders_for_tomorrow_task(self) -> dict:
    """
    Daily batch: remind confirmed participants about tomorrow's events.
    """
    try:
        sent = asyncio.run(_send_tomorrow_reminders())
    except Exception as e:
        logger.error("Error sending event reminders for tomorrow", exc_info=e)
        raise self.retry(exc=e)

    logger.info("Sent event reminders for tomorrow", extra={"reminder_count": sent})
    return {"status": "success", "reminder_count": sent}

@celery_app.task(
    bind=True,
    base=BaseTaskWithRetry,
    name="send_event_feedback_requests"
)
def send_event_feedback_requests_task(self) -> dict:
    """
    Daily batch: ask confirmed participants of yesterday's events for feedback.
    """
    try:
        sent = asyncio.run(_send_feedback_requests())
    except Exception as e:
        logger.error("Error sending event feedback requests", exc_info=e)
        raise self.retry(exc=e)

    logger.info("Sent event feedback requests", extra={"feedback_request_count": sent})
    return {"status": "success", "feedback_request_count": sent}
