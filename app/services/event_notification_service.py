import logging
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy import Row, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Event, EventParticipant, User
from app.models.notifications import KIND_KEY
from app.schemas.notifications import NotificationCreate, NotificationType
from app.services.notification_service import create_notification, notification_exists
from app.services.participation_service import EVENT_SUMMARY_COLUMNS, get_registered_event_ids
from app.services.user_service import get_user_creation_date
from app.utils.time_utils import local_today

logger = logging.getLogger(__name__)

EVENT_REMINDER_TITLE = "Event Reminder"
TOMORROW_REMINDER_KIND = "tomorrow_reminder"
FEEDBACK_REQUEST_KIND = "feedback_request"

def event_action_url(event_id: str) -> str:
    return f"/dashboard/events/{event_id}"

async def generate_today_event_notifications(db: AsyncSession, user_id: str, now: Optional[datetime] = None) -> int:
    """
    Remind a user about registered events that take place today.

    Only events created after the user joined qualify, so a late
    registration for an old event does not trigger a reminder.

    Args:
        db (AsyncSession): Database session
        user_id (str): User to generate reminders for
        now (Optional[datetime]): Reference time, defaults to the current time

    Returns:
        int: Number of notifications created; 0 on any store error
    """
    try:
        user_created_at = await get_user_creation_date(db, user_id)
        if not user_created_at:
            return 0

        today = local_today(now)

        event_ids = await get_registered_event_ids(db, user_id)
        if not event_ids:
            return 0

        result = await db.execute(
            select(*EVENT_SUMMARY_COLUMNS).where(
                Event.id.in_(event_ids),
                Event.date == today,
                Event.created_at > user_created_at
            )
        )
        today_events = result.all()

        created_count = 0
        for event in today_events:
            if await notification_exists(db, user_id, event.id, NotificationType.EVENT.value):
                logger.info(f"Skipping duplicate event notification for event {event.id}")
                continue

            notification = NotificationCreate(
                user_id=user_id,
                title=EVENT_REMINDER_TITLE,
                content=(
                    f'Your registered event "{event.title}" is happening today at '
                    f'{event.time or "scheduled time"} in {event.location or "the specified location"}.'
                ),
                type=NotificationType.EVENT,
                reference_id=event.id,
                image_url=event.image,
                action_url=event_action_url(event.id),
            )
            if await create_notification(db, notification):
                created_count += 1

        return created_count
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error generating today event notifications: {str(e)}")
        return 0

async def _confirmed_participants(db: AsyncSession, event: Row) -> List[str]:
    """Confirmed participants who had joined before the event was posted."""
    result = await db.execute(
        select(EventParticipant.user_id)
        .join(User, User.id == EventParticipant.user_id)
        .where(
            EventParticipant.event_id == event.id,
            EventParticipant.status == "confirmed",
            User.created_at < event.created_at
        )
    )
    return list(result.scalars().all())

async def _notify_participants_of_events_on(
    db: AsyncSession,
    event_date: date,
    kind: str,
    build: Callable[[str, Row], NotificationCreate]
) -> int:
    result = await db.execute(select(*EVENT_SUMMARY_COLUMNS).where(Event.date == event_date))
    events = result.all()

    sent_count = 0
    for event in events:
        for participant_id in await _confirmed_participants(db, event):
            if await notification_exists(db, participant_id, event.id, NotificationType.EVENT.value, kind=kind):
                continue
            if await create_notification(db, build(participant_id, event)):
                sent_count += 1
    return sent_count

def _tomorrow_reminder(user_id: str, event: Row) -> NotificationCreate:
    time_suffix = f" at {event.time}" if event.time else ""
    return NotificationCreate(
        user_id=user_id,
        title=EVENT_REMINDER_TITLE,
        content=f"Reminder: {event.title} is happening tomorrow{time_suffix}. Don't forget to attend!",
        type=NotificationType.EVENT,
        reference_id=event.id,
        image_url=event.image,
        action_url=event_action_url(event.id),
        metadata={KIND_KEY: TOMORROW_REMINDER_KIND},
    )

def _feedback_request(user_id: str, event: Row) -> NotificationCreate:
    return NotificationCreate(
        user_id=user_id,
        title=f"Thank You for Attending {event.title}!",
        content="Please share your feedback about the event.",
        type=NotificationType.EVENT,
        reference_id=event.id,
        image_url=event.image,
        action_url=f"{event_action_url(event.id)}/feedback",
        metadata={KIND_KEY: FEEDBACK_REQUEST_KIND},
    )

async def send_event_reminders_for_tomorrow(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """
    Remind every confirmed participant of tomorrow's events.

    Runs as a daily batch. The reminders carry their own kind, so the
    same-day reminder still goes out on the day itself.
    """
    try:
        tomorrow = local_today(now) + timedelta(days=1)
        return await _notify_participants_of_events_on(db, tomorrow, TOMORROW_REMINDER_KIND, _tomorrow_reminder)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error sending event reminders for tomorrow: {str(e)}")
        return 0

async def send_event_feedback_requests(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """Ask confirmed participants of yesterday's events for feedback."""
    try:
        yesterday = local_today(now) - timedelta(days=1)
        return await _notify_participants_of_events_on(db, yesterday, FEEDBACK_REQUEST_KIND, _feedback_request)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error sending event feedback requests: {str(e)}")
        return 0
