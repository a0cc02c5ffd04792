import logging
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Union

from sqlalchemy import Row, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models import Event, Notification, RECOMMENDATION_TRACKER_TITLE
from app.schemas.notifications import NotificationCreate, NotificationType
from app.services.notification_service import create_notification, notification_exists
from app.services.participation_service import EVENT_SUMMARY_COLUMNS, get_registered_event_ids, get_user_interests
from app.services.similarity_service import get_similarity_reason
from app.services.user_service import get_user_creation_date
from app.utils.time_utils import ensure_utc, local_today, parse_timestamp, utcnow

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class Eligible:
    """New recommendations may be generated."""

@dataclass(frozen=True)
class Cooldown:
    """Recommendations are paused until ``until``."""
    until: datetime

RecommendationState = Union[Eligible, Cooldown]

def _format_event_date(value) -> str:
    return f"{value:%b} {value.day}, {value.year}"

async def get_latest_tracker(db: AsyncSession, user_id: str) -> Optional[Notification]:
    result = await db.execute(
        select(Notification)
        .where(
            Notification.user_id == user_id,
            Notification.type == NotificationType.RECOMMENDATION_TRACKER.value
        )
        .order_by(Notification.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()

def _cooldown_anchor(tracker: Notification) -> datetime:
    deleted_at = (tracker.meta or {}).get("recommendations_deleted_at")
    try:
        return parse_timestamp(deleted_at) or ensure_utc(tracker.created_at)
    except (TypeError, ValueError):
        logger.warning(f"Unreadable recommendations_deleted_at {deleted_at!r} on tracker {tracker.id}, using created_at")
        return ensure_utc(tracker.created_at)

async def get_recommendation_state(db: AsyncSession, user_id: str, now: Optional[datetime] = None) -> RecommendationState:
    """
    Work out the cooldown state from the latest tracker row.

    The cooldown runs from the tracker's ``recommendations_deleted_at``
    when the user cleared their recommendations, otherwise from when the
    tracker was written. No tracker means the user was never served.
    """
    now = ensure_utc(now) or utcnow()
    tracker = await get_latest_tracker(db, user_id)
    if tracker is None:
        return Eligible()

    anchor = _cooldown_anchor(tracker)
    until = anchor + timedelta(days=settings.recommendation_cooldown_days)
    if now >= until:
        return Eligible()
    return Cooldown(until=until)

async def should_generate_recommendations(db: AsyncSession, user_id: str, now: Optional[datetime] = None) -> bool:
    try:
        state = await get_recommendation_state(db, user_id, now)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error checking if recommendations should be generated: {str(e)}")
        # Default to not generating if there's an error
        return False

    if isinstance(state, Cooldown):
        logger.info(f"Recommendations for user {user_id} are cooling down until {state.until.isoformat()}")
        return False
    return True

async def update_recommendation_tracker(
    db: AsyncSession,
    user_id: str,
    was_deleted: bool = False,
    now: Optional[datetime] = None
) -> bool:
    """
    Write a tracker row, starting a new cooldown.

    Args:
        db (AsyncSession): Database session
        user_id (str): Owner of the tracker
        was_deleted (bool): The user just cleared their recommendations;
            the cooldown then counts from the deletion time
        now (Optional[datetime]): Reference time, defaults to the current time

    Returns:
        bool: True if the tracker was stored
    """
    now = ensure_utc(now) or utcnow()
    tracker = Notification(
        user_id=user_id,
        title=RECOMMENDATION_TRACKER_TITLE,
        content="This is a system notification to track recommendation generation and deletion.",
        type=NotificationType.RECOMMENDATION_TRACKER.value,
        read=True,
        meta={
            "generation_date": now.isoformat(),
            "recommendations_deleted_at": now.isoformat() if was_deleted else None,
        },
        created_at=now,
    )
    try:
        db.add(tracker)
        await db.commit()
        return True
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error updating recommendation tracker: {str(e)}")
        return False

async def get_previously_recommended_event_ids(db: AsyncSession, user_id: str) -> List[str]:
    try:
        result = await db.execute(
            select(Notification.reference_id).where(
                Notification.user_id == user_id,
                Notification.type == NotificationType.RECOMMENDATION.value,
                Notification.reference_id.is_not(None),
                Notification.title != RECOMMENDATION_TRACKER_TITLE
            )
        )
        return [reference_id for reference_id in result.scalars().all() if reference_id]
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error getting previously recommended events: {str(e)}")
        return []

async def get_recommendation_candidates(
    db: AsyncSession,
    user_created_at: datetime,
    exclude_event_ids: List[str],
    now: Optional[datetime] = None
) -> List[Row]:
    """Upcoming events created after the user joined, newest first."""
    stmt = (
        select(*EVENT_SUMMARY_COLUMNS)
        .where(
            Event.date >= local_today(now),
            Event.created_at > user_created_at
        )
        .order_by(Event.created_at.desc())
    )
    if exclude_event_ids:
        stmt = stmt.where(Event.id.not_in(exclude_event_ids))
    result = await db.execute(stmt)
    return list(result.all())

async def generate_recommended_event_notifications(
    db: AsyncSession,
    user_id: str,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None
) -> int:
    """
    Recommend a few random upcoming events, at most once per cooldown period.

    Candidates exclude events the user registered for or was already
    recommended. The pick is a uniform random sample; keyword similarity
    only decides the label attached to each pick. A tracker row is written
    once at least one recommendation was stored, so a batch made up only
    of duplicates leaves the user eligible for the next run.

    Returns:
        int: Number of notifications created; 0 on any store error
    """
    rng = rng or random
    try:
        user_created_at = await get_user_creation_date(db, user_id)
        if not user_created_at:
            return 0

        if not await should_generate_recommendations(db, user_id, now):
            return 0

        registered_ids = await get_registered_event_ids(db, user_id)
        previously_recommended_ids = await get_previously_recommended_event_ids(db, user_id)
        exclude_event_ids = list(set(registered_ids) | set(previously_recommended_ids))

        candidates = await get_recommendation_candidates(db, user_created_at, exclude_event_ids, now)
        picks = rng.sample(candidates, min(settings.recommendation_batch_size, len(candidates)))
        if not picks:
            return 0

        user_interests = await get_user_interests(db, user_id)

        created_count = 0
        for event in picks:
            if await notification_exists(db, user_id, event.id, NotificationType.RECOMMENDATION.value):
                logger.info(f"Skipping duplicate recommendation for event {event.id}")
                continue

            reason = get_similarity_reason(event, user_interests)
            notification = NotificationCreate(
                user_id=user_id,
                title="Recommended Event",
                content=(
                    f'We think you might be interested in "{event.title}" on '
                    f'{_format_event_date(event.date)}. {reason}.'
                ),
                type=NotificationType.RECOMMENDATION,
                reference_id=event.id,
                image_url=event.image,
                action_url=f"/dashboard/events/{event.id}",
                metadata={"similarity": reason},
            )
            if await create_notification(db, notification):
                created_count += 1

        if created_count > 0:
            await update_recommendation_tracker(db, user_id, now=now)

        return created_count
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error generating recommended event notifications: {str(e)}")
        return 0
