import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.notifications import KIND_KEY, Notification, RECOMMENDATION_TRACKER_TITLE
from app.schemas.notifications import NotificationCreate, NotificationType
from app.utils.time_utils import days_ago, ensure_utc

# Configure logging 
logger = logging.getLogger(__name__)

def is_tracker(notification: Notification) -> bool:
    return (
        notification.title == RECOMMENDATION_TRACKER_TITLE
        or notification.type.endswith("_tracker")
    )

def _kind_filter(kind: Optional[str]):
    marker = Notification.meta[KIND_KEY].as_string()
    return marker.is_(None) if kind is None else marker == kind

def is_announcement_expired(created_at, now: Optional[datetime] = None) -> bool:
    """Check if an announcement (or its notification) is older than the freshness window."""
    return ensure_utc(created_at) < days_ago(settings.announcement_freshness_days, now)

async def notification_exists(
    db: AsyncSession,
    user_id: str,
    reference_id: str,
    type: str,
    kind: Optional[str] = None
) -> bool:
    """
    Dedup gate: is there already a notification for (user, reference, type)?

    Batch-sent notices carry a ``kind`` in their metadata and are deduped
    separately, so a tomorrow reminder never stands in for the same-day one.

    This is a plain read before the insert, not a lock. Two concurrent
    generators can both see False; the unique constraint on the table
    then rejects the second insert in create_notification.
    """
    try:
        result = await db.execute(
            select(func.count()).select_from(Notification).where(
                Notification.user_id == user_id,
                Notification.reference_id == reference_id,
                Notification.type == type,
                _kind_filter(kind)
            )
        )
        return (result.scalar() or 0) > 0
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error checking if notification exists: {str(e)}")
        return False

async def create_notification(db: AsyncSession, notification: NotificationCreate) -> Optional[Notification]:
    """
    Insert a single notification.

    Args:
        db (AsyncSession): Database session
        notification (NotificationCreate): Notification payload

    Returns:
        Optional[Notification]: The stored row, or None if the insert failed
        or lost a race against an identical notification
    """
    row = Notification(
        user_id=notification.user_id,
        title=notification.title,
        content=notification.content,
        type=notification.type.value,
        reference_id=notification.reference_id,
        read=notification.read,
        image_url=notification.image_url,
        action_url=notification.action_url,
        meta=notification.metadata,
    )
    try:
        db.add(row)
        await db.commit()
        await db.refresh(row)
        return row
    except IntegrityError:
        await db.rollback()
        logger.info(
            f"Notification ({notification.user_id}, {notification.reference_id}, {notification.type.value}) already exists, skipping"
        )
        return None
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error creating notification: {str(e)}")
        return None

async def get_user_notifications(db: AsyncSession, user_id: str, now: Optional[datetime] = None) -> List[Notification]:
    """
    Retrieve the notifications a user should see, newest first.

    Tracker rows are dropped, as are announcement notifications that have
    aged past the freshness window since they were written.
    """
    try:
        result = await db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
        )
        notifications = result.scalars().all()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error fetching notifications: {str(e)}")
        return []

    visible = []
    for notification in notifications:
        if is_tracker(notification):
            continue
        if notification.type == NotificationType.ANNOUNCEMENT.value and is_announcement_expired(notification.created_at, now):
            continue
        visible.append(notification)
    return visible

async def get_unread_notifications_count(db: AsyncSession, user_id: str, now: Optional[datetime] = None) -> int:
    notifications = await get_user_notifications(db, user_id, now)
    return len([n for n in notifications if not n.read])

async def mark_notification_as_read(db: AsyncSession, notification_id: str, user_id: Optional[str] = None) -> bool:
    try:
        stmt = update(Notification).where(
            Notification.id == notification_id,
            Notification.title != RECOMMENDATION_TRACKER_TITLE
        )
        if user_id is not None:
            stmt = stmt.where(Notification.user_id == user_id)
        result = await db.execute(stmt.values(read=True).execution_options(synchronize_session="fetch"))
        await db.commit()
        return result.rowcount > 0
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error marking notification as read: {str(e)}")
        return False

async def mark_notifications_read_status(db: AsyncSession, user_id: str, ids: List[str], is_read: bool) -> bool:
    """Set the read flag on several of a user's notifications at once."""
    try:
        stmt = (
            update(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.id.in_(ids),
                Notification.title != RECOMMENDATION_TRACKER_TITLE
            )
            .values(read=is_read)
            .execution_options(synchronize_session="fetch")
        )
        await db.execute(stmt)
        await db.commit()
        return True
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error updating notification status: {str(e)}")
        return False

async def mark_all_notifications_as_read(db: AsyncSession, user_id: str) -> bool:
    try:
        stmt = (
            update(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.read == False,
                Notification.title != RECOMMENDATION_TRACKER_TITLE
            )
            .values(read=True)
            .execution_options(synchronize_session="fetch")
        )
        await db.execute(stmt)
        await db.commit()
        return True
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error marking all notifications as read: {str(e)}")
        return False

async def delete_notification(db: AsyncSession, notification_id: str, user_id: Optional[str] = None) -> bool:
    """
    Delete a single notification.

    Returns False when the notification does not exist, belongs to someone
    else or is the recommendation tracker, and on store errors.
    """
    try:
        stmt = delete(Notification).where(
            Notification.id == notification_id,
            Notification.title != RECOMMENDATION_TRACKER_TITLE
        )
        if user_id is not None:
            stmt = stmt.where(Notification.user_id == user_id)
        result = await db.execute(stmt)
        await db.commit()
        return result.rowcount > 0
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error deleting notification: {str(e)}")
        return False

async def delete_multiple_notifications(db: AsyncSession, notification_ids: List[str], user_id: Optional[str] = None) -> bool:
    try:
        stmt = delete(Notification).where(
            Notification.id.in_(notification_ids),
            Notification.title != RECOMMENDATION_TRACKER_TITLE
        )
        if user_id is not None:
            stmt = stmt.where(Notification.user_id == user_id)
        await db.execute(stmt)
        await db.commit()
        return True
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error deleting multiple notifications: {str(e)}")
        return False

async def _count_recommendations(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        select(func.count()).select_from(Notification).where(
            Notification.user_id == user_id,
            Notification.type == NotificationType.RECOMMENDATION.value
        )
    )
    return result.scalar() or 0

async def _record_recommendations_deleted(db: AsyncSession, user_id: str) -> None:
    # Imported here: recommendation_service builds on this module
    from app.services.recommendation_service import update_recommendation_tracker
    await update_recommendation_tracker(db, user_id, was_deleted=True)

async def delete_all_notifications(db: AsyncSession, user_id: str) -> bool:
    """
    Delete every notification a user can see. The recommendation tracker
    survives; if recommendations were among the deleted rows, a fresh
    tracker restarts the recommendation cooldown from now.
    """
    try:
        recommendation_count = await _count_recommendations(db, user_id)
        await db.execute(
            delete(Notification).where(
                Notification.user_id == user_id,
                Notification.title != RECOMMENDATION_TRACKER_TITLE
            )
        )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error deleting all notifications: {str(e)}")
        return False

    if recommendation_count > 0:
        await _record_recommendations_deleted(db, user_id)
    return True

async def delete_notifications_by_type(db: AsyncSession, user_id: str, type: str) -> bool:
    """Delete all of a user's notifications of one type, tracker excluded."""
    try:
        recommendation_count = 0
        if type == NotificationType.RECOMMENDATION.value:
            recommendation_count = await _count_recommendations(db, user_id)
        await db.execute(
            delete(Notification).where(
                Notification.user_id == user_id,
                Notification.type == type,
                Notification.title != RECOMMENDATION_TRACKER_TITLE
            )
        )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error deleting {type} notifications: {str(e)}")
        return False

    if recommendation_count > 0:
        await _record_recommendations_deleted(db, user_id)
    return True
