import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models import Announcement, Notification
from app.schemas.notifications import NotificationCreate, NotificationType
from app.services.notification_service import create_notification, notification_exists
from app.services.user_service import get_user_creation_date
from app.utils.time_utils import days_ago, ensure_utc

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 100

def announcement_preview(title: str, content: str) -> str:
    ellipsis = "..." if len(content) > PREVIEW_LENGTH else ""
    return f"{title}: {content[:PREVIEW_LENGTH]}{ellipsis}"

async def get_announcement_high_water_mark(db: AsyncSession, user_id: str, user_created_at: datetime) -> datetime:
    """
    Latest point already covered by the digest: the newest announcement
    notification the user has, or their join date if that is later.
    """
    result = await db.execute(
        select(Notification.created_at)
        .where(
            Notification.user_id == user_id,
            Notification.type == NotificationType.ANNOUNCEMENT.value
        )
        .order_by(Notification.created_at.desc())
        .limit(1)
    )
    last_notified_at = ensure_utc(result.scalar_one_or_none())
    if last_notified_at and last_notified_at > user_created_at:
        return last_notified_at
    return user_created_at

async def generate_announcement_notifications(db: AsyncSession, user_id: str, now: Optional[datetime] = None) -> int:
    """
    Notify a user about announcements posted since their last digest.

    Announcements must be newer than the high-water mark and no older than
    the freshness window, even on a user's first run.

    Args:
        db (AsyncSession): Database session
        user_id (str): User to generate the digest for
        now (Optional[datetime]): Reference time, defaults to the current time

    Returns:
        int: Number of notifications created; 0 on any store error
    """
    try:
        user_created_at = await get_user_creation_date(db, user_id)
        if not user_created_at:
            return 0

        last_timestamp = await get_announcement_high_water_mark(db, user_id, user_created_at)
        cutoff = days_ago(settings.announcement_freshness_days, now)

        result = await db.execute(
            select(Announcement.id, Announcement.title, Announcement.content, Announcement.created_at)
            .where(
                Announcement.created_at > last_timestamp,
                Announcement.created_at >= cutoff
            )
            .order_by(Announcement.created_at.desc())
        )
        announcements = result.all()

        created_count = 0
        for announcement in announcements:
            if await notification_exists(db, user_id, announcement.id, NotificationType.ANNOUNCEMENT.value):
                logger.info(f"Skipping duplicate announcement notification for announcement {announcement.id}")
                continue

            notification = NotificationCreate(
                user_id=user_id,
                title="New Announcement",
                content=announcement_preview(announcement.title, announcement.content),
                type=NotificationType.ANNOUNCEMENT,
                reference_id=announcement.id,
                action_url=f"/dashboard/announcement/{announcement.id}",
            )
            if await create_notification(db, notification):
                created_count += 1

        return created_count
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error generating announcement notifications: {str(e)}")
        return 0
