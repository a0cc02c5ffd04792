import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.services.announcement_notification_service import generate_announcement_notifications
from app.services.event_notification_service import generate_today_event_notifications
from app.services.recommendation_service import generate_recommended_event_notifications

logger = logging.getLogger(__name__)

async def generate_all_notifications(db: AsyncSession, user_id: str, now: Optional[datetime] = None) -> int:
    """
    Run every notification producer for a user, in order, and return how
    many notifications were created in total.

    Each producer swallows its own store errors, so a failing stage yields
    0 and the remaining stages still run.
    """
    today_count = await generate_today_event_notifications(db, user_id, now)
    announcement_count = await generate_announcement_notifications(db, user_id, now)
    recommended_count = await generate_recommended_event_notifications(db, user_id, now)

    total = today_count + announcement_count + recommended_count
    logger.info(
        f"Generated {total} notifications for user {user_id} "
        f"(events={today_count}, announcements={announcement_count}, recommendations={recommended_count})"
    )
    return total
