from datetime import timedelta

from sqlalchemy import select

from app.models import Notification
from app.services.generation_service import generate_all_notifications
from tests.factories import make_announcement, make_event, register

async def test_generate_all_sums_producers_and_is_idempotent(db, user_id, now, today):
    todays = await make_event(db, "Tree Planting", today, created_at=now - timedelta(days=2))
    await register(db, user_id, todays)
    await make_announcement(db, "Youth Month", "Activities all June long.", now - timedelta(days=1))
    await make_event(db, "Coding Workshop", today + timedelta(days=6), created_at=now - timedelta(days=1))

    assert await generate_all_notifications(db, user_id, now) == 3
    assert await generate_all_notifications(db, user_id, now) == 0

    result = await db.execute(select(Notification.type).where(Notification.user_id == user_id))
    types = sorted(result.scalars().all())
    assert types == ["announcement", "event", "recommendation", "recommendation_tracker"]

async def test_generate_all_for_unknown_user(db, now):
    assert await generate_all_notifications(db, "no-such-user", now) == 0
