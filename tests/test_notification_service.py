from datetime import timedelta

from sqlalchemy import select

from app.models import Notification, RECOMMENDATION_TRACKER_TITLE
from app.schemas.notifications import NotificationCreate, NotificationType
from app.services.notification_service import (
    create_notification,
    delete_all_notifications,
    delete_multiple_notifications,
    delete_notification,
    delete_notifications_by_type,
    get_unread_notifications_count,
    get_user_notifications,
    is_announcement_expired,
    mark_all_notifications_as_read,
    mark_notification_as_read,
    mark_notifications_read_status,
    notification_exists,
)
from app.services.recommendation_service import get_latest_tracker, update_recommendation_tracker
from tests.factories import make_notification, make_user

def _payload(user_id, reference_id="event-1", type=NotificationType.EVENT):
    return NotificationCreate(
        user_id=user_id,
        title="Event Reminder",
        content="Your registered event is happening today.",
        type=type,
        reference_id=reference_id,
    )

async def _rows(db, user_id):
    result = await db.execute(select(Notification).where(Notification.user_id == user_id))
    return result.scalars().all()

async def test_notification_exists_matches_full_key(db, user_id):
    assert not await notification_exists(db, user_id, "event-1", "event")

    await create_notification(db, _payload(user_id))

    assert await notification_exists(db, user_id, "event-1", "event")
    assert not await notification_exists(db, user_id, "event-1", "recommendation")
    assert not await notification_exists(db, user_id, "event-2", "event")

async def test_create_notification_returns_stored_row(db, user_id):
    created = await create_notification(db, _payload(user_id))

    assert created is not None
    assert created.id
    assert created.read is False
    assert created.type == "event"
    assert created.action_url is None
    assert created.created_at is not None

async def test_create_notification_rejects_duplicate_key(db, user_id):
    first = await create_notification(db, _payload(user_id))
    first_id = first.id
    second = await create_notification(db, _payload(user_id))

    assert second is None
    rows = await _rows(db, user_id)
    assert [row.id for row in rows] == [first_id]

async def test_get_user_notifications_hides_trackers_and_stale_announcements(db, user_id, now):
    await make_notification(db, user_id, "event", "e1", created_at=now - timedelta(days=20))
    await make_notification(db, user_id, "announcement", "a-fresh", created_at=now - timedelta(days=2))
    await make_notification(db, user_id, "announcement", "a-stale", created_at=now - timedelta(days=8))
    await make_notification(db, user_id, "recommendation", "r1", created_at=now - timedelta(days=1))
    await update_recommendation_tracker(db, user_id, now=now)

    notifications = await get_user_notifications(db, user_id, now)

    assert [n.reference_id for n in notifications] == ["r1", "a-fresh", "e1"]
    assert all(n.title != RECOMMENDATION_TRACKER_TITLE for n in notifications)

async def test_unread_count_ignores_read_and_hidden_rows(db, user_id, now):
    await make_notification(db, user_id, "event", "e1")
    await make_notification(db, user_id, "event", "e2", read=True)
    await make_notification(db, user_id, "announcement", "a1", created_at=now - timedelta(days=9))
    await update_recommendation_tracker(db, user_id, now=now)

    assert await get_unread_notifications_count(db, user_id, now) == 1

async def test_mark_notification_as_read_is_scoped_to_owner(db, user_id, now):
    notification_id = await make_notification(db, user_id, "event", "e1")
    other_user_id = await make_user(db, created_at=now - timedelta(days=3))

    assert not await mark_notification_as_read(db, notification_id, other_user_id)
    assert not await mark_notification_as_read(db, "missing", user_id)
    assert await mark_notification_as_read(db, notification_id, user_id)

    notifications = await get_user_notifications(db, user_id)
    assert notifications[0].read is True

async def test_mark_all_notifications_as_read(db, user_id):
    await make_notification(db, user_id, "event", "e1")
    await make_notification(db, user_id, "recommendation", "r1")

    assert await mark_all_notifications_as_read(db, user_id)

    assert await get_unread_notifications_count(db, user_id) == 0

async def test_delete_notification(db, user_id):
    notification_id = await make_notification(db, user_id, "event", "e1")

    assert await delete_notification(db, notification_id, user_id)
    assert not await delete_notification(db, notification_id, user_id)
    assert await _rows(db, user_id) == []

async def test_delete_multiple_notifications(db, user_id):
    first = await make_notification(db, user_id, "event", "e1")
    second = await make_notification(db, user_id, "event", "e2")
    kept = await make_notification(db, user_id, "event", "e3")

    assert await delete_multiple_notifications(db, [first, second], user_id)

    assert [row.id for row in await _rows(db, user_id)] == [kept]

async def test_delete_all_keeps_tracker(db, user_id, now):
    await make_notification(db, user_id, "event", "e1")
    await make_notification(db, user_id, "announcement", "a1")
    await update_recommendation_tracker(db, user_id, now=now - timedelta(days=10))

    assert await delete_all_notifications(db, user_id)

    rows = await _rows(db, user_id)
    assert len(rows) == 1
    assert rows[0].title == RECOMMENDATION_TRACKER_TITLE
    # No recommendations were removed, so the cooldown is untouched
    assert rows[0].meta["recommendations_deleted_at"] is None

async def test_deleting_recommendations_restarts_cooldown(db, user_id, now):
    await make_notification(db, user_id, "recommendation", "r1")
    await make_notification(db, user_id, "event", "e1")
    await update_recommendation_tracker(db, user_id, now=now - timedelta(days=10))

    assert await delete_notifications_by_type(db, user_id, "recommendation")

    remaining = [row.reference_id for row in await _rows(db, user_id) if row.title != RECOMMENDATION_TRACKER_TITLE]
    assert remaining == ["e1"]
    tracker = await get_latest_tracker(db, user_id)
    assert tracker.meta["recommendations_deleted_at"] is not None

async def test_delete_by_type_other_than_recommendation_writes_no_tracker(db, user_id):
    await make_notification(db, user_id, "event", "e1")

    assert await delete_notifications_by_type(db, user_id, "event")

    assert await get_latest_tracker(db, user_id) is None

async def test_is_announcement_expired(now):
    assert is_announcement_expired(now - timedelta(days=7, seconds=1), now)
    assert not is_announcement_expired(now - timedelta(days=6, hours=23), now)

async def test_batch_notices_are_deduped_by_kind(db, user_id):
    await make_notification(db, user_id, "event", "e1", meta={"kind": "tomorrow_reminder"})

    assert not await notification_exists(db, user_id, "e1", "event")
    assert await notification_exists(db, user_id, "e1", "event", kind="tomorrow_reminder")
    assert not await notification_exists(db, user_id, "e1", "event", kind="feedback_request")
    assert await create_notification(db, _payload(user_id, reference_id="e1")) is not None

async def test_mutations_by_id_leave_tracker_alone(db, user_id, now):
    await update_recommendation_tracker(db, user_id, now=now)
    tracker_id = (await get_latest_tracker(db, user_id)).id
    event_id = await make_notification(db, user_id, "event", "e1")

    assert await mark_notifications_read_status(db, user_id, [tracker_id, event_id], False)
    assert not await mark_notification_as_read(db, tracker_id, user_id)
    assert not await delete_notification(db, tracker_id, user_id)
    assert await delete_multiple_notifications(db, [tracker_id, event_id], user_id)

    rows = await _rows(db, user_id)
    assert [row.id for row in rows] == [tracker_id]
    await db.refresh(rows[0])
    assert rows[0].read is True
