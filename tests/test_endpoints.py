from datetime import timedelta

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.init_db import get_db
from app.main import app
from tests.factories import make_event, make_notification, make_user, register

@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()

def _as(user_id):
    return {"X-User-Id": user_id}

async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}

async def test_generate_then_list(client, db, user_id, now, today):
    event_id = await make_event(db, "Sports Fest", today, created_at=now - timedelta(days=1))
    await register(db, user_id, event_id)

    response = await client.post("/notifications/generate", headers=_as(user_id))
    assert response.status_code == 200
    assert response.json() == {"created": 1}

    response = await client.get("/notifications/list", headers=_as(user_id))
    assert response.status_code == 200
    body = response.json()
    assert len(body) == 1
    assert body[0]["reference_id"] == event_id
    assert body[0]["type"] == "event"
    assert body[0]["read"] is False

    response = await client.get("/notifications/unread_count", headers=_as(user_id))
    assert response.json() == {"unread_count": 1}

async def test_list_hides_tracker(client, db, user_id, now):
    await make_notification(db, user_id, "recommendation", "r1", meta={"similarity": "Based on your interests"})
    await make_notification(
        db, user_id, "recommendation_tracker", title="RECOMMENDATION_TRACKER", read=True, created_at=now
    )

    body = (await client.get("/notifications/list", headers=_as(user_id))).json()

    assert [n["reference_id"] for n in body] == ["r1"]
    assert body[0]["metadata"] == {"similarity": "Based on your interests"}

async def test_mark_read_and_read_all(client, db, user_id):
    first = await make_notification(db, user_id, "event", "e1")
    await make_notification(db, user_id, "event", "e2")

    assert (await client.post(f"/notifications/{first}/read", headers=_as(user_id))).status_code == 200
    assert (await client.post("/notifications/missing/read", headers=_as(user_id))).status_code == 404
    assert (await client.get("/notifications/unread_count", headers=_as(user_id))).json() == {"unread_count": 1}

    assert (await client.post("/notifications/read_all", headers=_as(user_id))).status_code == 200
    assert (await client.get("/notifications/unread_count", headers=_as(user_id))).json() == {"unread_count": 0}

async def test_update_status(client, db, user_id):
    notification_id = await make_notification(db, user_id, "event", "e1", read=True)

    response = await client.post(
        "/notifications/update_status",
        json={"ids": [notification_id], "is_read": False},
        headers=_as(user_id),
    )

    assert response.status_code == 200
    assert response.json() == {"updated_ids": [notification_id], "is_read": False}
    assert (await client.get("/notifications/unread_count", headers=_as(user_id))).json() == {"unread_count": 1}

async def test_delete_endpoints(client, db, user_id, now):
    single = await make_notification(db, user_id, "event", "e1")
    batch = [
        await make_notification(db, user_id, "event", "e2"),
        await make_notification(db, user_id, "event", "e3"),
    ]
    await make_notification(db, user_id, "announcement", "a1")
    await make_notification(db, user_id, "recommendation", "r1")

    assert (await client.delete(f"/notifications/{single}", headers=_as(user_id))).status_code == 200
    assert (await client.delete(f"/notifications/{single}", headers=_as(user_id))).status_code == 404

    response = await client.post("/notifications/delete", json={"ids": batch}, headers=_as(user_id))
    assert response.status_code == 200

    assert (await client.delete("/notifications/type/announcement", headers=_as(user_id))).status_code == 200
    assert (await client.delete("/notifications/type/recommendation_tracker", headers=_as(user_id))).status_code == 400
    assert (await client.delete("/notifications/type/bogus", headers=_as(user_id))).status_code == 422

    remaining = (await client.get("/notifications/list", headers=_as(user_id))).json()
    assert [n["reference_id"] for n in remaining] == ["r1"]

    assert (await client.delete("/notifications", headers=_as(user_id))).status_code == 200
    assert (await client.get("/notifications/list", headers=_as(user_id))).json() == []

async def test_cannot_touch_other_users_notifications(client, db, user_id, now):
    other = await make_user(db, created_at=now - timedelta(days=1))
    notification_id = await make_notification(db, user_id, "event", "e1")

    assert (await client.delete(f"/notifications/{notification_id}", headers=_as(other))).status_code == 404
    assert len((await client.get("/notifications/list", headers=_as(user_id))).json()) == 1

async def test_event_recommendations(client, db, user_id, now, today):
    past = await make_event(db, "Coding Bootcamp", today - timedelta(days=10), created_at=now - timedelta(days=20))
    await register(db, user_id, past)
    await make_event(db, "Barangay Fiesta", today + timedelta(days=2), created_at=now - timedelta(days=1), location="Plaza")
    software = await make_event(db, "Software Talk", today + timedelta(days=9), created_at=now - timedelta(days=1), location="Plaza")

    response = await client.get("/events/recommendations?limit=1", headers=_as(user_id))

    assert response.status_code == 200
    body = response.json()
    assert len(body) == 1
    assert body[0]["id"] == software
    assert body[0]["similarity"] == "Similar to your technology interests"
    assert body[0]["similarity_score"] > 0

async def test_event_recommendations_without_history_are_popular_events(client, db, now, today):
    newcomer = await make_user(db, created_at=now - timedelta(days=1))
    veteran = await make_user(db, created_at=now - timedelta(days=90))
    popular = await make_event(db, "Fun Run", today + timedelta(days=5), created_at=now - timedelta(days=2))
    await make_event(db, "Quiet Meeting", today + timedelta(days=3), created_at=now - timedelta(days=2))
    await register(db, veteran, popular)

    body = (await client.get("/events/recommendations", headers=_as(newcomer))).json()

    assert body[0]["id"] == popular
    assert body[0]["similarity"] == "Popular event"
