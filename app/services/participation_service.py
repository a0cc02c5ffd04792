import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Event, EventParticipant
from app.schemas.events import EventRecommendation
from app.services.similarity_service import (
    calculate_similarity,
    extract_keywords,
    extract_keywords_from_event,
    get_similarity_reason,
    rank_events_by_similarity,
)
from app.utils.time_utils import local_today

logger = logging.getLogger(__name__)

# Plain rows rather than entities: a rollback in the middle of a
# notification batch expires ORM instances, rows stay readable.
EVENT_SUMMARY_COLUMNS = (
    Event.id,
    Event.title,
    Event.description,
    Event.date,
    Event.time,
    Event.location,
    Event.image,
    Event.created_at,
)

async def get_registered_event_ids(db: AsyncSession, user_id: str) -> List[str]:
    """
    IDs of every event the user signed up for.

    Store errors propagate; the notification producers handle them at
    their own boundary.
    """
    result = await db.execute(
        select(EventParticipant.event_id).where(EventParticipant.user_id == user_id)
    )
    return list(result.scalars().all())

async def get_participated_events(db: AsyncSession, user_id: str) -> List[Event]:
    event_ids = await get_registered_event_ids(db, user_id)
    if not event_ids:
        return []
    result = await db.execute(select(Event).where(Event.id.in_(event_ids)))
    return list(result.scalars().all())

async def get_user_interests(db: AsyncSession, user_id: str) -> Dict[str, int]:
    """Interest-weight map built from the events the user took part in."""
    return extract_keywords(await get_participated_events(db, user_id))

async def get_popular_upcoming_events(db: AsyncSession, limit: int, now: Optional[datetime] = None) -> List[Event]:
    participant_count = func.count(EventParticipant.id)
    result = await db.execute(
        select(Event)
        .outerjoin(EventParticipant, EventParticipant.event_id == Event.id)
        .where(Event.date >= local_today(now))
        .group_by(Event.id)
        .order_by(participant_count.desc(), Event.date.asc())
        .limit(limit)
    )
    return list(result.scalars().all())

async def get_personalized_event_recommendations(
    db: AsyncSession,
    user_id: str,
    limit: int = 3,
    now: Optional[datetime] = None
) -> List[EventRecommendation]:
    """
    Rank upcoming events for a user by how well they match past participation.

    Args:
        db: AsyncSession - Database session for executing queries
        user_id: str - User to recommend events for
        limit: int - Maximum number of events to return
        now: Optional[datetime] - Reference time, defaults to the current time

    Returns:
        List[EventRecommendation]: Best matches first. Users without any
        participation history get the most attended upcoming events instead.
        An empty list on store errors.
    """
    try:
        participated = await get_participated_events(db, user_id)

        if not participated:
            logger.info(f"User {user_id} has no participation history, returning popular events")
            popular = await get_popular_upcoming_events(db, limit, now)
            return [_to_recommendation(event, 0, "Popular event") for event in popular]

        user_interests = extract_keywords(participated)
        participated_ids = [event.id for event in participated]

        result = await db.execute(
            select(Event)
            .where(Event.date >= local_today(now), Event.id.not_in(participated_ids))
            .order_by(Event.date.asc())
        )
        upcoming = result.scalars().all()

        recommendations = [
            _to_recommendation(
                event,
                calculate_similarity(user_interests, extract_keywords_from_event(event)),
                get_similarity_reason(event, user_interests)
            )
            for event in rank_events_by_similarity(upcoming, user_interests)[:limit]
        ]
        logger.info(f"Generated {len(recommendations)} personalized recommendations for user {user_id}")
        return recommendations
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error building personalized recommendations for user {user_id}: {str(e)}")
        return []

def _to_recommendation(event: Event, score: int, reason: str) -> EventRecommendation:
    return EventRecommendation(
        id=event.id,
        title=event.title,
        description=event.description,
        date=event.date,
        time=event.time,
        location=event.location,
        image=event.image,
        similarity_score=score,
        similarity=reason,
    )
