import logging
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from app.init_db import get_db
from app.common import get_current_user
from app.schemas.events import EventRecommendation
from app.services.participation_service import get_personalized_event_recommendations

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])

@router.get("/recommendations", response_model=List[EventRecommendation])
async def get_event_recommendations_api(
    limit: int = Query(3, ge=1, le=20),
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """
    Upcoming events ranked by similarity to the current user's past participation.
    """
    return await get_personalized_event_recommendations(db, current_user["uid"], limit)
