import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import User
from app.utils.time_utils import ensure_utc

logger = logging.getLogger(__name__)

async def get_user_by_id(db: AsyncSession, user_id: str) -> Optional[User]:
    """
    Retrieve a user by their unique identifier.
    
    Args:
        db: AsyncSession - Database session for executing queries
        user_id: str - Unique identifier of the user
        
    Returns:
        Optional[User]: User object if found, None otherwise
    """
    query = select(User).where(User.id == user_id)
    result = await db.execute(query)
    return result.scalar_one_or_none()

async def get_user_creation_date(db: AsyncSession, user_id: str) -> Optional[datetime]:
    """
    Get the moment a user joined, as an aware UTC datetime.

    Every notification producer uses this as a lower bound, so a missing
    user or a failed lookup yields None and the caller stops.
    """
    try:
        result = await db.execute(select(User.created_at).where(User.id == user_id))
        return ensure_utc(result.scalar_one_or_none())
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error fetching user creation date for {user_id}: {str(e)}")
        return None
