import datetime as dt
from typing import Optional
from pydantic import BaseModel, ConfigDict

class EventRecommendation(BaseModel):
    """
    An upcoming event suggested to a user, with the reason shown next to it.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: Optional[str] = None
    date: Optional[dt.date] = None
    time: Optional[str] = None
    location: Optional[str] = None
    image: Optional[str] = None
    similarity_score: int = 0
    similarity: str
