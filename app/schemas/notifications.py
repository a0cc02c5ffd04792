from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from enum import Enum as PyEnum

class NotificationType(str, PyEnum):
    EVENT = "event"
    ANNOUNCEMENT = "announcement"
    RECOMMENDATION = "recommendation"
    # Bookkeeping marker for the recommendation cooldown, never shown to users
    RECOMMENDATION_TRACKER = "recommendation_tracker"

class NotificationBase(BaseModel):
    type: NotificationType
    title: str
    content: str
    reference_id: Optional[str] = None
    image_url: Optional[str] = None
    action_url: Optional[str] = None

class NotificationCreate(NotificationBase):
    user_id: str
    read: bool = False
    metadata: Optional[Dict[str, Any]] = None

class NotificationResponse(NotificationBase):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    user_id: str
    read: bool
    created_at: datetime
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="meta")

class NotificationStatusUpdate(BaseModel):
    ids: List[str]
    is_read: bool = True

class NotificationDeleteRequest(BaseModel):
    ids: List[str] = Field(..., min_length=1)

class GenerateNotificationsResponse(BaseModel):
    created: int

class UnreadCountResponse(BaseModel):
    unread_count: int
