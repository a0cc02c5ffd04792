import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Boolean, Text, JSON, Index, text
from sqlalchemy.orm import relationship

from ..database import Base
from app.utils.time_utils import utcnow

RECOMMENDATION_TRACKER_TITLE = "RECOMMENDATION_TRACKER"

# metadata["kind"] of batch-sent event notices (tomorrow reminders, feedback
# requests). Rows without a kind are the per-user notifications.
KIND_KEY = "kind"

class Notification(Base):
    __tablename__ = "notifications"
    # One per-user notification per (user, reference, type). Tracker rows carry
    # a NULL reference and never collide; rows with a kind are deduped by their batch.
    __table_args__ = (
        Index(
            "uq_notifications_user_reference_type",
            "user_id", "reference_id", "type",
            unique=True,
            postgresql_where=text("(metadata ->> 'kind') IS NULL"),
            sqlite_where=text("json_extract(metadata, '$.kind') IS NULL"),
        ),
    )
    
    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    type = Column(String, nullable=False, index=True)  # event, announcement, recommendation, recommendation_tracker
    reference_id = Column(String, nullable=True)
    read = Column(Boolean, default=False, nullable=False)
    image_url = Column(String, nullable=True)
    action_url = Column(String, nullable=True)
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    
    user = relationship("User", back_populates="notifications", lazy="raise")
