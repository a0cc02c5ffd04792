import uuid
from sqlalchemy import Column, String, Date, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils.time_utils import utcnow

class Event(Base):
    __tablename__ = "events"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    details = Column(Text, nullable=True)
    date = Column(Date, nullable=True, index=True)
    time = Column(String, nullable=True)  # free text, e.g. "9:00 AM"
    location = Column(String, nullable=True)
    image = Column(String, nullable=True)
    category = Column(String, nullable=True)
    organizer = Column(String, nullable=True)
    capacity = Column(String, nullable=True)
    status = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    participants = relationship("EventParticipant", back_populates="event", lazy="raise")

class EventParticipant(Base):
    __tablename__ = "event_participants"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String, nullable=True, default="confirmed")  # confirmed, cancelled, waitlisted
    registration_date = Column(DateTime(timezone=True), default=utcnow)

    event = relationship("Event", back_populates="participants", lazy="raise")
    user = relationship("User", back_populates="participations", lazy="raise")
