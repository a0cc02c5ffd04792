import uuid
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils.time_utils import utcnow

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    barangay = Column(String, nullable=True)
    user_role = Column(String, nullable=False, default="user")
    # Join date; nothing created before it is ever notified to this user
    created_at = Column(DateTime(timezone=True), default=utcnow)

    participations = relationship("EventParticipant", back_populates="user", lazy="selectin")
    notifications = relationship("Notification", back_populates="user", lazy="raise")
