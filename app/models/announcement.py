import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Text

from app.database import Base
from app.utils.time_utils import utcnow

class Announcement(Base):
    __tablename__ = "announcements"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    category = Column(String, nullable=False, default="general")
    author = Column(String, nullable=False)
    author_role = Column(String, nullable=False, default="admin")
    likes = Column(Integer, nullable=True, default=0)
    user_id = Column(String, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
