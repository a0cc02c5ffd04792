from .user import User
from .event import Event, EventParticipant
from .announcement import Announcement
from .notifications import Notification, RECOMMENDATION_TRACKER_TITLE

__all__ = ["User", "Event", "EventParticipant", "Announcement", "Notification", "RECOMMENDATION_TRACKER_TITLE"]
