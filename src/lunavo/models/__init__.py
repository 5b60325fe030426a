# src/lunavo/models/__init__.py
"""SQLAlchemy models for the Lunavo application."""

from .escalation import EscalationRecord
from .notification import NotificationEvent, ScheduledNotification, UserNotificationPreferences
from .post import Post
from .user import UserAccount

__all__ = [
    "EscalationRecord",
    "NotificationEvent", "ScheduledNotification", "UserNotificationPreferences",
    "Post",
    "UserAccount",
]
