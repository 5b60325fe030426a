"""SQLAlchemy implementations of the service storage ports."""

from .escalation_repo import EscalationRepository
from .notification_repo import NotificationRepository
from .post_repo import PostRepository
from .user_repo import UserRepository

__all__ = [
    "EscalationRepository",
    "NotificationRepository",
    "PostRepository",
    "UserRepository",
]
