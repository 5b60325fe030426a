# src/lunavo/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    analysis_router,
    escalations_router,
    notifications_router,
    posts_router,
)

__all__ = [
    "analysis_router",
    "escalations_router",
    "notifications_router",
    "posts_router",
]
