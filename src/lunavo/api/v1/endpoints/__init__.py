# src/lunavo/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .analysis import router as analysis_router
from .escalations import router as escalations_router
from .notifications import router as notifications_router
from .posts import router as posts_router

__all__ = [
    "analysis_router",
    "escalations_router",
    "notifications_router",
    "posts_router",
]
