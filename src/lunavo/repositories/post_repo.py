"""Data access helpers for working with posts."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from lunavo.models.post import Post
from lunavo.repositories.base import store_errors

__all__ = ["PostRepository"]

POST_MUTABLE_FIELDS = frozenset(
    {"status", "escalation_level", "escalation_reason", "reported_count", "category"}
)


class PostRepository:
    """Thin wrapper around database access for post entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    async def get_post(self, post_id: int) -> Post | None:
        """Return a post by identifier."""
        with store_errors(self.session, "get_post"):
            return self.session.get(Post, post_id)

    async def create_post(
        self,
        *,
        author_id: str,
        category: str,
        title: str,
        content: str,
        reported_count: int = 0,
    ) -> Post:
        """Insert a new post and return the persisted ORM instance."""
        post = Post(
            author_id=author_id,
            category=category,
            title=title,
            content=content,
            reported_count=reported_count,
        )
        with store_errors(self.session, "create_post"):
            self.session.add(post)
            self.session.commit()
            self.session.refresh(post)
        return post

    async def update_post(self, post_id: int, changes: Mapping[str, Any]) -> Post | None:
        """Apply column changes to a post; unknown columns are ignored."""
        with store_errors(self.session, "update_post"):
            post = self.session.get(Post, post_id)
            if post is None:
                return None
            for key, value in changes.items():
                if key in POST_MUTABLE_FIELDS:
                    setattr(post, key, value)
            self.session.commit()
            self.session.refresh(post)
        return post

    async def count_posts(self) -> int:
        with store_errors(self.session, "count_posts"):
            return self.session.scalar(select(func.count()).select_from(Post)) or 0

    async def categories_for(self, post_ids: Iterable[int]) -> dict[int, str]:
        """Map post ids to their categories."""
        ids = list(post_ids)
        if not ids:
            return {}
        with store_errors(self.session, "categories_for"):
            rows = self.session.execute(
                select(Post.id, Post.category).where(Post.id.in_(ids))
            ).all()
        return {post_id: category for post_id, category in rows}
