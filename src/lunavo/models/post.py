# src/lunavo/models/post.py
"""SQLAlchemy model for forum posts."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from lunavo.core.enums import EscalationLevel, PostStatus
from lunavo.db.session import Base
from lunavo.db.time import utcnow


class Post(Base):
    """Anonymous support request written by a student.

    The author is known to the platform but never shown to other students.
    """

    __tablename__ = "post"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(40), nullable=False, default="general")
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # active | escalated | removed
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PostStatus.ACTIVE.value
    )
    # Set once from the classifier output; only an explicit re-detection rewrites it.
    escalation_level: Mapped[str] = mapped_column(
        String(16), nullable=False, default=EscalationLevel.NONE.value
    )
    escalation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    reported_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
