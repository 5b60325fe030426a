# src/lunavo/models/notification.py
"""Models for notification events, preferences and persisted deliveries."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, SmallInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from lunavo.core.enums import ScheduleKind, ScheduleStatus
from lunavo.db.session import Base
from lunavo.db.time import utcnow


class NotificationEvent(Base):
    """One dispatch decision for one recipient."""

    __tablename__ = "notification"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(40), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    priority: Mapped[str] = mapped_column(String(16), nullable=False)
    # True when delivery was deferred by quiet hours or smart timing.
    scheduled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class UserNotificationPreferences(Base):
    """Stored delivery preferences; users without a row get the defaults."""

    __tablename__ = "notification_preferences"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    quiet_hours_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    quiet_hours_start: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=22)
    quiet_hours_end: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=7)
    priority_threshold: Mapped[str] = mapped_column(String(16), nullable=False, default="normal")
    grouping_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    smart_timing_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    digest_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    digest_interval: Mapped[str] = mapped_column(String(16), nullable=False, default="daily")
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")


class ScheduledNotification(Base):
    """Delivery that is due later; swept by the scheduler until delivered or failed."""

    __tablename__ = "scheduled_notification"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    notification_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("notification.id", ondelete="SET NULL"),
        nullable=True,
    )
    # 'push' delivers payload as-is, 'digest' assembles a digest when due.
    kind: Mapped[str] = mapped_column(String(16), nullable=False, default=ScheduleKind.PUSH.value)
    due_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    # {title, body, data, priority}
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ScheduleStatus.PENDING.value, index=True
    )
    attempts: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
