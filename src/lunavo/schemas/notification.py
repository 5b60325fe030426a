# src/lunavo/schemas/notification.py
"""Notification and preference Pydantic schemas."""

from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, model_validator

from lunavo.core.enums import DigestInterval, Priority
from lunavo.services.notification_priority import NotificationPreferences, QuietHours


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    type: str
    title: str
    body: str
    data: dict[str, Any]
    priority: str
    scheduled: bool
    read: bool
    created_at: datetime


class DispatchResponse(BaseModel):
    """Outcome of a send or digest request."""

    model_config = ConfigDict(from_attributes=True)

    notification_id: int
    priority: Priority
    delay_seconds: int
    schedule_id: int | None = None
    delivered: bool


class QuietHoursSchema(BaseModel):
    enabled: bool = True
    start_hour: int = Field(22, ge=0, le=23)
    end_hour: int = Field(7, ge=0, le=23)


class PreferencesSchema(BaseModel):
    """Notification preferences as exposed over HTTP."""

    model_config = ConfigDict(from_attributes=True)

    quiet_hours: QuietHoursSchema = Field(default_factory=QuietHoursSchema)
    priority_threshold: Priority = Priority.NORMAL
    grouping_enabled: bool = True
    smart_timing_enabled: bool = True
    digest_enabled: bool = False
    digest_interval: DigestInterval = DigestInterval.DAILY
    timezone: str = Field("UTC", max_length=64)

    @model_validator(mode="after")
    def _check_timezone(self) -> "PreferencesSchema":
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as err:
            raise ValueError(f"Unknown timezone {self.timezone!r}") from err
        return self

    def to_preferences(self, user_id: str) -> NotificationPreferences:
        return NotificationPreferences(
            user_id=user_id,
            quiet_hours=QuietHours(
                enabled=self.quiet_hours.enabled,
                start_hour=self.quiet_hours.start_hour,
                end_hour=self.quiet_hours.end_hour,
            ),
            priority_threshold=self.priority_threshold,
            grouping_enabled=self.grouping_enabled,
            smart_timing_enabled=self.smart_timing_enabled,
            digest_enabled=self.digest_enabled,
            digest_interval=self.digest_interval,
            timezone=self.timezone,
        )

    @classmethod
    def from_preferences(cls, prefs: NotificationPreferences) -> "PreferencesSchema":
        return cls(
            quiet_hours=QuietHoursSchema(
                enabled=prefs.quiet_hours.enabled,
                start_hour=prefs.quiet_hours.start_hour,
                end_hour=prefs.quiet_hours.end_hour,
            ),
            priority_threshold=prefs.priority_threshold,
            grouping_enabled=prefs.grouping_enabled,
            smart_timing_enabled=prefs.smart_timing_enabled,
            digest_enabled=prefs.digest_enabled,
            digest_interval=prefs.digest_interval,
            timezone=prefs.timezone,
        )
