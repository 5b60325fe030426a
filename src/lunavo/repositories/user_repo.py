"""Recipient lookup and notification preference storage."""
from __future__ import annotations

from sqlalchemy.orm import Session

from lunavo.core.enums import DigestInterval, Priority
from lunavo.models.notification import UserNotificationPreferences
from lunavo.models.user import UserAccount
from lunavo.repositories.base import store_errors
from lunavo.services.notification_priority import NotificationPreferences, QuietHours
from lunavo.services.ports import Recipient

__all__ = ["UserRepository", "preferences_from_row"]


def preferences_from_row(row: UserNotificationPreferences) -> NotificationPreferences:
    return NotificationPreferences(
        user_id=row.user_id,
        quiet_hours=QuietHours(
            enabled=row.quiet_hours_enabled,
            start_hour=row.quiet_hours_start,
            end_hour=row.quiet_hours_end,
        ),
        priority_threshold=Priority(row.priority_threshold),
        grouping_enabled=row.grouping_enabled,
        smart_timing_enabled=row.smart_timing_enabled,
        digest_enabled=row.digest_enabled,
        digest_interval=DigestInterval(row.digest_interval),
        timezone=row.timezone,
    )


class UserRepository:
    """Resolve recipients and persist their delivery preferences."""

    def __init__(self, session: Session) -> None:
        self.session = session

    async def upsert_user(
        self,
        user_id: str,
        *,
        role: str = "student",
        push_token: str | None = None,
        display_name: str | None = None,
    ) -> UserAccount:
        with store_errors(self.session, "upsert_user"):
            account = self.session.get(UserAccount, user_id)
            if account is None:
                account = UserAccount(id=user_id)
                self.session.add(account)
            account.role = role
            account.push_token = push_token
            account.display_name = display_name
            self.session.commit()
            self.session.refresh(account)
        return account

    async def get_recipient(self, user_id: str) -> Recipient | None:
        """Return push and preference data for a user; None if unknown everywhere."""
        with store_errors(self.session, "get_recipient"):
            account = self.session.get(UserAccount, user_id)
            prefs_row = self.session.get(UserNotificationPreferences, user_id)
        if account is None and prefs_row is None:
            return None
        return Recipient(
            user_id=user_id,
            role=account.role if account is not None else "student",
            push_token=account.push_token if account is not None else None,
            preferences=preferences_from_row(prefs_row) if prefs_row is not None else None,
        )

    async def save_preferences(self, prefs: NotificationPreferences) -> NotificationPreferences:
        with store_errors(self.session, "save_preferences"):
            row = self.session.get(UserNotificationPreferences, prefs.user_id)
            if row is None:
                row = UserNotificationPreferences(user_id=prefs.user_id)
                self.session.add(row)
            row.quiet_hours_enabled = prefs.quiet_hours.enabled
            row.quiet_hours_start = prefs.quiet_hours.start_hour
            row.quiet_hours_end = prefs.quiet_hours.end_hour
            row.priority_threshold = Priority(prefs.priority_threshold).value
            row.grouping_enabled = prefs.grouping_enabled
            row.smart_timing_enabled = prefs.smart_timing_enabled
            row.digest_enabled = prefs.digest_enabled
            row.digest_interval = DigestInterval(prefs.digest_interval).value
            row.timezone = prefs.timezone
            self.session.commit()
            self.session.refresh(row)
        return preferences_from_row(row)
