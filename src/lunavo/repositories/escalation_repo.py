"""Data access helpers for escalation records."""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from lunavo.db.time import utcnow
from lunavo.models.escalation import EscalationRecord
from lunavo.repositories.base import store_errors

__all__ = ["EscalationRepository"]


class EscalationRepository:
    """Persistence for escalation records; one record per post."""

    def __init__(self, session: Session) -> None:
        self.session = session

    async def create_escalation(
        self,
        *,
        post_id: int,
        level: str,
        reason: str,
        assigned_to: str | None = None,
        detected_at: datetime | None = None,
    ) -> EscalationRecord:
        """Insert a pending escalation.

        Raises:
            StoreError: If the insert fails, including when the post already
                has an escalation.
        """
        record = EscalationRecord(
            post_id=post_id,
            level=level,
            reason=reason,
            assigned_to=assigned_to,
            detected_at=detected_at or utcnow(),
        )
        with store_errors(self.session, "create_escalation"):
            self.session.add(record)
            self.session.commit()
            self.session.refresh(record)
        return record

    async def get_escalation(self, escalation_id: int) -> EscalationRecord | None:
        with store_errors(self.session, "get_escalation"):
            return self.session.get(EscalationRecord, escalation_id)

    async def get_escalation_for_post(self, post_id: int) -> EscalationRecord | None:
        with store_errors(self.session, "get_escalation_for_post"):
            return self.session.scalars(
                select(EscalationRecord).where(EscalationRecord.post_id == post_id)
            ).first()

    async def update_escalation(
        self, escalation_id: int, changes: Mapping[str, Any]
    ) -> EscalationRecord | None:
        with store_errors(self.session, "update_escalation"):
            record = self.session.get(EscalationRecord, escalation_id)
            if record is None:
                return None
            for key, value in changes.items():
                setattr(record, key, value)
            self.session.commit()
            self.session.refresh(record)
        return record

    async def list_escalations(
        self,
        *,
        statuses: Sequence[str] | None = None,
        assigned_to: str | None = None,
        level: str | None = None,
    ) -> list[EscalationRecord]:
        """Return escalations matching the given filters, oldest first."""
        stmt = select(EscalationRecord)
        if statuses:
            stmt = stmt.where(EscalationRecord.status.in_(list(statuses)))
        if assigned_to is not None:
            stmt = stmt.where(EscalationRecord.assigned_to == assigned_to)
        if level is not None:
            stmt = stmt.where(EscalationRecord.level == level)
        stmt = stmt.order_by(EscalationRecord.detected_at.asc(), EscalationRecord.id.asc())
        with store_errors(self.session, "list_escalations"):
            return list(self.session.scalars(stmt))
