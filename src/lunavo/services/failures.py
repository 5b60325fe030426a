"""Observable sink for non-fatal I/O failures.

Persistence and push errors never abort the surrounding operation. They are
logged and appended here so callers and tests can see what degraded.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from lunavo.core.settings import settings
from lunavo.db.time import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FailureRecord:
    operation: str
    error_type: str
    message: str
    context: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=utcnow)


class FailureLog:
    """Bounded, in-memory record of swallowed failures."""

    def __init__(self, capacity: int | None = None) -> None:
        self._records: deque[FailureRecord] = deque(
            maxlen=capacity or settings.failure_log_capacity
        )

    def record(self, operation: str, error: BaseException, **context: Any) -> FailureRecord:
        """Log ``error`` and keep it for later inspection."""
        entry = FailureRecord(
            operation=operation,
            error_type=type(error).__name__,
            message=str(error),
            context=context,
        )
        self._records.append(entry)
        logger.warning("%s failed: %s (%s)", operation, error, context or "no context")
        return entry

    @property
    def records(self) -> list[FailureRecord]:
        return list(self._records)

    def for_operation(self, operation: str) -> list[FailureRecord]:
        return [entry for entry in self._records if entry.operation == operation]

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)
