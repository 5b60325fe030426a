"""Shared helpers for SQLAlchemy-backed stores."""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lunavo.services.ports import StoreError

logger = logging.getLogger(__name__)


@contextmanager
def store_errors(session: Session, operation: str) -> Iterator[None]:
    """Roll back and re-raise database failures as ``StoreError``."""
    try:
        yield
    except SQLAlchemyError as exc:
        session.rollback()
        logger.debug("Rolled back after %s failure: %s", operation, exc)
        raise StoreError(f"{operation} failed: {exc}") from exc
