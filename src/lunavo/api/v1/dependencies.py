"""Shared API dependencies for services and common functionality."""

import asyncio
import weakref
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from lunavo.core.escalation_rules import load_escalation_rules
from lunavo.core.settings import settings
from lunavo.db.session import get_db
from lunavo.repositories import (
    EscalationRepository,
    NotificationRepository,
    PostRepository,
    UserRepository,
)
from lunavo.services.escalation import EscalationService
from lunavo.services.escalation_classifier import EscalationClassifier
from lunavo.services.failures import FailureLog
from lunavo.services.notification_digest import DigestService
from lunavo.services.notification_dispatcher import NotificationDispatcher
from lunavo.services.ports import Notifier
from lunavo.services.push import get_push_client
from lunavo.services.text_signals import TextSignalExtractor

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]

# post_id -> lock, shared by every request in this process
_escalation_locks: weakref.WeakValueDictionary[int, asyncio.Lock] = weakref.WeakValueDictionary()


@lru_cache(maxsize=1)
def get_failure_log() -> FailureLog:
    """Return the process-wide failure sink."""
    return FailureLog()


@lru_cache(maxsize=1)
def get_classifier() -> EscalationClassifier:
    """Build the classifier once from the configured rule table."""
    return EscalationClassifier(
        load_escalation_rules(settings.escalation_rules_path),
        confidence_threshold=settings.escalation_confidence_threshold,
        report_threshold=settings.escalation_report_threshold,
    )


@lru_cache(maxsize=1)
def get_extractor() -> TextSignalExtractor:
    return TextSignalExtractor()


def get_notifier() -> Notifier | None:
    """Return the push client, or None when push delivery is switched off."""
    client = get_push_client()
    return client if client.enabled else None


def get_dispatcher(db: SessionDep) -> NotificationDispatcher:
    return NotificationDispatcher(
        NotificationRepository(db),
        UserRepository(db),
        notifier=get_notifier(),
        failures=get_failure_log(),
    )


DispatcherDep = Annotated[NotificationDispatcher, Depends(get_dispatcher)]


def get_escalation_service(db: SessionDep, dispatcher: DispatcherDep) -> EscalationService:
    return EscalationService(
        EscalationRepository(db),
        PostRepository(db),
        dispatcher=dispatcher,
        classifier=get_classifier(),
        failures=get_failure_log(),
        locks=_escalation_locks,
    )


def get_digest_service(db: SessionDep, dispatcher: DispatcherDep) -> DigestService:
    return DigestService(NotificationRepository(db), dispatcher, failures=get_failure_log())


EscalationServiceDep = Annotated[EscalationService, Depends(get_escalation_service)]
DigestServiceDep = Annotated[DigestService, Depends(get_digest_service)]
ClassifierDep = Annotated[EscalationClassifier, Depends(get_classifier)]
ExtractorDep = Annotated[TextSignalExtractor, Depends(get_extractor)]
