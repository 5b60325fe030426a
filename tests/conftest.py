# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from datetime import UTC, datetime

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("PUSH_ENABLED", "false")

from lunavo.db.session import Base, build_engine
from lunavo.db.session import get_db as app_get_session
from lunavo.main import app as fastapi_app
from lunavo.models import Post, UserAccount
from lunavo.repositories import (
    EscalationRepository,
    NotificationRepository,
    PostRepository,
    UserRepository,
)
from lunavo.services.failures import FailureLog
from lunavo.services.notification_dispatcher import NotificationDispatcher

TEST_DB_URL = "sqlite://"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = build_engine(TEST_DB_URL)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Ensure each test sees a clean database; repositories commit.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def failures() -> FailureLog:
    return FailureLog(capacity=50)


@pytest.fixture()
def notification_repo(db_session: Session) -> NotificationRepository:
    return NotificationRepository(db_session)


@pytest.fixture()
def user_repo(db_session: Session) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture()
def post_repo(db_session: Session) -> PostRepository:
    return PostRepository(db_session)


@pytest.fixture()
def escalation_repo(db_session: Session) -> EscalationRepository:
    return EscalationRepository(db_session)


@pytest.fixture()
def dispatcher(
    notification_repo: NotificationRepository,
    user_repo: UserRepository,
    failures: FailureLog,
) -> NotificationDispatcher:
    """Dispatcher over the test database with no push channel."""
    return NotificationDispatcher(notification_repo, user_repo, failures=failures)


@pytest.fixture()
def noon() -> datetime:
    """A weekday midday instant, outside quiet hours and smart-timing windows."""
    return datetime(2025, 3, 12, 12, 0, tzinfo=UTC)


@pytest.fixture()
def counselor(db_session: Session) -> Iterator[UserAccount]:
    """A responder with a registered push token."""
    account = UserAccount(
        id="counselor-1",
        role="counselor",
        push_token="ExponentPushToken[counselor]",
        display_name="Counselor",
    )
    db_session.add(account)
    db_session.commit()
    yield account


@pytest.fixture()
def test_post(db_session: Session) -> Iterator[Post]:
    """A stored, unescalated post."""
    post = Post(
        author_id="student-1",
        category="academic",
        title="Exam week",
        content="Looking for study tips before my exam",
    )
    db_session.add(post)
    db_session.commit()
    db_session.refresh(post)
    yield post
