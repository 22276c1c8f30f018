"""Pytest configuration and shared fixtures.

Environment overrides are applied before any application module is
imported, since ``config`` reads the environment at import time.
"""

import os
import uuid

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.pop("FIREBASE_CREDENTIALS_PATH", None)
os.environ.pop("FIREBASE_PROJECT_ID", None)

from collections.abc import Generator
from typing import Any, Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from api.routes.auth import create_access_token
from app import app
from config import SCHOOL_ROLES
from core.database import get_db, get_session_factory
from core.dependencies import get_notification_service, get_realtime_hub
from models.base import Base
from schemas.notification import NotificationMessage
from schemas.quiz import CreateQuizRequest
from schemas.user import User
from utils.quiz_manager import QuizManager
from utils.realtime_hub import RealtimeHub
from utils.school_manager import SchoolManager
from utils.user_manager import UserManager

DEFAULT_QUESTIONS = [
    {"question": "2 + 2 = ?", "options": ["3", "4", "5"], "correct_answer": 1},
    {"question": "Ibu kota Indonesia?", "options": ["Jakarta", "Bandung"], "correct_answer": 0},
    {"question": "H2O adalah?", "options": ["Air", "Garam", "Gula", "Udara"], "correct_answer": 0},
    {"question": "Warna daun?", "options": ["Merah", "Hijau"], "correct_answer": 1},
]


class RecordingNotifier:
    """Stands in for NotificationService and records what would be sent."""

    def __init__(self):
        self.device_sends: List[Tuple[List[str], NotificationMessage]] = []
        self.topic_sends: List[Tuple[str, NotificationMessage]] = []
        self.subscriptions: List[Tuple[List[str], str]] = []
        self.unsubscriptions: List[Tuple[List[str], str]] = []

    async def send_to_devices(self, tokens, notification: NotificationMessage) -> int:
        self.device_sends.append((list(tokens), notification))
        return len(tokens)

    async def send_to_topic(self, topic: str, notification: NotificationMessage) -> bool:
        self.topic_sends.append((topic, notification))
        return True

    async def subscribe_to_topic(self, tokens: List[str], topic: str) -> bool:
        self.subscriptions.append((tokens, topic))
        return True

    async def unsubscribe_from_topic(self, tokens: List[str], topic: str) -> bool:
        self.unsubscriptions.append((tokens, topic))
        return True


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def session_factory() -> Generator[sessionmaker, None, None]:
    """A fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def hub() -> RealtimeHub:
    return RealtimeHub()


@pytest.fixture
def client(session_factory, notifier, hub) -> Generator[TestClient, None, None]:
    """Test client wired to the per-test database, notifier and hub."""

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_notification_service] = lambda: notifier
    app.dependency_overrides[get_realtime_hub] = lambda: hub
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_school(db_session):
    def _make(domain: str = "sman1.sch.id", name: str = "SMA Negeri 1 Bogor"):
        return SchoolManager(db_session).create_school(
            name=name, domain=domain, address="Jl. Ir. H. Juanda No. 16, Bogor"
        )

    return _make


@pytest.fixture
def make_user(db_session):
    def _make(
        role: str = "masyarakat",
        email: Optional[str] = None,
        full_name: str = "Test User",
        password: str = "rahasia123",
    ) -> User:
        manager = UserManager(db_session)
        if email is None:
            domain = "sman1.sch.id" if role in SCHOOL_ROLES else "gmail.com"
            email = f"{role}.{uuid.uuid4().hex[:8]}@{domain}"
        if role == "superadmin":
            return manager.create_superadmin(full_name, email, password)
        return manager.create_user(full_name, email, password, role)

    return _make


@pytest.fixture
def make_quiz(db_session):
    def _make(creator: User, questions: Optional[List[Dict[str, Any]]] = None, **overrides):
        fields = {
            "title": "Kuis Sains",
            "description": "Kuis dasar sains",
            "subject": "Sains",
            "questions": questions or DEFAULT_QUESTIONS,
            "time_limit": 15,
            "max_attempts": 3,
            "passing_score": 70,
        }
        fields.update(overrides)
        return QuizManager(db_session).create_quiz(CreateQuizRequest(**fields), creator)

    return _make


@pytest.fixture
def school(make_school):
    return make_school()


@pytest.fixture
def teacher(make_user, school) -> User:
    return make_user("guru", email="bu.sari@sman1.sch.id", full_name="Sari Wulandari")


@pytest.fixture
def student(make_user, school) -> User:
    return make_user("murid", email="budi@sman1.sch.id", full_name="Budi Santoso")


@pytest.fixture
def member(make_user) -> User:
    return make_user("masyarakat", email="warga@gmail.com", full_name="Rina Warga")


@pytest.fixture
def admin(make_user) -> User:
    return make_user("superadmin", email="admin@ecoterra.id", full_name="Admin")


@pytest.fixture
def auth_headers():
    """Build the bearer header for a user."""

    def _headers(user: User) -> Dict[str, str]:
        token = create_access_token(data={"sub": user.user_id})
        return {"Authorization": f"Bearer {token}"}

    return _headers
