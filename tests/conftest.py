"""Pytest fixtures for testing"""

import pytest
from typing import Dict, Generator, List
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from savings_credit.api.dependencies import get_notifier
from savings_credit.api.main import create_app
from savings_credit.config import settings
from savings_credit.domain.models import Notification
from savings_credit.infrastructure.database.models import Base
from savings_credit.infrastructure.database.repositories import (
    CreditRepository,
    NotificationRepository,
    SavingsRepository,
)
from savings_credit.infrastructure.database.session import get_db
from savings_credit.services.credit import CreditService
from savings_credit.services.notifications import NotificationService
from savings_credit.services.savings import SavingsService


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class RecordingNotifier:
    """Notifier that keeps notifications in memory"""

    def __init__(self):
        self.sent: List[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.sent.append(notification)


def make_token(user_id: str, role: str = "user") -> str:
    return jwt.encode({"sub": user_id, "role": role}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def savings_service(db: Session, notifier: RecordingNotifier) -> SavingsService:
    return SavingsService(SavingsRepository(db), notifier)


@pytest.fixture
def credit_service(db: Session, notifier: RecordingNotifier) -> CreditService:
    return CreditService(CreditRepository(db), notifier)


@pytest.fixture
def notification_service(db: Session, notifier: RecordingNotifier) -> NotificationService:
    return NotificationService(NotificationRepository(db), notifier)


@pytest.fixture
def client(db: Session, notifier: RecordingNotifier) -> TestClient:
    """Create FastAPI test client with test database and in-memory delivery"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    return TestClient(app)


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token('user-1')}"}


@pytest.fixture
def other_user_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token('user-2')}"}


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token('admin-1', role='admin')}"}
