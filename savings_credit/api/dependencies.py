"""Dependency injection for FastAPI endpoints"""

from fastapi import BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from savings_credit.domain.models import Notifier
from savings_credit.infrastructure.clients.notifications import BackgroundNotifier, NotificationClient
from savings_credit.infrastructure.database.repositories import (
    CreditRepository,
    NotificationRepository,
    SavingsRepository,
)
from savings_credit.infrastructure.database.session import get_db
from savings_credit.services.credit import CreditService
from savings_credit.services.notifications import NotificationService
from savings_credit.services.savings import SavingsService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_notification_client() -> NotificationClient:
    """Provide notification webhook client instance"""
    return NotificationClient()


def get_notifier(
    background_tasks: BackgroundTasks,
    client: NotificationClient = Depends(get_notification_client),
) -> Notifier:
    """Webhook delivery runs after the response has been sent"""
    return BackgroundNotifier(background_tasks, client)


def get_notification_service(
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> NotificationService:
    return NotificationService(NotificationRepository(db), notifier)


def get_savings_service(
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
) -> SavingsService:
    return SavingsService(SavingsRepository(db), notifications)


def get_credit_service(
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
) -> CreditService:
    return CreditService(CreditRepository(db), notifications)
