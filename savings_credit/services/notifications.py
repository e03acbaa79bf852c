"""Notification inbox: persist first, then hand off for delivery"""

import uuid

from savings_credit.domain.exceptions import BadRequestError, NotFoundError
from savings_credit.domain.models import Notification, NotificationType, Notifier, Page
from savings_credit.infrastructure.database.models import UserNotification
from savings_credit.infrastructure.database.repositories import NotificationRepository
from savings_credit.utils.pagination import page_offset, total_pages


class NotificationService:
    """
    Records every notification in the recipient's inbox as unread, then
    passes it to the delivery notifier.

    Savings and credit services use this as their notifier, so each
    ledger or credit event lands in the inbox as well as on the webhook.
    """

    def __init__(self, repository: NotificationRepository, delivery: Notifier):
        self.repository = repository
        self.delivery = delivery

    def notify(self, notification: Notification) -> UserNotification:
        """
        Raises:
            BadRequestError: a field is empty or the type is unknown
            PersistenceError: the inbox entry could not be stored
        """
        if not (notification.user_id and notification.type and notification.title and notification.message):
            raise BadRequestError("Missing required notification fields")
        if notification.type not in NotificationType.ALL:
            raise BadRequestError("Invalid notification type")

        record = self.repository.create(notification)
        self.delivery.notify(notification)
        return record

    def list_notifications(self, user_id: str, page: int = 1, limit: int = 10) -> Page:
        notifications = self.repository.list_by_user(user_id, page_offset(page, limit), limit)
        total = self.repository.count_by_user(user_id)
        return Page(items=notifications, total=total, page=page, limit=limit, total_pages=total_pages(total, limit))

    def mark_as_read(self, user_id: str, notification_id: uuid.UUID) -> UserNotification:
        """Another user's notification is reported as missing"""
        notification = self.repository.find_by_id(notification_id)
        if not notification or notification.user_id != user_id:
            raise NotFoundError("Notification not found")
        return self.repository.mark_read(notification)
