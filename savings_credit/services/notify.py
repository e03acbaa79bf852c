"""Best-effort notification dispatch shared by the services"""

import logging

from savings_credit.domain.models import Notification, Notifier
from savings_credit.infrastructure.observability.metrics import notification_failure_counter


def notify_safely(notifier: Notifier, notification: Notification) -> None:
    """Hand a notification to the notifier; failures never reach the caller"""
    try:
        notifier.notify(notification)
    except Exception as e:
        notification_failure_counter.inc()
        logging.warning(
            f"Notification dropped: {e}",
            extra={"user_id": notification.user_id, "step": "notification_dispatch"},
        )
