"""Notification webhook client with exponential backoff retry logic"""

import asyncio
import logging
from dataclasses import asdict
from typing import Any, Dict

import httpx
from fastapi import BackgroundTasks

from savings_credit.config import settings
from savings_credit.domain.models import Notification
from savings_credit.infrastructure.observability.metrics import (
    notification_failure_counter,
    webhook_latency_histogram,
)


class NotificationClient:
    """Client for posting user notifications to the delivery service"""

    def __init__(self, webhook_url: str | None = None, timeout: float | None = None):
        self.webhook_url = webhook_url or settings.notification_webhook_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base

    async def send_notification(self, payload: Dict[str, Any]) -> None:
        """
        Post a notification with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^(attempt-1))
        - Retries on 5xx/4xx errors and network failures
        - Re-raises the last error once retries are exhausted
        """
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                        return

                except (httpx.HTTPStatusError, httpx.RequestError):
                    attempt += 1
                    if attempt >= self.max_retries:
                        raise

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)

    async def deliver(self, payload: Dict[str, Any]) -> None:
        """Send and absorb the final failure; delivery is best effort"""
        try:
            await self.send_notification(payload)
        except (httpx.HTTPStatusError, httpx.RequestError) as e:
            notification_failure_counter.inc()
            logging.warning(
                f"Notification delivery failed: {e}",
                extra={"user_id": payload.get("user_id"), "step": "notification_delivery"},
            )


class BackgroundNotifier:
    """Queues notification delivery to run after the response is sent"""

    def __init__(self, background_tasks: BackgroundTasks, client: NotificationClient):
        self.background_tasks = background_tasks
        self.client = client

    def notify(self, notification: Notification) -> None:
        self.background_tasks.add_task(self.client.deliver, asdict(notification))
