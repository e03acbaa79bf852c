"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from savings_credit.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_ledger_mutation(
    user_id: str,
    account_id: str,
    transaction_type: str,
    amount: Decimal,
    balance_before: Decimal,
    balance_after: Decimal,
    reference_number: str,
) -> None:
    """Log a committed balance change for reconciliation"""
    logging.info(
        "Ledger mutation committed",
        extra={
            "user_id": user_id,
            "account_id": account_id,
            "step": "ledger_mutation",
            "transaction_type": transaction_type,
            "amount": str(amount),
            "balance_before": str(balance_before),
            "balance_after": str(balance_after),
            "reference_number": reference_number,
        },
    )


def log_credit_event(
    event: str,
    user_id: str,
    credit_request_id: str,
    amount: Optional[Decimal] = None,
    reference_number: Optional[str] = None,
) -> None:
    """Log a credit lifecycle event (requested, approved, rejected, repaid)"""
    logging.info(
        f"Credit {event}",
        extra={
            "user_id": user_id,
            "credit_request_id": credit_request_id,
            "step": f"credit_{event}",
            "amount": str(amount) if amount is not None else None,
            "reference_number": reference_number,
        },
    )
