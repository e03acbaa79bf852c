"""Domain models - pure Python dataclasses and constants for business entities"""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Protocol


class AccountStatus:
    ACTIVE = "active"
    FROZEN = "frozen"


class TransactionType:
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class TransactionStatus:
    COMPLETED = "completed"


class CreditStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    ALL = (PENDING, APPROVED, REJECTED)


class NotificationType:
    EMAIL = "email"
    SMS = "sms"
    IN_APP = "in_app"

    ALL = (EMAIL, SMS, IN_APP)


@dataclass
class LedgerEntry:
    """Fields of a transaction record written alongside a balance change"""

    type: str  # "deposit" or "withdrawal"
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    description: str
    reference_number: str
    status: str = TransactionStatus.COMPLETED


@dataclass
class RepaymentSummary:
    """Derived repayment position of a credit request"""

    total_owed: Decimal
    total_repaid: Decimal
    remaining: Decimal


@dataclass
class Page:
    """One page of a paginated listing"""

    items: List
    total: int
    page: int
    limit: int
    total_pages: int


@dataclass
class Notification:
    """Outbound user notification"""

    user_id: str
    type: str  # "email", "sms" or "in_app"
    title: str
    message: str


class Notifier(Protocol):
    """Fire-and-forget notification sink"""

    def notify(self, notification: Notification) -> None: ...
