"""Credit requests, review decisions and repayments"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from savings_credit.config import settings
from savings_credit.domain.exceptions import BadRequestError, ConflictError, NotFoundError
from savings_credit.domain.interest import summarize_repayments
from savings_credit.domain.models import (
    CreditStatus,
    Notification,
    NotificationType,
    Notifier,
    Page,
    RepaymentSummary,
)
from savings_credit.domain.money import exact_money
from savings_credit.domain.references import (
    DIGITS,
    REPAYMENT_PREFIX,
    REPAYMENT_SUFFIX_LENGTH,
    generate_unique_reference,
)
from savings_credit.infrastructure.database.models import CreditRepayment, CreditRequest
from savings_credit.infrastructure.database.repositories import CreditRepository
from savings_credit.infrastructure.observability.logging import log_credit_event
from savings_credit.infrastructure.observability.metrics import (
    credit_repayment_counter,
    credit_request_counter,
    reference_collision_counter,
)
from savings_credit.services.notify import notify_safely
from savings_credit.utils.pagination import page_offset, total_pages

MIN_DURATION_MONTHS = 1
MAX_DURATION_MONTHS = 120


class CreditService:
    """Credit lifecycle: pending -> approved | rejected, then repayments"""

    def __init__(self, repository: CreditRepository, notifier: Notifier):
        self.repository = repository
        self.notifier = notifier

    def request_credit(self, user_id: str, amount: Decimal, purpose: str, duration_months: int) -> CreditRequest:
        """
        Submit a credit request at the current fixed interest rate.

        Raises:
            BadRequestError: amount not positive or not whole cents, or
                duration out of range
            ConflictError: the user already has a pending request
        """
        amount = exact_money(amount)
        if amount <= 0:
            raise BadRequestError("Amount must be greater than 0")

        if not MIN_DURATION_MONTHS <= duration_months <= MAX_DURATION_MONTHS:
            raise BadRequestError(
                f"Duration must be between {MIN_DURATION_MONTHS} and {MAX_DURATION_MONTHS} months"
            )

        if self.repository.find_pending_request_by_user(user_id):
            raise ConflictError("You already have a pending credit request")

        credit_request = self.repository.create_request(
            user_id=user_id,
            amount=amount,
            purpose=purpose,
            duration_months=duration_months,
            interest_rate=settings.credit_interest_rate,
        )

        credit_request_counter.labels(status=CreditStatus.PENDING).inc()
        log_credit_event("requested", user_id, str(credit_request.id), amount=amount)
        return credit_request

    def get_credit_requests(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None,
    ) -> Page:
        requests = self.repository.list_requests(user_id, status, page_offset(page, limit), limit)
        total = self.repository.count_requests(user_id, status)
        return Page(items=requests, total=total, page=page, limit=limit, total_pages=total_pages(total, limit))

    def get_credit_request(self, request_id: uuid.UUID, user_id: str, for_update: bool = False) -> CreditRequest:
        """Fetch a request owned by the user; someone else's looks missing"""
        credit_request = self.repository.find_request_by_id(request_id, for_update=for_update)
        if not credit_request or credit_request.user_id != user_id:
            raise NotFoundError("Credit request not found")
        return credit_request

    def approve_request(self, request_id: uuid.UUID, approver_id: str) -> CreditRequest:
        credit_request = self._get_pending(request_id)
        credit_request = self.repository.update_request(
            credit_request,
            status=CreditStatus.APPROVED,
            approved_by=approver_id,
            approved_at=datetime.now(timezone.utc),
        )

        credit_request_counter.labels(status=CreditStatus.APPROVED).inc()
        log_credit_event("approved", credit_request.user_id, str(credit_request.id))
        notify_safely(
            self.notifier,
            Notification(
                user_id=credit_request.user_id,
                type=NotificationType.IN_APP,
                title="Credit request approved",
                message=f"Your credit request of {credit_request.amount:.2f} has been approved.",
            ),
        )
        return credit_request

    def reject_request(self, request_id: uuid.UUID, approver_id: str, reason: str) -> CreditRequest:
        credit_request = self._get_pending(request_id)
        credit_request = self.repository.update_request(
            credit_request,
            status=CreditStatus.REJECTED,
            approved_by=approver_id,
            rejection_reason=reason,
        )

        credit_request_counter.labels(status=CreditStatus.REJECTED).inc()
        log_credit_event("rejected", credit_request.user_id, str(credit_request.id))
        notify_safely(
            self.notifier,
            Notification(
                user_id=credit_request.user_id,
                type=NotificationType.IN_APP,
                title="Credit request rejected",
                message=f"Your credit request of {credit_request.amount:.2f} was rejected: {reason}",
            ),
        )
        return credit_request

    def get_repayment_summary(self, request_id: uuid.UUID, user_id: str) -> RepaymentSummary:
        credit_request = self.get_credit_request(request_id, user_id)
        return self._summarize(credit_request)

    def make_repayment(self, request_id: uuid.UUID, user_id: str, amount: Decimal) -> CreditRepayment:
        """
        Record a repayment against an approved request.

        The remaining balance is recomputed from the repayment history on
        every call.

        Raises:
            NotFoundError: request missing or not owned by the user
            BadRequestError: request not approved, amount not positive, or
                amount exceeds the remaining balance
        """
        credit_request = self.get_credit_request(request_id, user_id, for_update=True)

        if credit_request.status != CreditStatus.APPROVED:
            raise BadRequestError("Credit request must be approved before making repayments")

        amount = exact_money(amount)
        if amount <= 0:
            raise BadRequestError("Payment amount must be greater than 0")

        summary = self._summarize(credit_request)
        if amount > summary.remaining:
            raise BadRequestError(
                f"Payment amount exceeds remaining balance. Remaining: {summary.remaining:.2f}"
            )

        reference_number = generate_unique_reference(
            REPAYMENT_PREFIX,
            self.repository.repayment_reference_exists,
            alphabet=DIGITS,
            length=REPAYMENT_SUFFIX_LENGTH,
            max_attempts=settings.reference_max_attempts,
            on_collision=reference_collision_counter.labels(table="repayments").inc,
        )
        repayment = self.repository.create_repayment(credit_request.id, amount, reference_number)

        credit_repayment_counter.inc()
        log_credit_event("repaid", user_id, str(credit_request.id), amount=amount, reference_number=reference_number)
        notify_safely(
            self.notifier,
            Notification(
                user_id=user_id,
                type=NotificationType.IN_APP,
                title="Repayment received",
                message=(
                    f"We received your repayment of {amount:.2f}. "
                    f"Remaining balance: {summary.remaining - amount:.2f}. Ref: {reference_number}"
                ),
            ),
        )
        return repayment

    def get_repayment_history(self, request_id: uuid.UUID, user_id: str, page: int = 1, limit: int = 10) -> Page:
        credit_request = self.get_credit_request(request_id, user_id)
        repayments = self.repository.list_repayments(credit_request.id, page_offset(page, limit), limit)
        total = self.repository.count_repayments(credit_request.id)
        return Page(items=repayments, total=total, page=page, limit=limit, total_pages=total_pages(total, limit))

    def _get_pending(self, request_id: uuid.UUID) -> CreditRequest:
        credit_request = self.repository.find_request_by_id(request_id, for_update=True)
        if not credit_request:
            raise NotFoundError("Credit request not found")
        if credit_request.status != CreditStatus.PENDING:
            raise BadRequestError(f"Credit request is already {credit_request.status}")
        return credit_request

    def _summarize(self, credit_request: CreditRequest) -> RepaymentSummary:
        return summarize_repayments(
            credit_request.amount,
            credit_request.interest_rate,
            self.repository.list_repayment_amounts(credit_request.id),
        )
