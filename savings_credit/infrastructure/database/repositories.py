"""Data access layer for savings and credit entities"""

import logging
import uuid
from dataclasses import asdict
from decimal import Decimal
from typing import List, Optional, Tuple
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from savings_credit.infrastructure.database.models import (
    SavingsAccount,
    SavingsTransaction,
    CreditRequest,
    CreditRepayment,
    UserNotification,
)
from savings_credit.domain.exceptions import ConflictError, PersistenceError
from savings_credit.domain.models import AccountStatus, CreditStatus, LedgerEntry, Notification
from savings_credit.infrastructure.observability.metrics import ledger_failure_counter


class SavingsRepository:
    """Repository for savings accounts and their transaction log"""

    def __init__(self, db: Session):
        self.db = db

    def find_account_by_user_id(self, user_id: str, for_update: bool = False) -> Optional[SavingsAccount]:
        """Fetch a user's account, optionally locking the row until commit"""
        query = self.db.query(SavingsAccount).filter(SavingsAccount.user_id == user_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def create_account(
        self,
        user_id: str,
        name: str,
        currency: str,
        opening_entry: Optional[LedgerEntry] = None,
    ) -> SavingsAccount:
        """
        Persist a new account, with its opening deposit in the same commit.

        Raises:
            ConflictError: the user already owns an account
            PersistenceError: any other storage failure, rolled back
        """
        db_account = SavingsAccount(
            user_id=user_id,
            name=name,
            currency=currency,
            balance=opening_entry.balance_after if opening_entry else Decimal("0"),
            status=AccountStatus.ACTIVE,
        )
        try:
            self.db.add(db_account)
            self.db.flush()  # Get ID without committing

            if opening_entry is not None:
                self.db.add(SavingsTransaction(savings_account_id=db_account.id, **asdict(opening_entry)))

            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            # Only a duplicate user_id is a conflict
            if self.find_account_by_user_id(user_id) is not None:
                raise ConflictError("Savings account already exists") from e
            logging.error(f"Account creation rejected by the store: {e}", extra={"user_id": user_id})
            raise PersistenceError("Failed to create savings account") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logging.error(f"Account creation failed: {e}", extra={"user_id": user_id})
            raise PersistenceError("Failed to create savings account") from e

        return db_account

    def update_account(self, account: SavingsAccount, **fields) -> SavingsAccount:
        """Apply non-ledger field changes (name, currency, status)"""
        for key, value in fields.items():
            setattr(account, key, value)
        self.db.commit()
        return account

    def delete_account(self, account: SavingsAccount) -> None:
        self.db.delete(account)
        self.db.commit()

    def update_balance_and_create_transaction(
        self,
        account_id: uuid.UUID,
        new_balance: Decimal,
        entry: LedgerEntry,
    ) -> Tuple[SavingsAccount, SavingsTransaction]:
        """
        Ledger mutation: write the new balance and its transaction record as one unit.

        Both rows are committed together or not at all. Failures are not
        retried; preconditions were validated by the caller, so anything
        that goes wrong here is an infrastructure problem.

        Raises:
            PersistenceError: the commit failed and was rolled back
        """
        account = self.db.get(SavingsAccount, account_id)
        if account is None:
            raise PersistenceError("Savings account no longer exists")

        try:
            account.balance = new_balance
            db_transaction = SavingsTransaction(savings_account_id=account_id, **asdict(entry))
            self.db.add(db_transaction)
            self.db.commit()

        except SQLAlchemyError as e:
            self.db.rollback()
            ledger_failure_counter.inc()
            logging.error(
                f"Ledger mutation failed: {e}",
                extra={"account_id": str(account_id), "reference_number": entry.reference_number},
            )
            raise PersistenceError("Failed to record transaction") from e

        return account, db_transaction

    def transaction_reference_exists(self, reference_number: str) -> bool:
        return (
            self.db.query(SavingsTransaction.id)
            .filter(SavingsTransaction.reference_number == reference_number)
            .first()
            is not None
        )

    def list_transactions(self, account_id: uuid.UUID, skip: int, take: int) -> List[SavingsTransaction]:
        """Fetch a page of transactions, newest first"""
        return (
            self.db.query(SavingsTransaction)
            .filter(SavingsTransaction.savings_account_id == account_id)
            .order_by(SavingsTransaction.created_at.desc())
            .offset(skip)
            .limit(take)
            .all()
        )

    def count_transactions(self, account_id: uuid.UUID) -> int:
        return (
            self.db.query(SavingsTransaction)
            .filter(SavingsTransaction.savings_account_id == account_id)
            .count()
        )


class CreditRepository:
    """Repository for credit requests and repayments"""

    def __init__(self, db: Session):
        self.db = db

    def find_pending_request_by_user(self, user_id: str) -> Optional[CreditRequest]:
        return (
            self.db.query(CreditRequest)
            .filter(CreditRequest.user_id == user_id, CreditRequest.status == CreditStatus.PENDING)
            .first()
        )

    def create_request(
        self,
        user_id: str,
        amount: Decimal,
        purpose: str,
        duration_months: int,
        interest_rate: Decimal,
    ) -> CreditRequest:
        """
        Persist a pending credit request.

        The partial unique index on pending requests backs up the service's
        existence check when two requests race past it.

        Raises:
            ConflictError: the user already has a pending request
        """
        db_request = CreditRequest(
            user_id=user_id,
            amount=amount,
            purpose=purpose,
            duration_months=duration_months,
            interest_rate=interest_rate,
            status=CreditStatus.PENDING,
        )
        try:
            self.db.add(db_request)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("You already have a pending credit request") from e

        return db_request

    def find_request_by_id(self, request_id: uuid.UUID, for_update: bool = False) -> Optional[CreditRequest]:
        query = self.db.query(CreditRequest).filter(CreditRequest.id == request_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def list_requests(self, user_id: str, status: Optional[str], skip: int, take: int) -> List[CreditRequest]:
        """Fetch a page of a user's requests, newest first"""
        query = self.db.query(CreditRequest).filter(CreditRequest.user_id == user_id)
        if status:
            query = query.filter(CreditRequest.status == status)
        return query.order_by(CreditRequest.created_at.desc()).offset(skip).limit(take).all()

    def count_requests(self, user_id: str, status: Optional[str]) -> int:
        query = self.db.query(CreditRequest).filter(CreditRequest.user_id == user_id)
        if status:
            query = query.filter(CreditRequest.status == status)
        return query.count()

    def update_request(self, credit_request: CreditRequest, **fields) -> CreditRequest:
        for key, value in fields.items():
            setattr(credit_request, key, value)
        self.db.commit()
        return credit_request

    def list_repayment_amounts(self, request_id: uuid.UUID) -> List[Decimal]:
        """All repayment amounts recorded against a request"""
        rows = (
            self.db.query(CreditRepayment.amount)
            .filter(CreditRepayment.credit_request_id == request_id)
            .all()
        )
        return [row.amount for row in rows]

    def repayment_reference_exists(self, reference_number: str) -> bool:
        return (
            self.db.query(CreditRepayment.id)
            .filter(CreditRepayment.reference_number == reference_number)
            .first()
            is not None
        )

    def create_repayment(self, request_id: uuid.UUID, amount: Decimal, reference_number: str) -> CreditRepayment:
        """
        Append a repayment record.

        Raises:
            PersistenceError: the insert was rejected by the store
        """
        db_repayment = CreditRepayment(
            credit_request_id=request_id,
            amount=amount,
            reference_number=reference_number,
        )
        try:
            self.db.add(db_repayment)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError("Failed to record repayment") from e

        return db_repayment

    def list_repayments(self, request_id: uuid.UUID, skip: int, take: int) -> List[CreditRepayment]:
        """Fetch a page of repayments, newest first"""
        return (
            self.db.query(CreditRepayment)
            .filter(CreditRepayment.credit_request_id == request_id)
            .order_by(CreditRepayment.created_at.desc())
            .offset(skip)
            .limit(take)
            .all()
        )

    def count_repayments(self, request_id: uuid.UUID) -> int:
        return (
            self.db.query(CreditRepayment)
            .filter(CreditRepayment.credit_request_id == request_id)
            .count()
        )


class NotificationRepository:
    """Repository for the per-user notification inbox"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, notification: Notification) -> UserNotification:
        """
        Store an unread inbox entry.

        Raises:
            PersistenceError: the insert was rejected by the store
        """
        db_notification = UserNotification(read=False, **asdict(notification))
        try:
            self.db.add(db_notification)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError("Failed to store notification") from e

        return db_notification

    def find_by_id(self, notification_id: uuid.UUID) -> Optional[UserNotification]:
        return self.db.get(UserNotification, notification_id)

    def list_by_user(self, user_id: str, skip: int, take: int) -> List[UserNotification]:
        """Fetch a page of a user's notifications, newest first"""
        return (
            self.db.query(UserNotification)
            .filter(UserNotification.user_id == user_id)
            .order_by(UserNotification.sent_at.desc())
            .offset(skip)
            .limit(take)
            .all()
        )

    def count_by_user(self, user_id: str) -> int:
        return self.db.query(UserNotification).filter(UserNotification.user_id == user_id).count()

    def mark_read(self, notification: UserNotification) -> UserNotification:
        notification.read = True
        self.db.commit()
        return notification
