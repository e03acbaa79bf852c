"""Savings account rules: status gating, sufficiency checks, ledger mutations"""

from decimal import Decimal
from typing import Optional, Tuple

from savings_credit.config import settings
from savings_credit.domain.exceptions import BadRequestError, ConflictError, NotFoundError
from savings_credit.domain.models import (
    AccountStatus,
    LedgerEntry,
    Notification,
    NotificationType,
    Notifier,
    Page,
    TransactionType,
)
from savings_credit.domain.money import exact_money
from savings_credit.domain.references import (
    TRANSACTION_PREFIX,
    TRANSACTION_SUFFIX_LENGTH,
    generate_unique_reference,
)
from savings_credit.infrastructure.database.models import SavingsAccount, SavingsTransaction
from savings_credit.infrastructure.database.repositories import SavingsRepository
from savings_credit.infrastructure.observability.logging import log_ledger_mutation
from savings_credit.infrastructure.observability.metrics import record_ledger_mutation, reference_collision_counter
from savings_credit.services.notify import notify_safely
from savings_credit.utils.pagination import page_offset, total_pages


class SavingsService:
    """Savings operations for the authenticated user's single account"""

    def __init__(self, repository: SavingsRepository, notifier: Notifier):
        self.repository = repository
        self.notifier = notifier

    def create_account(
        self,
        user_id: str,
        name: Optional[str] = None,
        currency: Optional[str] = None,
        initial_deposit: Decimal = Decimal("0"),
    ) -> SavingsAccount:
        """
        Open the user's savings account.

        A positive initial deposit is recorded as the account's first
        deposit transaction, committed together with the account row.

        Raises:
            ConflictError: the user already has an account
            BadRequestError: the initial deposit is negative
        """
        if self.repository.find_account_by_user_id(user_id):
            raise ConflictError("Savings account already exists")

        initial_deposit = exact_money(initial_deposit)
        if initial_deposit < 0:
            raise BadRequestError("Initial deposit cannot be negative")

        opening_entry = None
        if initial_deposit > 0:
            opening_entry = LedgerEntry(
                type=TransactionType.DEPOSIT,
                amount=initial_deposit,
                balance_before=Decimal("0.00"),
                balance_after=initial_deposit,
                description="Initial deposit",
                reference_number=self._new_reference(),
            )

        return self.repository.create_account(
            user_id=user_id,
            name=name or settings.default_account_name,
            currency=currency or settings.default_currency,
            opening_entry=opening_entry,
        )

    def get_account(self, user_id: str, for_update: bool = False) -> SavingsAccount:
        account = self.repository.find_account_by_user_id(user_id, for_update=for_update)
        if not account:
            raise NotFoundError("Savings account not found")
        return account

    def get_balance(self, user_id: str) -> Tuple[Decimal, str]:
        account = self.get_account(user_id)
        return account.balance, account.currency

    def deposit(self, user_id: str, amount: Decimal, description: Optional[str] = None) -> SavingsTransaction:
        """
        Credit the account.

        Raises:
            NotFoundError: no account
            BadRequestError: account frozen, amount not positive or not
                whole cents
        """
        account = self.get_account(user_id, for_update=True)
        self._ensure_active(account)
        amount = self._validate_amount(amount)

        return self._apply_mutation(
            account,
            TransactionType.DEPOSIT,
            amount,
            account.balance + amount,
            description or "Deposit",
        )

    def withdraw(self, user_id: str, amount: Decimal, description: Optional[str] = None) -> SavingsTransaction:
        """
        Debit the account.

        Raises:
            NotFoundError: no account
            BadRequestError: account frozen, amount not positive, or
                amount exceeds the balance
        """
        account = self.get_account(user_id, for_update=True)
        self._ensure_active(account)
        amount = self._validate_amount(amount)

        if account.balance < amount:
            raise BadRequestError("Insufficient balance")

        return self._apply_mutation(
            account,
            TransactionType.WITHDRAWAL,
            amount,
            account.balance - amount,
            description or "Withdrawal",
        )

    def get_transactions(self, user_id: str, page: int = 1, limit: int = 10) -> Page:
        account = self.get_account(user_id)
        transactions = self.repository.list_transactions(account.id, page_offset(page, limit), limit)
        total = self.repository.count_transactions(account.id)
        return Page(items=transactions, total=total, page=page, limit=limit, total_pages=total_pages(total, limit))

    def freeze_account(self, user_id: str) -> SavingsAccount:
        account = self.get_account(user_id)
        if account.status == AccountStatus.FROZEN:
            raise BadRequestError("Account is already frozen")
        return self.repository.update_account(account, status=AccountStatus.FROZEN)

    def unfreeze_account(self, user_id: str) -> SavingsAccount:
        account = self.get_account(user_id)
        if account.status == AccountStatus.ACTIVE:
            raise BadRequestError("Account is already active")
        return self.repository.update_account(account, status=AccountStatus.ACTIVE)

    def update_account(self, user_id: str, name: Optional[str] = None, currency: Optional[str] = None) -> SavingsAccount:
        """Rename the account or change its currency code"""
        account = self.get_account(user_id)

        fields = {}
        if name is not None:
            fields["name"] = name
        if currency is not None:
            fields["currency"] = currency

        return self.repository.update_account(account, **fields)

    def delete_account(self, user_id: str) -> None:
        account = self.get_account(user_id)
        if account.balance != 0:
            raise BadRequestError("Cannot delete account with non-zero balance. Please withdraw all funds first.")
        self.repository.delete_account(account)

    def _ensure_active(self, account: SavingsAccount) -> None:
        if account.status == AccountStatus.FROZEN:
            raise BadRequestError("Account is frozen. Cannot perform transactions.")

    def _validate_amount(self, amount: Decimal) -> Decimal:
        amount = exact_money(amount)
        if amount <= 0:
            raise BadRequestError("Amount must be greater than 0")
        return amount

    def _new_reference(self) -> str:
        return generate_unique_reference(
            TRANSACTION_PREFIX,
            self.repository.transaction_reference_exists,
            length=TRANSACTION_SUFFIX_LENGTH,
            max_attempts=settings.reference_max_attempts,
            on_collision=reference_collision_counter.labels(table="transactions").inc,
        )

    def _apply_mutation(
        self,
        account: SavingsAccount,
        transaction_type: str,
        amount: Decimal,
        balance_after: Decimal,
        description: str,
    ) -> SavingsTransaction:
        """Commit the balance change with its ledger entry, then notify"""
        entry = LedgerEntry(
            type=transaction_type,
            amount=amount,
            balance_before=account.balance,
            balance_after=balance_after,
            description=description,
            reference_number=self._new_reference(),
        )
        account, transaction = self.repository.update_balance_and_create_transaction(
            account.id, balance_after, entry
        )

        record_ledger_mutation(transaction_type, amount)
        log_ledger_mutation(
            user_id=account.user_id,
            account_id=str(account.id),
            transaction_type=transaction_type,
            amount=amount,
            balance_before=entry.balance_before,
            balance_after=entry.balance_after,
            reference_number=entry.reference_number,
        )

        verb = "deposited to" if transaction_type == TransactionType.DEPOSIT else "withdrawn from"
        notify_safely(
            self.notifier,
            Notification(
                user_id=account.user_id,
                type=NotificationType.IN_APP,
                title=f"{transaction_type.capitalize()} successful",
                message=(
                    f"{amount:.2f} {account.currency} {verb} your savings account. "
                    f"New balance: {balance_after:.2f} {account.currency}. Ref: {entry.reference_number}"
                ),
            ),
        )

        return transaction
