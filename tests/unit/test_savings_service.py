"""Unit tests for savings rules and the ledger mutation protocol"""

import re
import pytest
from decimal import Decimal
from unittest.mock import patch
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from savings_credit.domain.exceptions import BadRequestError, ConflictError, NotFoundError, PersistenceError
from savings_credit.domain.models import AccountStatus, LedgerEntry, TransactionType
from savings_credit.infrastructure.database.models import SavingsTransaction
from savings_credit.infrastructure.database.repositories import SavingsRepository
from savings_credit.services.savings import SavingsService

USER = "user-1"


class FailingNotifier:
    """Notifier whose queue is unavailable"""

    def notify(self, notification) -> None:
        raise RuntimeError("notification queue unavailable")


def ledger_for(db: Session, account_id) -> list:
    return (
        db.query(SavingsTransaction)
        .filter(SavingsTransaction.savings_account_id == account_id)
        .order_by(SavingsTransaction.created_at)
        .all()
    )


def test_create_account_starts_empty_and_active(savings_service: SavingsService):
    account = savings_service.create_account(USER)

    assert account.balance == Decimal("0")
    assert account.status == AccountStatus.ACTIVE
    assert account.name == "My Savings Account"
    assert account.currency == "RWF"


def test_create_account_twice_conflicts(savings_service: SavingsService):
    savings_service.create_account(USER)
    with pytest.raises(ConflictError):
        savings_service.create_account(USER)


def test_create_account_rejects_negative_initial_deposit(savings_service: SavingsService):
    with pytest.raises(BadRequestError):
        savings_service.create_account(USER, initial_deposit=Decimal("-1"))


def test_initial_deposit_is_recorded_in_the_log(db: Session, savings_service: SavingsService):
    account = savings_service.create_account(USER, initial_deposit=Decimal("100"))

    entries = ledger_for(db, account.id)
    assert account.balance == Decimal("100.00")
    assert len(entries) == 1
    assert entries[0].type == TransactionType.DEPOSIT
    assert entries[0].balance_before == Decimal("0")
    assert entries[0].balance_after == Decimal("100.00")


def test_deposit_into_new_account(db: Session, savings_service: SavingsService, notifier):
    """Create account -> deposit 50 -> balance 50, one transaction 0 -> 50"""
    savings_service.create_account(USER)

    transaction = savings_service.deposit(USER, Decimal("50"))

    account = savings_service.get_account(USER)
    assert account.balance == Decimal("50.00")
    assert transaction.type == TransactionType.DEPOSIT
    assert transaction.amount == Decimal("50.00")
    assert transaction.balance_before == Decimal("0")
    assert transaction.balance_after == Decimal("50.00")
    assert transaction.status == "completed"
    assert re.fullmatch(r"TXN\d{13}[0-9A-Z]{7}", transaction.reference_number)
    assert len(ledger_for(db, account.id)) == 1
    assert len(notifier.sent) == 1
    assert notifier.sent[0].user_id == USER


def test_deposit_on_frozen_account_is_rejected(db: Session, savings_service: SavingsService):
    """Frozen account: rejected, balance unchanged, nothing logged"""
    account = savings_service.create_account(USER, initial_deposit=Decimal("10"))
    savings_service.freeze_account(USER)

    with pytest.raises(BadRequestError, match="frozen"):
        savings_service.deposit(USER, Decimal("50"))

    assert savings_service.get_account(USER).balance == Decimal("10.00")
    assert len(ledger_for(db, account.id)) == 1


@pytest.mark.parametrize("amount", [Decimal("50"), Decimal("0"), Decimal("-5"), Decimal("1000000")])
def test_frozen_rejection_is_independent_of_amount(savings_service: SavingsService, amount):
    savings_service.create_account(USER, initial_deposit=Decimal("100"))
    savings_service.freeze_account(USER)

    with pytest.raises(BadRequestError, match="frozen"):
        savings_service.deposit(USER, amount)
    with pytest.raises(BadRequestError, match="frozen"):
        savings_service.withdraw(USER, amount)


def test_withdraw_then_overdraw(db: Session, savings_service: SavingsService):
    """Withdraw 30 from 100 -> 70; withdraw 1000 from 70 -> rejected, stays 70"""
    account = savings_service.create_account(USER, initial_deposit=Decimal("100"))

    transaction = savings_service.withdraw(USER, Decimal("30"))
    assert transaction.type == TransactionType.WITHDRAWAL
    assert transaction.balance_before == Decimal("100.00")
    assert transaction.balance_after == Decimal("70.00")

    with pytest.raises(BadRequestError, match="Insufficient balance"):
        savings_service.withdraw(USER, Decimal("1000"))

    assert savings_service.get_account(USER).balance == Decimal("70.00")
    assert len(ledger_for(db, account.id)) == 2


def test_withdraw_entire_balance(savings_service: SavingsService):
    savings_service.create_account(USER, initial_deposit=Decimal("25.50"))
    savings_service.withdraw(USER, Decimal("25.50"))
    assert savings_service.get_account(USER).balance == Decimal("0")


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-10")])
def test_non_positive_amounts_are_rejected(savings_service: SavingsService, amount):
    savings_service.create_account(USER, initial_deposit=Decimal("100"))

    with pytest.raises(BadRequestError, match="greater than 0"):
        savings_service.deposit(USER, amount)
    with pytest.raises(BadRequestError, match="greater than 0"):
        savings_service.withdraw(USER, amount)


@pytest.mark.parametrize("amount", [Decimal("10.005"), Decimal("0.001")])
def test_fractional_cent_amounts_are_rejected(db: Session, savings_service: SavingsService, amount):
    """The ledger never records an amount different from the one requested"""
    account = savings_service.create_account(USER, initial_deposit=Decimal("100"))

    with pytest.raises(BadRequestError, match="2 decimal places"):
        savings_service.deposit(USER, amount)
    with pytest.raises(BadRequestError, match="2 decimal places"):
        savings_service.withdraw(USER, amount)
    with pytest.raises(BadRequestError, match="2 decimal places"):
        savings_service.create_account("user-2", initial_deposit=amount)

    assert savings_service.get_account(USER).balance == Decimal("100.00")
    assert len(ledger_for(db, account.id)) == 1


def test_trailing_zero_precision_is_accepted(savings_service: SavingsService):
    savings_service.create_account(USER)

    transaction = savings_service.deposit(USER, Decimal("10.500"))

    assert transaction.amount == Decimal("10.50")


def test_balance_matches_reconstructed_log(db: Session, savings_service: SavingsService):
    """After any sequence of mutations the balance equals the log's sum"""
    account = savings_service.create_account(USER, initial_deposit=Decimal("20"))
    operations = [
        ("deposit", "100.25"),
        ("withdraw", "40"),
        ("deposit", "0.75"),
        ("withdraw", "81"),
        ("deposit", "500"),
        ("withdraw", "0.01"),
    ]
    for operation, amount in operations:
        getattr(savings_service, operation)(USER, Decimal(amount))

    entries = ledger_for(db, account.id)
    deposits = sum(e.amount for e in entries if e.type == TransactionType.DEPOSIT)
    withdrawals = sum(e.amount for e in entries if e.type == TransactionType.WITHDRAWAL)

    assert savings_service.get_account(USER).balance == deposits - withdrawals
    assert savings_service.get_account(USER).balance == Decimal("499.99")
    for entry in entries:
        sign = 1 if entry.type == TransactionType.DEPOSIT else -1
        assert entry.balance_after == entry.balance_before + sign * entry.amount


def test_ledger_commit_failure_leaves_no_trace(db: Session, savings_service: SavingsService):
    """Balance write and transaction insert succeed or fail together"""
    account = savings_service.create_account(USER, initial_deposit=Decimal("100"))

    with patch.object(db, "commit", side_effect=SQLAlchemyError("connection lost")):
        with pytest.raises(PersistenceError):
            savings_service.deposit(USER, Decimal("50"))

    assert savings_service.get_account(USER).balance == Decimal("100.00")
    assert len(ledger_for(db, account.id)) == 1


def test_ledger_commit_failure_is_not_retried(db: Session, savings_service: SavingsService):
    savings_service.create_account(USER, initial_deposit=Decimal("100"))

    with patch.object(db, "commit", side_effect=SQLAlchemyError("deadlock")) as commit:
        with pytest.raises(PersistenceError):
            savings_service.withdraw(USER, Decimal("10"))

    assert commit.call_count == 1


def test_opening_entry_reference_clash_is_a_storage_failure(db: Session):
    """Only a duplicate user_id means the account already exists"""
    repository = SavingsRepository(db)
    entry = LedgerEntry(
        type=TransactionType.DEPOSIT,
        amount=Decimal("10.00"),
        balance_before=Decimal("0.00"),
        balance_after=Decimal("10.00"),
        description="Initial deposit",
        reference_number="TXN1760648400123AAAAAAA",
    )
    repository.create_account("user-2", "Savings", "RWF", opening_entry=entry)

    with pytest.raises(PersistenceError):
        repository.create_account(USER, "Savings", "RWF", opening_entry=entry)

    assert repository.find_account_by_user_id(USER) is None


def test_create_account_commit_failure_is_wrapped(db: Session, savings_service: SavingsService):
    with patch.object(db, "commit", side_effect=SQLAlchemyError("connection lost")):
        with pytest.raises(PersistenceError):
            savings_service.create_account(USER, initial_deposit=Decimal("10"))

    with pytest.raises(NotFoundError):
        savings_service.get_account(USER)


def test_stored_references_are_distinct(db: Session, savings_service: SavingsService):
    """Repeated candidates are caught by the stored-reference lookup"""
    account = savings_service.create_account(USER)
    candidates = iter(["TXN1", "TXN1", "TXN2", "TXN2", "TXN2", "TXN3"] + [f"TXN{n}" for n in range(4, 40)])

    with patch(
        "savings_credit.domain.references.generate_reference",
        side_effect=lambda *args: next(candidates),
    ):
        for _ in range(30):
            savings_service.deposit(USER, Decimal("1"))

    references = [entry.reference_number for entry in ledger_for(db, account.id)]
    assert len(references) == 30
    assert len(set(references)) == 30
    assert references.count("TXN1") == 1


def test_notification_failure_does_not_undo_mutation(db: Session):
    """A broken notifier neither raises nor rolls back the committed deposit"""
    service = SavingsService(SavingsRepository(db), FailingNotifier())
    service.create_account(USER)

    transaction = service.deposit(USER, Decimal("75"))

    assert transaction.balance_after == Decimal("75.00")
    assert service.get_account(USER).balance == Decimal("75.00")


def test_freeze_twice_is_rejected(savings_service: SavingsService):
    savings_service.create_account(USER)

    savings_service.freeze_account(USER)
    assert savings_service.get_account(USER).status == AccountStatus.FROZEN

    with pytest.raises(BadRequestError, match="already frozen"):
        savings_service.freeze_account(USER)


def test_unfreeze_active_account_is_rejected(savings_service: SavingsService):
    savings_service.create_account(USER)

    with pytest.raises(BadRequestError, match="already active"):
        savings_service.unfreeze_account(USER)


def test_unfreeze_restores_transactions(savings_service: SavingsService):
    savings_service.create_account(USER)
    savings_service.freeze_account(USER)
    savings_service.unfreeze_account(USER)

    savings_service.deposit(USER, Decimal("5"))
    assert savings_service.get_account(USER).balance == Decimal("5.00")


def test_update_account_ignores_balance(savings_service: SavingsService):
    savings_service.create_account(USER, initial_deposit=Decimal("10"))

    account = savings_service.update_account(USER, name="Holiday fund", currency="USD")

    assert account.name == "Holiday fund"
    assert account.currency == "USD"
    assert account.balance == Decimal("10.00")


def test_delete_account_requires_zero_balance(savings_service: SavingsService):
    savings_service.create_account(USER, initial_deposit=Decimal("0.01"))

    with pytest.raises(BadRequestError, match="non-zero balance"):
        savings_service.delete_account(USER)

    savings_service.withdraw(USER, Decimal("0.01"))
    savings_service.delete_account(USER)

    with pytest.raises(NotFoundError):
        savings_service.get_account(USER)


def test_operations_without_account_are_not_found(savings_service: SavingsService):
    with pytest.raises(NotFoundError):
        savings_service.deposit(USER, Decimal("10"))
    with pytest.raises(NotFoundError):
        savings_service.freeze_account(USER)


def test_transaction_history_pagination(savings_service: SavingsService):
    savings_service.create_account(USER)
    for _ in range(5):
        savings_service.deposit(USER, Decimal("1"))

    page = savings_service.get_transactions(USER, page=2, limit=2)

    assert page.total == 5
    assert page.total_pages == 3
    assert len(page.items) == 2
