"""SQLAlchemy ORM models for savings accounts, ledger transactions and credit"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Boolean, Column, String, Integer, Numeric, DateTime, ForeignKey, Text, Index, Uuid, text
from sqlalchemy.orm import declarative_base, relationship

from savings_credit.domain.models import AccountStatus, CreditStatus, TransactionStatus

Base = declarative_base()

Money = Numeric(15, 2)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SavingsAccount(Base):
    """Savings account; one per user. `balance` caches the transaction log"""

    __tablename__ = "savings_account"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    balance = Column(Money, nullable=False, default=0)
    currency = Column(String(3), nullable=False)
    status = Column(String(16), nullable=False, default=AccountStatus.ACTIVE)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    transactions = relationship(
        "SavingsTransaction",
        back_populates="account",
        cascade="all, delete-orphan",
    )


class SavingsTransaction(Base):
    """Append-only ledger entry for a savings account"""

    __tablename__ = "savings_transaction"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    savings_account_id = Column(
        Uuid, ForeignKey("savings_account.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type = Column(String(16), nullable=False)
    amount = Column(Money, nullable=False)
    balance_before = Column(Money, nullable=False)
    balance_after = Column(Money, nullable=False)
    description = Column(Text, nullable=False)
    reference_number = Column(String(64), nullable=False, unique=True)
    status = Column(String(16), nullable=False, default=TransactionStatus.COMPLETED)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    account = relationship("SavingsAccount", back_populates="transactions")


class CreditRequest(Base):
    """Credit application and its review outcome"""

    __tablename__ = "credit_request"
    __table_args__ = (
        # At most one pending request per user
        Index(
            "uq_credit_request_pending_user",
            "user_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    amount = Column(Money, nullable=False)
    purpose = Column(String(500), nullable=False)
    duration_months = Column(Integer, nullable=False)
    interest_rate = Column(Numeric(5, 2), nullable=False)
    status = Column(String(16), nullable=False, default=CreditStatus.PENDING)
    approved_by = Column(Text, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    repayments = relationship("CreditRepayment", back_populates="credit_request", cascade="all, delete-orphan")


class CreditRepayment(Base):
    """Append-only repayment against an approved credit request"""

    __tablename__ = "credit_repayment"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    credit_request_id = Column(
        Uuid, ForeignKey("credit_request.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount = Column(Money, nullable=False)
    reference_number = Column(String(64), nullable=False, unique=True)
    payment_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    credit_request = relationship("CreditRequest", back_populates="repayments")


class UserNotification(Base):
    """In-app inbox entry; written before delivery is queued"""

    __tablename__ = "notification"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    type = Column(String(16), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    sent_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
