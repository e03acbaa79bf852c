"""Pydantic schemas for API request/response validation"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Savings


class CreateAccountRequest(BaseModel):
    """Request body for POST /v1/savings/create"""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    currency: Optional[str] = Field(None, pattern=r"^[A-Z]{3}$", description="ISO 4217 code")
    initial_deposit: Decimal = Field(Decimal("0"), ge=0, max_digits=15, decimal_places=2)


class UpdateAccountRequest(BaseModel):
    """Request body for PUT /v1/savings/account"""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    currency: Optional[str] = Field(None, pattern=r"^[A-Z]{3}$")


class AmountRequest(BaseModel):
    """Request body for deposits and withdrawals"""

    amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
    description: Optional[str] = Field(None, max_length=255)


class AccountResponse(ORMModel):
    id: uuid.UUID
    name: str
    balance: float
    currency: str
    status: str
    created_at: datetime
    updated_at: datetime


class BalanceResponse(BaseModel):
    balance: float
    currency: str


class TransactionResponse(ORMModel):
    id: uuid.UUID
    type: str
    amount: float
    balance_before: float
    balance_after: float
    description: str
    reference_number: str
    status: str
    created_at: datetime


class TransactionHistoryResponse(BaseModel):
    transactions: List[TransactionResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class MessageResponse(BaseModel):
    message: str


# Credit


class CreditRequestCreate(BaseModel):
    """Request body for POST /v1/credit/request"""

    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
    purpose: str = Field(..., min_length=10, max_length=500)
    duration_months: int = Field(..., ge=1, le=120)


class RepaymentRequest(BaseModel):
    """Request body for POST /v1/credit/repay/{id}"""

    amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)


class RejectionRequest(BaseModel):
    """Request body for POST /v1/credit/requests/{id}/reject"""

    reason: str = Field(..., min_length=1, max_length=500)


class CreditRequestResponse(ORMModel):
    id: uuid.UUID
    user_id: str
    amount: float
    purpose: str
    duration_months: int
    interest_rate: float
    status: str
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CreditRequestListResponse(BaseModel):
    requests: List[CreditRequestResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class RepaymentResponse(ORMModel):
    id: uuid.UUID
    credit_request_id: uuid.UUID
    amount: float
    reference_number: str
    payment_date: datetime
    created_at: datetime


class RepaymentHistoryResponse(BaseModel):
    repayments: List[RepaymentResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class RepaymentSummaryResponse(BaseModel):
    credit_request_id: uuid.UUID
    total_owed: float
    total_repaid: float
    remaining: float


# Notifications


class NotificationCreate(BaseModel):
    """Request body for POST /v1/notifications"""

    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: Optional[str] = Field(None, min_length=1, description="Recipient; defaults to the caller")
    type: Literal["email", "sms", "in_app"]
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)


class NotificationResponse(ORMModel):
    id: uuid.UUID
    user_id: str
    type: str
    title: str
    message: str
    read: bool
    sent_at: datetime


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    total: int
    page: int
    limit: int
    total_pages: int
