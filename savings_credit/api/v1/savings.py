"""/v1/savings - savings account, balance mutations and transaction history"""

from fastapi import APIRouter, Depends, Query, status

from savings_credit.api.dependencies import get_savings_service
from savings_credit.api.security import CurrentUser, get_current_user
from savings_credit.api.v1.schemas import (
    AccountResponse,
    AmountRequest,
    BalanceResponse,
    CreateAccountRequest,
    MessageResponse,
    TransactionHistoryResponse,
    TransactionResponse,
    UpdateAccountRequest,
)
from savings_credit.services.savings import SavingsService

router = APIRouter(prefix="/savings")


@router.post("/create", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    request_body: CreateAccountRequest,
    user: CurrentUser = Depends(get_current_user),
    service: SavingsService = Depends(get_savings_service),
):
    """Open the caller's savings account (one per user)"""
    account = service.create_account(
        user.user_id,
        name=request_body.name,
        currency=request_body.currency,
        initial_deposit=request_body.initial_deposit,
    )
    return AccountResponse.model_validate(account)


@router.get("/account", response_model=AccountResponse)
def get_account(
    user: CurrentUser = Depends(get_current_user),
    service: SavingsService = Depends(get_savings_service),
):
    return AccountResponse.model_validate(service.get_account(user.user_id))


@router.get("/balance", response_model=BalanceResponse)
def get_balance(
    user: CurrentUser = Depends(get_current_user),
    service: SavingsService = Depends(get_savings_service),
):
    balance, currency = service.get_balance(user.user_id)
    return BalanceResponse(balance=balance, currency=currency)


@router.post("/deposit", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def deposit(
    request_body: AmountRequest,
    user: CurrentUser = Depends(get_current_user),
    service: SavingsService = Depends(get_savings_service),
):
    """
    Deposit into the caller's account.

    Returns:
        The committed transaction record
    """
    transaction = service.deposit(user.user_id, request_body.amount, request_body.description)
    return TransactionResponse.model_validate(transaction)


@router.post("/withdraw", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def withdraw(
    request_body: AmountRequest,
    user: CurrentUser = Depends(get_current_user),
    service: SavingsService = Depends(get_savings_service),
):
    """
    Withdraw from the caller's account.

    Returns:
        The committed transaction record
    """
    transaction = service.withdraw(user.user_id, request_body.amount, request_body.description)
    return TransactionResponse.model_validate(transaction)


@router.get("/transactions", response_model=TransactionHistoryResponse)
def get_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    service: SavingsService = Depends(get_savings_service),
):
    result = service.get_transactions(user.user_id, page=page, limit=limit)
    return TransactionHistoryResponse(
        transactions=[TransactionResponse.model_validate(t) for t in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.post("/freeze", response_model=MessageResponse)
def freeze_account(
    user: CurrentUser = Depends(get_current_user),
    service: SavingsService = Depends(get_savings_service),
):
    service.freeze_account(user.user_id)
    return MessageResponse(message="Account frozen successfully")


@router.post("/unfreeze", response_model=MessageResponse)
def unfreeze_account(
    user: CurrentUser = Depends(get_current_user),
    service: SavingsService = Depends(get_savings_service),
):
    service.unfreeze_account(user.user_id)
    return MessageResponse(message="Account unfrozen successfully")


@router.put("/account", response_model=AccountResponse)
def update_account(
    request_body: UpdateAccountRequest,
    user: CurrentUser = Depends(get_current_user),
    service: SavingsService = Depends(get_savings_service),
):
    account = service.update_account(user.user_id, name=request_body.name, currency=request_body.currency)
    return AccountResponse.model_validate(account)


@router.delete("/account", response_model=MessageResponse)
def delete_account(
    user: CurrentUser = Depends(get_current_user),
    service: SavingsService = Depends(get_savings_service),
):
    service.delete_account(user.user_id)
    return MessageResponse(message="Account deleted successfully")
