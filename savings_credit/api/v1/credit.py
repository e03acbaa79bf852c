"""/v1/credit - credit requests, review and repayments"""

import uuid
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from savings_credit.api.dependencies import get_credit_service
from savings_credit.api.security import CurrentUser, get_current_admin, get_current_user
from savings_credit.api.v1.schemas import (
    CreditRequestCreate,
    CreditRequestListResponse,
    CreditRequestResponse,
    RejectionRequest,
    RepaymentHistoryResponse,
    RepaymentRequest,
    RepaymentResponse,
    RepaymentSummaryResponse,
)
from savings_credit.services.credit import CreditService

router = APIRouter(prefix="/credit")


@router.post("/request", response_model=CreditRequestResponse, status_code=201)
def request_credit(
    request_body: CreditRequestCreate,
    user: CurrentUser = Depends(get_current_user),
    service: CreditService = Depends(get_credit_service),
):
    """Submit a credit request; only one may be pending at a time"""
    credit_request = service.request_credit(
        user.user_id,
        amount=request_body.amount,
        purpose=request_body.purpose,
        duration_months=request_body.duration_months,
    )
    return CreditRequestResponse.model_validate(credit_request)


@router.get("/requests", response_model=CreditRequestListResponse)
def get_credit_requests(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[Literal["pending", "approved", "rejected"]] = Query(None),
    user: CurrentUser = Depends(get_current_user),
    service: CreditService = Depends(get_credit_service),
):
    result = service.get_credit_requests(user.user_id, page=page, limit=limit, status=status)
    return CreditRequestListResponse(
        requests=[CreditRequestResponse.model_validate(r) for r in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.get("/requests/{request_id}", response_model=CreditRequestResponse)
def get_credit_request(
    request_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    service: CreditService = Depends(get_credit_service),
):
    return CreditRequestResponse.model_validate(service.get_credit_request(request_id, user.user_id))


@router.get("/requests/{request_id}/balance", response_model=RepaymentSummaryResponse)
def get_repayment_summary(
    request_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    service: CreditService = Depends(get_credit_service),
):
    """
    Amount owed, repaid and remaining for a request.

    Returns:
        Figures derived from the repayment history at request time
    """
    summary = service.get_repayment_summary(request_id, user.user_id)
    return RepaymentSummaryResponse(
        credit_request_id=request_id,
        total_owed=summary.total_owed,
        total_repaid=summary.total_repaid,
        remaining=summary.remaining,
    )


@router.post("/requests/{request_id}/approve", response_model=CreditRequestResponse)
def approve_credit_request(
    request_id: uuid.UUID,
    admin: CurrentUser = Depends(get_current_admin),
    service: CreditService = Depends(get_credit_service),
):
    return CreditRequestResponse.model_validate(service.approve_request(request_id, admin.user_id))


@router.post("/requests/{request_id}/reject", response_model=CreditRequestResponse)
def reject_credit_request(
    request_id: uuid.UUID,
    request_body: RejectionRequest,
    admin: CurrentUser = Depends(get_current_admin),
    service: CreditService = Depends(get_credit_service),
):
    credit_request = service.reject_request(request_id, admin.user_id, request_body.reason)
    return CreditRequestResponse.model_validate(credit_request)


@router.post("/repay/{request_id}", response_model=RepaymentResponse, status_code=201)
def make_repayment(
    request_id: uuid.UUID,
    request_body: RepaymentRequest,
    user: CurrentUser = Depends(get_current_user),
    service: CreditService = Depends(get_credit_service),
):
    repayment = service.make_repayment(request_id, user.user_id, request_body.amount)
    return RepaymentResponse.model_validate(repayment)


@router.get("/repayments/{request_id}", response_model=RepaymentHistoryResponse)
def get_repayment_history(
    request_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    service: CreditService = Depends(get_credit_service),
):
    result = service.get_repayment_history(request_id, user.user_id, page=page, limit=limit)
    return RepaymentHistoryResponse(
        repayments=[RepaymentResponse.model_validate(r) for r in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )
