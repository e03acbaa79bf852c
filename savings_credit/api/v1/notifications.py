"""/v1/notifications - the caller's notification inbox"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status

from savings_credit.api.dependencies import get_notification_service
from savings_credit.api.security import ADMIN_ROLE, CurrentUser, get_current_user
from savings_credit.api.v1.schemas import NotificationCreate, NotificationListResponse, NotificationResponse
from savings_credit.domain.models import Notification
from savings_credit.services.notifications import NotificationService

router = APIRouter(prefix="/notifications")


@router.post("", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
def create_notification(
    request_body: NotificationCreate,
    user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    """Store a notification in the recipient's inbox and queue its delivery"""
    recipient = request_body.user_id or user.user_id
    if recipient != user.user_id and user.role != ADMIN_ROLE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")

    record = service.notify(
        Notification(
            user_id=recipient,
            type=request_body.type,
            title=request_body.title,
            message=request_body.message,
        )
    )
    return NotificationResponse.model_validate(record)


@router.get("", response_model=NotificationListResponse)
def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    result = service.list_notifications(user.user_id, page=page, limit=limit)
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
def mark_notification_read(
    notification_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    return NotificationResponse.model_validate(service.mark_as_read(user.user_id, notification_id))
