from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ...clients.service_client import ServiceClients
from ...core.database import get_db
from ...core.security import TokenPayload
from ...api.deps import (
    get_auth_token, get_current_user_token, get_admin_user, get_service_clients
)
from ...services.notification_service import NotificationService
from ...schemas.common import MessageResponse
from ...schemas.notification import (
    AppointmentNotificationRequest, NotificationCreate, NotificationResponse
)

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])

@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    is_read: Optional[bool] = Query(None, alias="isRead"),
    db: Session = Depends(get_db),
    token_payload: TokenPayload = Depends(get_current_user_token)
):
    """Notifications of the caller, newest first."""
    return NotificationService(db).list_for_user(token_payload.sub, is_read)

@router.post("", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
async def create_notification(
    data: NotificationCreate,
    db: Session = Depends(get_db),
    _: TokenPayload = Depends(get_admin_user)
):
    """Create a notification for any user (admin only)."""
    return NotificationService(db).create(data)

@router.post(
    "/appointment",
    response_model=List[NotificationResponse],
    status_code=status.HTTP_201_CREATED
)
async def appointment_notification(
    data: AppointmentNotificationRequest,
    db: Session = Depends(get_db),
    clients: ServiceClients = Depends(get_service_clients),
    token: str = Depends(get_auth_token),
    _: TokenPayload = Depends(get_current_user_token)
):
    """Notify patient and doctor of an appointment event (called by the appointment service)."""
    service = NotificationService(db, clients)
    return await service.notify_appointment(data.appointment_id, data.type, token)

@router.put("/read-all", response_model=MessageResponse)
async def mark_all_read(
    db: Session = Depends(get_db),
    token_payload: TokenPayload = Depends(get_current_user_token)
):
    NotificationService(db).mark_all_read(token_payload.sub)
    return {"message": "All notifications marked as read"}

@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    db: Session = Depends(get_db),
    token_payload: TokenPayload = Depends(get_current_user_token)
):
    return NotificationService(db).mark_read(notification_id, token_payload.sub)
