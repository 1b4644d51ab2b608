from pydantic import Field
from typing import Optional
from datetime import datetime
import enum

from ..models.notification import NotificationType
from .common import CamelModel

class AppointmentEvent(str, enum.Enum):
    NEW = "new"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    REMINDER = "reminder"

class AppointmentNotificationRequest(CamelModel):
    appointment_id: str = Field(..., min_length=1)
    type: AppointmentEvent

class NotificationCreate(CamelModel):
    user_id: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    type: NotificationType = NotificationType.SYSTEM
    related_id: Optional[str] = None

class NotificationResponse(CamelModel):
    id: str
    user_id: str
    message: str
    type: NotificationType
    related_id: Optional[str] = None
    is_read: bool = False
    sent_via_email: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
