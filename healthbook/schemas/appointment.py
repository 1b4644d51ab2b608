from pydantic import Field, model_validator
from typing import Optional
import datetime as dt

from ..models.appointment import AppointmentStatus
from .common import CamelModel, TIME_PATTERN

class AppointmentCreate(CamelModel):
    doctor_id: str = Field(..., min_length=1)
    date: dt.date
    start_time: str = Field(..., pattern=TIME_PATTERN)
    end_time: str = Field(..., pattern=TIME_PATTERN)
    reason: Optional[str] = None

    @model_validator(mode="after")
    def check_time_order(self):
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self

class AppointmentStatusUpdate(CamelModel):
    status: AppointmentStatus
    notes: Optional[str] = None

class AppointmentResponse(CamelModel):
    id: str
    patient_id: str
    doctor_id: str
    date: dt.date
    start_time: str
    end_time: str
    status: AppointmentStatus
    reason: Optional[str] = None
    notes: Optional[str] = None
    notification_sent: bool = False
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

class ReminderResult(CamelModel):
    date: dt.date
    sent: int
    failed: int
