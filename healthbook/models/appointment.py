from sqlalchemy import Column, String, DateTime, Date, Boolean, Text, Enum as SQLEnum
from sqlalchemy.sql import func
import enum

from ..core.database import Base, generate_id, utcnow

class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(String(32), primary_key=True, default=generate_id)

    # Opaque references owned by the user and doctor services
    patient_id = Column(String(32), nullable=False, index=True)
    doctor_id = Column(String(32), nullable=False, index=True)

    # Appointment details
    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    status = Column(SQLEnum(AppointmentStatus), nullable=False, default=AppointmentStatus.SCHEDULED)
    reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    notification_sent = Column(Boolean, default=False)

    # Tracking
    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Appointment(id={self.id}, patient_id={self.patient_id}, doctor_id={self.doctor_id}, date='{self.date}')>"
