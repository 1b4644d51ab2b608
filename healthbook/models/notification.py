from sqlalchemy import Column, String, DateTime, Boolean, Text, Enum as SQLEnum
from sqlalchemy.sql import func
import enum

from ..core.database import Base, generate_id, utcnow

class NotificationType(str, enum.Enum):
    APPOINTMENT = "appointment"
    SYSTEM = "system"
    FEEDBACK = "feedback"

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), nullable=False, index=True)
    message = Column(Text, nullable=False)
    type = Column(SQLEnum(NotificationType), nullable=False)
    related_id = Column(String(32), nullable=True)
    is_read = Column(Boolean, default=False)
    sent_via_email = Column(Boolean, default=False)

    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Notification(id={self.id}, user_id={self.user_id}, type='{self.type}')>"
