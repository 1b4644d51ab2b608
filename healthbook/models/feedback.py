from sqlalchemy import Column, String, DateTime, Integer, Text, CheckConstraint
from sqlalchemy.sql import func

from ..core.database import Base, generate_id, utcnow

class Feedback(Base):
    __tablename__ = "feedback"
    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_feedback_rating_range"),
    )

    id = Column(String(32), primary_key=True, default=generate_id)
    appointment_id = Column(String(32), unique=True, nullable=False, index=True)
    patient_id = Column(String(32), nullable=False, index=True)
    doctor_id = Column(String(32), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Feedback(id={self.id}, appointment_id={self.appointment_id}, rating={self.rating})>"
