from sqlalchemy import (
    Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Table, Text,
    Enum as SQLEnum
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base, generate_id, utcnow

class Weekday(str, enum.Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

doctor_specializations = Table(
    "doctor_specializations",
    Base.metadata,
    Column("doctor_id", String(32), ForeignKey("doctors.id", ondelete="CASCADE"), primary_key=True),
    Column("specialization_id", String(32), ForeignKey("specializations.id", ondelete="CASCADE"), primary_key=True),
)

class Specialization(Base):
    __tablename__ = "specializations"

    id = Column(String(32), primary_key=True, default=generate_id)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    doctors = relationship("Doctor", secondary=doctor_specializations, back_populates="specializations")

    def __repr__(self):
        return f"<Specialization(id={self.id}, name='{self.name}')>"

class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), unique=True, index=True, nullable=False)

    # Professional information
    experience = Column(Integer, default=0)
    bio = Column(Text, nullable=True)
    consultation_fee = Column(Float, default=0)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    specializations = relationship(
        "Specialization", secondary=doctor_specializations, back_populates="doctors"
    )
    qualifications = relationship(
        "Qualification", back_populates="doctor",
        cascade="all, delete-orphan", order_by="Qualification.position"
    )
    available_slots = relationship(
        "AvailabilitySlot", back_populates="doctor",
        cascade="all, delete-orphan", order_by="AvailabilitySlot.position"
    )

    def __repr__(self):
        return f"<Doctor(id={self.id}, user_id='{self.user_id}')>"

class Qualification(Base):
    __tablename__ = "doctor_qualifications"

    id = Column(String(32), primary_key=True, default=generate_id)
    doctor_id = Column(String(32), ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    degree = Column(String(200), nullable=False)
    institution = Column(String(200), nullable=False)
    year = Column(Integer, nullable=False)

    doctor = relationship("Doctor", back_populates="qualifications")

class AvailabilitySlot(Base):
    """One entry of a doctor's weekly availability template."""
    __tablename__ = "doctor_availability"

    id = Column(String(32), primary_key=True, default=generate_id)
    doctor_id = Column(String(32), ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    day = Column(SQLEnum(Weekday), nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    is_available = Column(Boolean, default=True)

    doctor = relationship("Doctor", back_populates="available_slots")
