from pydantic import Field, model_validator
from typing import List, Optional
from datetime import datetime

from ..models.doctor import Weekday
from .common import CamelModel, TIME_PATTERN

class SpecializationCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None

class SpecializationUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None

class SpecializationResponse(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class SpecializationSummary(CamelModel):
    id: str
    name: str
    description: Optional[str] = None

class QualificationSchema(CamelModel):
    degree: str = Field(..., min_length=1)
    institution: str = Field(..., min_length=1)
    year: int = Field(..., ge=1900, le=2100)

class AvailabilitySlotSchema(CamelModel):
    day: Weekday
    start_time: str = Field(..., pattern=TIME_PATTERN)
    end_time: str = Field(..., pattern=TIME_PATTERN)
    is_available: bool = True

    @model_validator(mode="after")
    def check_time_order(self):
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self

class DoctorCreate(CamelModel):
    user_id: str = Field(..., min_length=1)
    specializations: List[str] = Field(default_factory=list)
    qualifications: List[QualificationSchema] = Field(default_factory=list)
    experience: int = Field(0, ge=0)
    bio: Optional[str] = None
    consultation_fee: float = Field(0, ge=0)
    available_slots: List[AvailabilitySlotSchema] = Field(default_factory=list)

class DoctorUpdate(CamelModel):
    specializations: Optional[List[str]] = None
    qualifications: Optional[List[QualificationSchema]] = None
    experience: Optional[int] = Field(None, ge=0)
    bio: Optional[str] = None
    consultation_fee: Optional[float] = Field(None, ge=0)
    available_slots: Optional[List[AvailabilitySlotSchema]] = None

class SlotsUpdate(CamelModel):
    available_slots: List[AvailabilitySlotSchema]

class DoctorResponse(CamelModel):
    id: str
    user_id: str
    specializations: List[SpecializationSummary] = []
    qualifications: List[QualificationSchema] = []
    experience: int = 0
    bio: Optional[str] = None
    consultation_fee: float = 0
    available_slots: List[AvailabilitySlotSchema] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
