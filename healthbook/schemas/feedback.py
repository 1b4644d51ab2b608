from pydantic import Field
from typing import Dict, Optional
from datetime import datetime

from .common import CamelModel

class FeedbackCreate(CamelModel):
    appointment_id: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None

class FeedbackResponse(CamelModel):
    id: str
    appointment_id: str
    patient_id: str
    doctor_id: str
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class FeedbackStats(CamelModel):
    average_rating: float
    total_feedback: int
    rating_distribution: Dict[str, int]
