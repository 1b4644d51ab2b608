from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Any, Dict, List

from ...clients.service_client import ServiceClients
from ...core.database import get_db
from ...core.security import TokenPayload, UserRole
from ...api.deps import get_auth_token, require_role, get_service_clients
from ...services.feedback_service import FeedbackService
from ...schemas.feedback import FeedbackCreate, FeedbackResponse, FeedbackStats

router = APIRouter(prefix="/api/feedback", tags=["Feedback"])

get_patient_only = require_role([UserRole.PATIENT])

@router.post("", response_model=FeedbackResponse, status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    data: FeedbackCreate,
    db: Session = Depends(get_db),
    clients: ServiceClients = Depends(get_service_clients),
    token: str = Depends(get_auth_token),
    token_payload: TokenPayload = Depends(get_patient_only)
):
    """Submit feedback for a completed appointment."""
    return await FeedbackService(db, clients).submit(token_payload.sub, data, token)

@router.get("/doctor/{doctor_id}", response_model=List[Dict[str, Any]])
async def doctor_feedback(
    doctor_id: str,
    db: Session = Depends(get_db),
    clients: ServiceClients = Depends(get_service_clients)
):
    return await FeedbackService(db, clients).for_doctor(doctor_id)

@router.get("/appointment/{appointment_id}", response_model=FeedbackResponse)
async def appointment_feedback(
    appointment_id: str,
    db: Session = Depends(get_db),
    clients: ServiceClients = Depends(get_service_clients)
):
    return FeedbackService(db, clients).for_appointment(appointment_id)

@router.get("/patient", response_model=List[Dict[str, Any]])
async def patient_feedback(
    db: Session = Depends(get_db),
    clients: ServiceClients = Depends(get_service_clients),
    token: str = Depends(get_auth_token),
    token_payload: TokenPayload = Depends(get_patient_only)
):
    """Feedback written by the calling patient."""
    return await FeedbackService(db, clients).for_patient(token_payload.sub, token)

@router.get("/stats/doctor/{doctor_id}", response_model=FeedbackStats)
async def doctor_stats(
    doctor_id: str,
    db: Session = Depends(get_db),
    clients: ServiceClients = Depends(get_service_clients)
):
    """Rating summary for a doctor."""
    return await FeedbackService(db, clients).stats_for_doctor(doctor_id)
