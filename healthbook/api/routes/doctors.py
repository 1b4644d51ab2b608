from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...core.security import UserRole, TokenPayload, AuthorizationError
from ...api.deps import get_current_user_token, require_role
from ...services.doctor_service import DoctorService
from ...schemas.doctor import DoctorCreate, DoctorUpdate, DoctorResponse, SlotsUpdate
from ...models.doctor import Doctor

router = APIRouter(prefix="/api/doctors", tags=["Doctors"])

def _check_owner(doctor: Doctor, token_payload: TokenPayload) -> None:
    if token_payload.role != UserRole.ADMIN and token_payload.sub != doctor.user_id:
        raise AuthorizationError("Not authorized")

@router.post("", response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
async def create_doctor(
    doctor_data: DoctorCreate,
    db: Session = Depends(get_db),
    token_payload: TokenPayload = Depends(require_role([UserRole.DOCTOR, UserRole.ADMIN]))
):
    """Create a doctor profile (the doctor themselves or an admin)."""
    if token_payload.role != UserRole.ADMIN and token_payload.sub != doctor_data.user_id:
        raise AuthorizationError("Not authorized")

    return DoctorService(db).create_doctor(doctor_data)

@router.get("", response_model=List[DoctorResponse])
async def list_doctors(
    specialization: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """List doctors, optionally filtered by specialization id."""
    return DoctorService(db).list_doctors(specialization)

@router.get("/user/{user_id}", response_model=DoctorResponse)
async def get_doctor_by_user(user_id: str, db: Session = Depends(get_db)):
    """Doctor profile owned by a user account."""
    return DoctorService(db).get_doctor_by_user(user_id)

@router.get("/{doctor_id}", response_model=DoctorResponse)
async def get_doctor(doctor_id: str, db: Session = Depends(get_db)):
    return DoctorService(db).get_doctor(doctor_id)

@router.put("/{doctor_id}", response_model=DoctorResponse)
async def update_doctor(
    doctor_id: str,
    update_data: DoctorUpdate,
    db: Session = Depends(get_db),
    token_payload: TokenPayload = Depends(get_current_user_token)
):
    """Update a doctor profile (owner or admin)."""
    service = DoctorService(db)
    doctor = service.get_doctor(doctor_id)
    _check_owner(doctor, token_payload)
    return service.update_doctor(doctor, update_data)

@router.put("/{doctor_id}/slots", response_model=DoctorResponse)
async def update_slots(
    doctor_id: str,
    slots_data: SlotsUpdate,
    db: Session = Depends(get_db),
    token_payload: TokenPayload = Depends(get_current_user_token)
):
    """Replace the weekly availability template (owner or admin)."""
    service = DoctorService(db)
    doctor = service.get_doctor(doctor_id)
    _check_owner(doctor, token_payload)
    return service.replace_slots(doctor, slots_data.available_slots)
