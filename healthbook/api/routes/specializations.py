from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...core.security import TokenPayload
from ...api.deps import get_admin_user
from ...services.doctor_service import SpecializationService
from ...schemas.common import MessageResponse
from ...schemas.doctor import (
    SpecializationCreate, SpecializationUpdate, SpecializationResponse
)

router = APIRouter(prefix="/api/specializations", tags=["Specializations"])

@router.post("", response_model=SpecializationResponse, status_code=status.HTTP_201_CREATED)
async def create_specialization(
    data: SpecializationCreate,
    db: Session = Depends(get_db),
    _: TokenPayload = Depends(get_admin_user)
):
    """Create a new specialization (admin only)."""
    return SpecializationService(db).create(data)

@router.get("", response_model=List[SpecializationResponse])
async def list_specializations(db: Session = Depends(get_db)):
    return SpecializationService(db).list_all()

@router.get("/{specialization_id}", response_model=SpecializationResponse)
async def get_specialization(specialization_id: str, db: Session = Depends(get_db)):
    return SpecializationService(db).get(specialization_id)

@router.put("/{specialization_id}", response_model=SpecializationResponse)
async def update_specialization(
    specialization_id: str,
    data: SpecializationUpdate,
    db: Session = Depends(get_db),
    _: TokenPayload = Depends(get_admin_user)
):
    """Update specialization (admin only)."""
    service = SpecializationService(db)
    return service.update(service.get(specialization_id), data)

@router.delete("/{specialization_id}", response_model=MessageResponse)
async def delete_specialization(
    specialization_id: str,
    db: Session = Depends(get_db),
    _: TokenPayload = Depends(get_admin_user)
):
    """Delete specialization (admin only)."""
    service = SpecializationService(db)
    service.delete(service.get(specialization_id))
    return {"message": "Specialization removed"}
