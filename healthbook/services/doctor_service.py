from sqlalchemy.orm import Session, selectinload
from fastapi import HTTPException, status
from typing import List, Optional
import logging

from ..models.doctor import Doctor, Specialization, Qualification, AvailabilitySlot
from ..schemas.doctor import (
    DoctorCreate, DoctorUpdate, QualificationSchema, AvailabilitySlotSchema,
    SpecializationCreate, SpecializationUpdate
)

logger = logging.getLogger(__name__)

class DoctorService:
    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Doctor).options(
            selectinload(Doctor.specializations),
            selectinload(Doctor.qualifications),
            selectinload(Doctor.available_slots),
        )

    def create_doctor(self, doctor_data: DoctorCreate) -> Doctor:
        """Create the doctor profile for a user account."""
        existing = self.db.query(Doctor).filter(Doctor.user_id == doctor_data.user_id).first()
        if existing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Doctor profile already exists"
            )

        doctor = Doctor(
            user_id=doctor_data.user_id,
            experience=doctor_data.experience,
            bio=doctor_data.bio,
            consultation_fee=doctor_data.consultation_fee,
        )
        doctor.specializations = self._resolve_specializations(doctor_data.specializations)
        doctor.qualifications = self._build_qualifications(doctor_data.qualifications)
        doctor.available_slots = self._build_slots(doctor_data.available_slots)

        self.db.add(doctor)
        self.db.commit()
        self.db.refresh(doctor)

        logger.info(f"Created doctor profile {doctor.id} for user {doctor.user_id}")
        return doctor

    def list_doctors(self, specialization_id: Optional[str] = None) -> List[Doctor]:
        query = self._query()
        if specialization_id:
            query = query.filter(Doctor.specializations.any(Specialization.id == specialization_id))
        return query.order_by(Doctor.created_at.desc()).all()

    def get_doctor(self, doctor_id: str) -> Doctor:
        doctor = self._query().filter(Doctor.id == doctor_id).first()
        if not doctor:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Doctor not found"
            )
        return doctor

    def get_doctor_by_user(self, user_id: str) -> Doctor:
        doctor = self._query().filter(Doctor.user_id == user_id).first()
        if not doctor:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Doctor not found"
            )
        return doctor

    def update_doctor(self, doctor: Doctor, update_data: DoctorUpdate) -> Doctor:
        """Apply the fields present in the request."""
        changes = update_data.model_dump(exclude_unset=True)

        if changes.get("specializations") is not None:
            doctor.specializations = self._resolve_specializations(update_data.specializations)
        if changes.get("qualifications") is not None:
            doctor.qualifications = self._build_qualifications(update_data.qualifications)
        if changes.get("available_slots") is not None:
            doctor.available_slots = self._build_slots(update_data.available_slots)
        for field in ("experience", "bio", "consultation_fee"):
            if changes.get(field) is not None:
                setattr(doctor, field, changes[field])

        self.db.commit()
        self.db.refresh(doctor)
        return doctor

    def replace_slots(self, doctor: Doctor, slots: List[AvailabilitySlotSchema]) -> Doctor:
        """Replace the weekly availability template."""
        doctor.available_slots = self._build_slots(slots)
        self.db.commit()
        self.db.refresh(doctor)
        return doctor

    def _resolve_specializations(self, specialization_ids: List[str]) -> List[Specialization]:
        if not specialization_ids:
            return []

        unique_ids = list(dict.fromkeys(specialization_ids))
        found = self.db.query(Specialization).filter(Specialization.id.in_(unique_ids)).all()
        by_id = {s.id: s for s in found}
        missing = [sid for sid in unique_ids if sid not in by_id]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid specialization id: {', '.join(missing)}"
            )
        return [by_id[sid] for sid in unique_ids]

    @staticmethod
    def _build_qualifications(items: List[QualificationSchema]) -> List[Qualification]:
        return [
            Qualification(position=i, degree=q.degree, institution=q.institution, year=q.year)
            for i, q in enumerate(items)
        ]

    @staticmethod
    def _build_slots(items: List[AvailabilitySlotSchema]) -> List[AvailabilitySlot]:
        return [
            AvailabilitySlot(
                position=i,
                day=slot.day,
                start_time=slot.start_time,
                end_time=slot.end_time,
                is_available=slot.is_available,
            )
            for i, slot in enumerate(items)
        ]

class SpecializationService:
    def __init__(self, db: Session):
        self.db = db

    def create(self, data: SpecializationCreate) -> Specialization:
        if self._by_name(data.name):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Specialization already exists"
            )

        specialization = Specialization(name=data.name, description=data.description)
        self.db.add(specialization)
        self.db.commit()
        self.db.refresh(specialization)
        return specialization

    def list_all(self) -> List[Specialization]:
        return self.db.query(Specialization).order_by(Specialization.name.asc()).all()

    def get(self, specialization_id: str) -> Specialization:
        specialization = self.db.query(Specialization).filter(
            Specialization.id == specialization_id
        ).first()
        if not specialization:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Specialization not found"
            )
        return specialization

    def update(self, specialization: Specialization, data: SpecializationUpdate) -> Specialization:
        changes = data.model_dump(exclude_unset=True)
        name = changes.get("name")
        if name and name != specialization.name and self._by_name(name):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Specialization with that name already exists"
            )

        if name:
            specialization.name = name
        if "description" in changes:
            specialization.description = changes["description"]

        self.db.commit()
        self.db.refresh(specialization)
        return specialization

    def delete(self, specialization: Specialization) -> None:
        self.db.delete(specialization)
        self.db.commit()

    def _by_name(self, name: str) -> Optional[Specialization]:
        return self.db.query(Specialization).filter(Specialization.name == name).first()
