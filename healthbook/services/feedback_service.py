from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from typing import Any, Dict, List
import asyncio
import logging

from ..clients.service_client import ServiceClients, ServiceCallError
from ..core.security import AuthorizationError
from ..models.feedback import Feedback
from ..schemas.feedback import FeedbackCreate, FeedbackResponse, FeedbackStats

logger = logging.getLogger(__name__)

RATINGS = range(1, 6)

class FeedbackService:
    def __init__(self, db: Session, clients: ServiceClients):
        self.db = db
        self.clients = clients

    async def submit(self, patient_id: str, data: FeedbackCreate, token: str) -> Feedback:
        """Record a patient's rating of one of their completed appointments."""
        try:
            appointment = await self.clients.get_appointment(data.appointment_id, token)
        except ServiceCallError as e:
            logger.error(f"Error fetching appointment {data.appointment_id}: {e}")
            if e.status_code == status.HTTP_403_FORBIDDEN:
                raise AuthorizationError("Not authorized to submit feedback for this appointment")
            appointment = None

        if appointment is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Appointment not found"
            )

        if appointment["patientId"] != patient_id:
            raise AuthorizationError("Not authorized to submit feedback for this appointment")

        if appointment["status"] != "completed":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Can only submit feedback for completed appointments"
            )

        if self.for_appointment(data.appointment_id, required=False):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Feedback already submitted for this appointment"
            )

        feedback = Feedback(
            appointment_id=data.appointment_id,
            patient_id=patient_id,
            doctor_id=appointment["doctorId"],
            rating=data.rating,
            comment=data.comment,
        )
        self.db.add(feedback)
        try:
            self.db.commit()
        except IntegrityError:
            # unique appointment_id lost a race with a concurrent submission
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Feedback already submitted for this appointment"
            )
        self.db.refresh(feedback)

        logger.info(f"Feedback {feedback.id} recorded for appointment {feedback.appointment_id}")
        return feedback

    def for_appointment(self, appointment_id: str, required: bool = True):
        feedback = self.db.query(Feedback).filter(Feedback.appointment_id == appointment_id).first()
        if feedback is None and required:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Feedback not found for this appointment"
            )
        return feedback

    async def ensure_doctor_exists(self, doctor_id: str) -> None:
        try:
            doctor = await self.clients.get_doctor(doctor_id)
        except ServiceCallError as e:
            logger.error(f"Error verifying doctor: {e}")
            doctor = None

        if doctor is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Doctor not found"
            )

    async def for_doctor(self, doctor_id: str) -> List[Dict[str, Any]]:
        """A doctor's feedback, newest first, with patient names only."""
        await self.ensure_doctor_exists(doctor_id)

        items = self.db.query(Feedback).filter(
            Feedback.doctor_id == doctor_id
        ).order_by(Feedback.created_at.desc()).all()

        async def with_patient(feedback: Feedback) -> Dict[str, Any]:
            data = self._to_json(feedback)
            try:
                patient = await self.clients.get_user(feedback.patient_id)
                if patient is not None:
                    # Never expose email or other contact details here
                    data["patient"] = {"name": patient.get("name")}
            except ServiceCallError as e:
                logger.error(f"Error fetching patient details: {e}")
            return data

        return list(await asyncio.gather(*(with_patient(f) for f in items)))

    async def for_patient(self, patient_id: str, token: str) -> List[Dict[str, Any]]:
        """A patient's own feedback with doctor and appointment summaries."""
        items = self.db.query(Feedback).filter(
            Feedback.patient_id == patient_id
        ).order_by(Feedback.created_at.desc()).all()

        async def with_details(feedback: Feedback) -> Dict[str, Any]:
            data = self._to_json(feedback)
            try:
                doctor = await self.clients.get_doctor_with_user(feedback.doctor_id)
                if doctor is not None:
                    data["doctor"] = {
                        "name": doctor["user"].get("name"),
                        "specializations": doctor.get("specializations", []),
                    }
            except ServiceCallError as e:
                logger.error(f"Error fetching doctor details: {e}")

            try:
                appointment = await self.clients.get_appointment(feedback.appointment_id, token)
                if appointment is not None:
                    data["appointment"] = {
                        "date": appointment.get("date"),
                        "startTime": appointment.get("startTime"),
                    }
            except ServiceCallError as e:
                logger.error(f"Error fetching appointment details: {e}")
            return data

        return list(await asyncio.gather(*(with_details(f) for f in items)))

    async def stats_for_doctor(self, doctor_id: str) -> FeedbackStats:
        """Average rating and 1-5 distribution for a doctor."""
        await self.ensure_doctor_exists(doctor_id)

        rows = self.db.query(Feedback.rating, func.count(Feedback.id)).filter(
            Feedback.doctor_id == doctor_id
        ).group_by(Feedback.rating).all()

        distribution = {str(rating): 0 for rating in RATINGS}
        total = 0
        rating_sum = 0
        for rating, count in rows:
            distribution[str(rating)] = count
            total += count
            rating_sum += rating * count

        return FeedbackStats(
            average_rating=rating_sum / total if total else 0,
            total_feedback=total,
            rating_distribution=distribution,
        )

    @staticmethod
    def _to_json(feedback: Feedback) -> Dict[str, Any]:
        return FeedbackResponse.model_validate(feedback).model_dump(by_alias=True, mode="json")
