from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from datetime import date
from typing import Any, Callable, Dict, List, Optional
import asyncio
import logging

from ..clients.service_client import ServiceClients, ServiceCallError
from ..core.config import settings
from ..core.security import TokenPayload, UserRole, AuthorizationError
from ..models.appointment import Appointment, AppointmentStatus
from ..schemas.appointment import AppointmentCreate, AppointmentResponse, AppointmentStatusUpdate
from .availability import compute_available_slots

logger = logging.getLogger(__name__)

# scheduled is the only non-terminal state
ALLOWED_TRANSITIONS = {
    AppointmentStatus.SCHEDULED: {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED},
    AppointmentStatus.COMPLETED: set(),
    AppointmentStatus.CANCELLED: set(),
}

def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]

class AppointmentService:
    def __init__(self, db: Session, clients: ServiceClients):
        self.db = db
        self.clients = clients

    async def create_appointment(self, patient_id: str, data: AppointmentCreate) -> Appointment:
        """Book a slot for a patient."""
        try:
            doctor = await self.clients.get_doctor(data.doctor_id)
        except ServiceCallError as e:
            logger.error(f"Error verifying doctor {data.doctor_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error verifying doctor"
            )
        if doctor is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Doctor not found"
            )

        # Read-then-write; concurrent bookings of one slot are not prevented
        if self.find_active(data.doctor_id, data.date, data.start_time):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This time slot is already booked"
            )

        appointment = Appointment(
            patient_id=patient_id,
            doctor_id=data.doctor_id,
            date=data.date,
            start_time=data.start_time,
            end_time=data.end_time,
            reason=data.reason,
            status=AppointmentStatus.SCHEDULED,
        )
        self.db.add(appointment)
        self.db.commit()
        self.db.refresh(appointment)

        logger.info(f"Booked appointment {appointment.id} with doctor {appointment.doctor_id}")
        return appointment

    def find_active(self, doctor_id: str, day: date, start_time: str) -> Optional[Appointment]:
        return self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.date == day,
            Appointment.start_time == start_time,
            Appointment.status != AppointmentStatus.CANCELLED,
        ).first()

    def booked_start_times(self, doctor_id: str, day: date) -> List[str]:
        rows = self.db.query(Appointment.start_time).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.date == day,
            Appointment.status != AppointmentStatus.CANCELLED,
        ).all()
        return [row.start_time for row in rows]

    async def available_slots(self, doctor_id: str, day: date) -> List[str]:
        """Free slot start times for a doctor on a date."""
        try:
            doctor = await self.clients.get_doctor(doctor_id)
        except ServiceCallError as e:
            logger.error(f"Error fetching doctor details: {e}")
            doctor = None

        if doctor is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Doctor not found"
            )

        template = doctor.get("availableSlots") or []
        if not template:
            return []

        return compute_available_slots(
            template,
            day,
            self.booked_start_times(doctor_id, day),
            settings.SLOT_MINUTES,
        )

    def get_appointment(self, appointment_id: str) -> Appointment:
        appointment = self.db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if not appointment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Appointment not found"
            )
        return appointment

    async def list_appointments(
        self,
        token_payload: TokenPayload,
        token: str,
        status_filter: Optional[AppointmentStatus] = None,
        upcoming: bool = False,
    ) -> List[Appointment]:
        """Appointments visible to the caller, ordered by date and start time."""
        query = self.db.query(Appointment)

        if token_payload.role == UserRole.PATIENT:
            query = query.filter(Appointment.patient_id == token_payload.sub)
        elif token_payload.role == UserRole.DOCTOR:
            doctor_id = await self._own_doctor_id(token_payload, token)
            if doctor_id is None:
                return []
            query = query.filter(Appointment.doctor_id == doctor_id)

        if upcoming:
            query = query.filter(
                Appointment.status == AppointmentStatus.SCHEDULED,
                Appointment.date >= date.today(),
            )
        elif status_filter:
            query = query.filter(Appointment.status == status_filter)

        query = query.order_by(Appointment.date.asc(), Appointment.start_time.asc())
        if upcoming:
            query = query.limit(settings.UPCOMING_LIMIT)
        return query.all()

    async def _own_doctor_id(self, token_payload: TokenPayload, token: str) -> Optional[str]:
        """Doctor profile id of the caller; None when missing or unreachable."""
        try:
            doctor = await self.clients.get_doctor_by_user(token_payload.sub, token)
        except ServiceCallError as e:
            logger.error(f"Error fetching doctor profile: {e}")
            return None
        return doctor["id"] if doctor else None

    async def check_access(
        self,
        appointment: Appointment,
        token_payload: TokenPayload,
        token: str,
        action: str = "view",
    ) -> None:
        """Admins, the booking patient and the appointment's doctor only."""
        if token_payload.role == UserRole.ADMIN or token_payload.sub == appointment.patient_id:
            return

        if token_payload.role == UserRole.DOCTOR:
            try:
                doctor = await self.clients.get_doctor_by_user(token_payload.sub, token)
            except ServiceCallError as e:
                logger.error(f"Error fetching doctor profile: {e}")
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail="Error checking authorization"
                )
            if doctor and doctor["id"] == appointment.doctor_id:
                return

        raise AuthorizationError(f"Not authorized to {action} this appointment")

    async def update_status(
        self,
        appointment: Appointment,
        update: AppointmentStatusUpdate,
        token_payload: TokenPayload,
        token: str,
    ) -> Appointment:
        """Move an appointment to a terminal state."""
        if token_payload.role == UserRole.PATIENT:
            if token_payload.sub != appointment.patient_id:
                raise AuthorizationError("Not authorized to update this appointment")
            if update.status != AppointmentStatus.CANCELLED:
                raise AuthorizationError("Patients can only cancel appointments")
        else:
            await self.check_access(appointment, token_payload, token, action="update")

        if not can_transition(appointment.status, update.status):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot change status from {appointment.status.value} to {update.status.value}"
            )

        appointment.status = update.status
        if update.notes:
            appointment.notes = update.notes

        self.db.commit()
        self.db.refresh(appointment)

        logger.info(f"Appointment {appointment.id} is now {appointment.status.value}")
        return appointment

    def scheduled_on(self, day: date) -> List[Appointment]:
        return self.db.query(Appointment).filter(
            Appointment.date == day,
            Appointment.status == AppointmentStatus.SCHEDULED,
        ).order_by(Appointment.start_time.asc()).all()

    async def enrich(self, appointment: Appointment) -> Dict[str, Any]:
        """
        Appointment JSON with ``patient`` and ``doctor`` attached.

        Each lookup is independent; a failed one leaves its field out rather
        than failing the response.
        """
        data = AppointmentResponse.model_validate(appointment).model_dump(by_alias=True, mode="json")

        try:
            patient = await self.clients.get_user(appointment.patient_id)
            if patient is not None:
                data["patient"] = patient
        except ServiceCallError as e:
            logger.error(f"Error fetching patient details: {e}")

        try:
            doctor = await self.clients.get_doctor_with_user(appointment.doctor_id)
            if doctor is not None:
                data["doctor"] = doctor
        except ServiceCallError as e:
            logger.error(f"Error fetching doctor details: {e}")

        return data

    async def enrich_many(self, appointments: List[Appointment]) -> List[Dict[str, Any]]:
        return list(await asyncio.gather(*(self.enrich(a) for a in appointments)))

async def notify_appointment_event(
    clients: ServiceClients,
    session_factory: Callable[[], Session],
    appointment_id: str,
    event: str,
    token: Optional[str],
) -> bool:
    """
    Best-effort notification for an appointment event.

    Failures are logged and never affect the appointment itself. A delivered
    notification sets ``notification_sent``.
    """
    try:
        await clients.send_appointment_notification(appointment_id, event, token)
    except ServiceCallError as e:
        logger.error(f"Notification service error: {e}")
        return False

    db = session_factory()
    try:
        appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if appointment:
            appointment.notification_sent = True
            db.commit()
    finally:
        db.close()
    return True
