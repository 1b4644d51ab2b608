from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple
import logging

from ..clients.service_client import ServiceClients, ServiceCallError
from ..core.security import AuthorizationError
from ..models.notification import Notification, NotificationType
from ..schemas.notification import AppointmentEvent, NotificationCreate
from .email_service import EmailError, send_email

logger = logging.getLogger(__name__)

def format_appointment_date(day: date) -> str:
    """``date(2024, 5, 1)`` -> ``5/1/2024``."""
    return f"{day.month}/{day.day}/{day.year}"

def build_messages(
    event: AppointmentEvent,
    doctor_name: str,
    patient_name: str,
    appointment_date: date,
    appointment_time: str,
) -> Tuple[str, str]:
    """Patient and doctor message texts for an appointment event."""
    when = f"on {format_appointment_date(appointment_date)} at {appointment_time}"

    if event == AppointmentEvent.NEW:
        return (
            f"Your appointment with Dr. {doctor_name} {when} has been scheduled.",
            f"New appointment with patient {patient_name} {when}.",
        )
    if event == AppointmentEvent.CANCELLED:
        return (
            f"Your appointment with Dr. {doctor_name} {when} has been cancelled.",
            f"Appointment with patient {patient_name} {when} has been cancelled.",
        )
    if event == AppointmentEvent.COMPLETED:
        return (
            f"Your appointment with Dr. {doctor_name} {when} has been marked as completed.",
            f"Appointment with patient {patient_name} {when} has been marked as completed.",
        )

    if appointment_date == date.today() + timedelta(days=1):
        when = f"tomorrow at {appointment_time}"
    return (
        f"Reminder: You have an appointment with Dr. {doctor_name} {when}.",
        f"Reminder: You have an appointment with patient {patient_name} {when}.",
    )

def email_subjects(event: AppointmentEvent) -> Tuple[str, str]:
    if event == AppointmentEvent.NEW:
        return "Healthcare Appointment Confirmation", "Healthcare Appointment Notification"
    return "Healthcare Appointment Update", "Healthcare Appointment Update"

class NotificationService:
    def __init__(self, db: Session, clients: Optional[ServiceClients] = None):
        self.db = db
        self.clients = clients

    def list_for_user(self, user_id: str, is_read: Optional[bool] = None) -> List[Notification]:
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if is_read is not None:
            query = query.filter(Notification.is_read == is_read)
        return query.order_by(Notification.created_at.desc()).all()

    def create(self, data: NotificationCreate) -> Notification:
        notification = Notification(
            user_id=data.user_id,
            message=data.message,
            type=data.type,
            related_id=data.related_id,
        )
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    async def notify_appointment(
        self, appointment_id: str, event: AppointmentEvent, token: str
    ) -> List[Notification]:
        """
        Notify the patient and the doctor of an appointment event.

        The two notifications are separate inserts. Email is attempted for each
        recipient with an address; a failed email is logged and the
        notification is kept with ``sent_via_email`` unset.
        """
        appointment = await self._fetch_appointment(appointment_id, token)
        patient = await self._fetch_required(
            self.clients.get_user, appointment["patientId"], "patient"
        )
        doctor = await self._fetch_required(
            self.clients.get_doctor_with_user, appointment["doctorId"], "doctor"
        )

        patient_message, doctor_message = build_messages(
            event,
            doctor["user"].get("name"),
            patient.get("name"),
            date.fromisoformat(appointment["date"][:10]),
            appointment["startTime"],
        )
        patient_subject, doctor_subject = email_subjects(event)

        recipients = [
            (appointment["patientId"], patient_message, patient.get("email"), patient_subject),
            (doctor["userId"], doctor_message, doctor["user"].get("email"), doctor_subject),
        ]

        notifications = []
        for user_id, message, _, _ in recipients:
            notifications.append(self.create(NotificationCreate(
                user_id=user_id,
                message=message,
                type=NotificationType.APPOINTMENT,
                related_id=appointment_id,
            )))

        for notification, (_, message, email, subject) in zip(notifications, recipients):
            if not email:
                continue
            try:
                await send_email(email, subject, message)
            except EmailError as e:
                logger.error(f"Error sending email for notification {notification.id}: {e}")
                continue
            notification.sent_via_email = True
            self.db.commit()

        for notification in notifications:
            self.db.refresh(notification)
        return notifications

    async def _fetch_appointment(self, appointment_id: str, token: str) -> Dict[str, Any]:
        try:
            appointment = await self.clients.get_appointment(appointment_id, token)
        except ServiceCallError as e:
            logger.error(f"Error fetching appointment: {e}")
            appointment = None

        if appointment is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Appointment not found"
            )
        return appointment

    async def _fetch_required(self, fetch, resource_id: str, label: str) -> Dict[str, Any]:
        try:
            resource = await fetch(resource_id)
        except ServiceCallError as e:
            logger.error(f"Error fetching {label}: {e}")
            resource = None

        if resource is None:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error fetching {label} details"
            )
        return resource

    def mark_read(self, notification_id: str, user_id: str) -> Notification:
        notification = self.db.query(Notification).filter(
            Notification.id == notification_id
        ).first()
        if not notification:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Notification not found"
            )
        if notification.user_id != user_id:
            raise AuthorizationError("Not authorized")

        notification.is_read = True
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def mark_all_read(self, user_id: str) -> int:
        updated = self.db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.is_read == False,  # noqa: E712
        ).update({"is_read": True}, synchronize_session=False)
        self.db.commit()
        return updated
