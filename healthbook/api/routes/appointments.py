from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional

from ...clients.service_client import ServiceClients
from ...core.database import get_db, get_session_factory
from ...core.security import TokenPayload
from ...api.deps import (
    get_auth_token, get_current_user_token, get_patient_user, get_admin_user,
    get_service_clients
)
from ...services.appointment_service import AppointmentService, notify_appointment_event
from ...schemas.appointment import (
    AppointmentCreate, AppointmentResponse, AppointmentStatusUpdate, ReminderResult
)
from ...models.appointment import AppointmentStatus

router = APIRouter(prefix="/api/appointments", tags=["Appointments"])

@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    data: AppointmentCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
    clients: ServiceClients = Depends(get_service_clients),
    token: str = Depends(get_auth_token),
    token_payload: TokenPayload = Depends(get_patient_user)
):
    """Book an appointment for the calling patient."""
    appointment = await AppointmentService(db, clients).create_appointment(token_payload.sub, data)

    background_tasks.add_task(
        notify_appointment_event, clients, session_factory, appointment.id, "new", token
    )
    return appointment

@router.get("", response_model=List[Dict[str, Any]])
async def list_appointments(
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    clients: ServiceClients = Depends(get_service_clients),
    token: str = Depends(get_auth_token),
    token_payload: TokenPayload = Depends(get_current_user_token)
):
    """Appointments of the caller (all of them for admins)."""
    service = AppointmentService(db, clients)
    appointments = await service.list_appointments(token_payload, token, status_filter=status_filter)
    return await service.enrich_many(appointments)

@router.get("/upcoming", response_model=List[Dict[str, Any]])
async def upcoming_appointments(
    db: Session = Depends(get_db),
    clients: ServiceClients = Depends(get_service_clients),
    token: str = Depends(get_auth_token),
    token_payload: TokenPayload = Depends(get_current_user_token)
):
    """Next scheduled appointments of the caller."""
    service = AppointmentService(db, clients)
    appointments = await service.list_appointments(token_payload, token, upcoming=True)
    return await service.enrich_many(appointments)

@router.get("/doctor/{doctor_id}/available", response_model=List[str])
async def available_slots(
    doctor_id: str,
    day: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    clients: ServiceClients = Depends(get_service_clients)
):
    """Free slot start times for a doctor on a date."""
    return await AppointmentService(db, clients).available_slots(doctor_id, day)

@router.post("/reminders", response_model=ReminderResult)
async def send_reminders(
    day: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
    clients: ServiceClients = Depends(get_service_clients),
    token: str = Depends(get_auth_token),
    _: TokenPayload = Depends(get_admin_user)
):
    """Send reminders for scheduled appointments on a date, tomorrow by default (admin only)."""
    target = day or date.today() + timedelta(days=1)
    appointments = AppointmentService(db, clients).scheduled_on(target)

    sent = 0
    for appointment in appointments:
        if await notify_appointment_event(
            clients, session_factory, appointment.id, "reminder", token
        ):
            sent += 1

    return ReminderResult(date=target, sent=sent, failed=len(appointments) - sent)

@router.get("/{appointment_id}", response_model=Dict[str, Any])
async def get_appointment(
    appointment_id: str,
    db: Session = Depends(get_db),
    clients: ServiceClients = Depends(get_service_clients),
    token: str = Depends(get_auth_token),
    token_payload: TokenPayload = Depends(get_current_user_token)
):
    service = AppointmentService(db, clients)
    appointment = service.get_appointment(appointment_id)
    await service.check_access(appointment, token_payload, token)
    return await service.enrich(appointment)

@router.put("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_status(
    appointment_id: str,
    update: AppointmentStatusUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
    clients: ServiceClients = Depends(get_service_clients),
    token: str = Depends(get_auth_token),
    token_payload: TokenPayload = Depends(get_current_user_token)
):
    """Complete or cancel an appointment."""
    service = AppointmentService(db, clients)
    appointment = service.get_appointment(appointment_id)
    appointment = await service.update_status(appointment, update, token_payload, token)

    background_tasks.add_task(
        notify_appointment_event, clients, session_factory,
        appointment.id, appointment.status.value, token
    )
    return appointment
