"""
HTTP clients for calls between services.

Every lookup goes through ``ServiceClient``: 404 becomes ``None``, transport
failures and unexpected statuses raise ``ServiceCallError`` so route handlers
can decide whether to degrade or fail.
"""
from typing import Any, Dict, List, Mapping, Optional
import logging

import httpx

from ..core.config import Settings
from ..core.security import AUTH_HEADER

logger = logging.getLogger(__name__)

class ServiceCallError(Exception):
    """A downstream service could not be reached or answered unexpectedly."""

    def __init__(self, service: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{service} service: {message}")
        self.service = service
        self.status_code = status_code

class ServiceClient:
    def __init__(
        self,
        name: str,
        base_url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.name = name
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        if token:
            headers[AUTH_HEADER] = token

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise ServiceCallError(self.name, f"{method} {path} failed: {e}") from e

        if response.status_code >= 500:
            raise ServiceCallError(
                self.name,
                f"{method} {path} returned {response.status_code}",
                response.status_code,
            )
        return response

    async def get_json(self, path: str, token: Optional[str] = None) -> Optional[Any]:
        """GET a JSON document; ``None`` when the resource does not exist."""
        response = await self.request("GET", path, token=token)
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise ServiceCallError(
                self.name,
                f"GET {path} returned {response.status_code}",
                response.status_code,
            )
        return response.json()

class ServiceClients:
    """Registry of the downstream services a handler may call."""

    def __init__(
        self,
        users: ServiceClient,
        doctors: ServiceClient,
        appointments: ServiceClient,
        notifications: ServiceClient,
    ):
        self.users = users
        self.doctors = doctors
        self.appointments = appointments
        self.notifications = notifications

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transports: Optional[Mapping[str, httpx.AsyncBaseTransport]] = None,
    ) -> "ServiceClients":
        transports = transports or {}
        timeout = settings.SERVICE_TIMEOUT_SECONDS

        def client(name: str, url: str) -> ServiceClient:
            return ServiceClient(name, url, timeout=timeout, transport=transports.get(name))

        return cls(
            users=client("user", settings.USER_SERVICE_URL),
            doctors=client("doctor", settings.DOCTOR_SERVICE_URL),
            appointments=client("appointment", settings.APPOINTMENT_SERVICE_URL),
            notifications=client("notification", settings.NOTIFICATION_SERVICE_URL),
        )

    async def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        return await self.users.get_json(f"/api/users/{user_id}")

    async def get_doctor(self, doctor_id: str) -> Optional[Dict[str, Any]]:
        return await self.doctors.get_json(f"/api/doctors/{doctor_id}")

    async def get_doctor_by_user(
        self, user_id: str, token: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        return await self.doctors.get_json(f"/api/doctors/user/{user_id}", token=token)

    async def get_doctor_with_user(self, doctor_id: str) -> Optional[Dict[str, Any]]:
        """Doctor profile with the owning user account nested under ``user``."""
        doctor = await self.get_doctor(doctor_id)
        if doctor is None:
            return None
        user = await self.get_user(doctor["userId"])
        if user is None:
            return None
        return {**doctor, "user": user}

    async def get_appointment(
        self, appointment_id: str, token: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        return await self.appointments.get_json(
            f"/api/appointments/{appointment_id}", token=token
        )

    async def send_appointment_notification(
        self, appointment_id: str, event: str, token: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        response = await self.notifications.request(
            "POST",
            "/api/notifications/appointment",
            token=token,
            json={"appointmentId": appointment_id, "type": event},
        )
        if response.status_code != 201:
            raise ServiceCallError(
                self.notifications.name,
                f"appointment notification returned {response.status_code}",
                response.status_code,
            )
        return response.json()
