from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from contextlib import asynccontextmanager
import time
import logging

from .api.routes import appointments, doctors, feedback, notifications, specializations, users
from .core.config import settings
from .core.database import SessionLocal, init_db
from .models.appointment import Appointment
from .models.doctor import (
    AvailabilitySlot, Doctor, Qualification, Specialization, doctor_specializations
)
from .models.feedback import Feedback
from .models.notification import Notification
from .models.user import User
from .services.user_service import seed_admin

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Routers and tables owned by each service
SERVICES = {
    "user": {
        "title": "User Service API",
        "routers": [users.router],
        "tables": [User.__table__],
    },
    "doctor": {
        "title": "Doctor Service API",
        "routers": [doctors.router, specializations.router],
        "tables": [
            Specialization.__table__, Doctor.__table__, doctor_specializations,
            Qualification.__table__, AvailabilitySlot.__table__,
        ],
    },
    "appointment": {
        "title": "Appointment Service API",
        "routers": [appointments.router],
        "tables": [Appointment.__table__],
    },
    "feedback": {
        "title": "Feedback Service API",
        "routers": [feedback.router],
        "tables": [Feedback.__table__],
    },
    "notification": {
        "title": "Notification Service API",
        "routers": [notifications.router],
        "tables": [Notification.__table__],
    },
}

def _validation_errors(exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors.append({
            "field": ".".join(location),
            "message": error.get("msg", "Invalid value"),
        })
    return errors

def create_app(service_name: str) -> FastAPI:
    """Build the FastAPI application for one service."""
    if service_name not in SERVICES:
        raise ValueError(f"Unknown service '{service_name}'. Choose from: {', '.join(SERVICES)}")

    service = SERVICES[service_name]
    label = f"{service_name}-service"

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create this service's tables on startup."""
        logger.info(f"Starting {label}...")

        try:
            init_db(service["tables"])
            logger.info("Database initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize database: {str(e)}")
            raise

        if service_name == "user":
            db = SessionLocal()
            try:
                seed_admin(db)
            finally:
                db.close()

        logger.info(f"{label} startup complete")
        yield
        logger.info(f"Shutting down {label}...")

    app = FastAPI(
        title=service["title"],
        version=settings.VERSION,
        description=f"{service['title']} for the Healthcare Appointment System",
        openapi_url="/openapi.json",
        docs_url="/api-docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # Middleware setup
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.ALLOWED_HOSTS != ["*"]:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

    # Request logging and timing
    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        logger.info(
            f"[{label}] {request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.4f}s"
        )

        return response

    # Exception handlers
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"errors": _validation_errors(exc)}
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning(f"Integrity error on {request.url.path}: {exc.orig}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Duplicate value"}
        )

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.error(f"Internal server error: {str(exc)}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal Server Error",
                "message": "Server error"
            }
        )

    for router in service["routers"]:
        app.include_router(router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "UP",
            "service": label,
            "version": settings.VERSION,
            "timestamp": time.time()
        }

    @app.get("/")
    async def root():
        return {
            "message": f"Welcome to the {service['title']}",
            "service": label,
            "version": settings.VERSION,
            "docs": "/api-docs",
            "health": "/health"
        }

    return app

app = create_app(settings.SERVICE_NAME)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "healthbook.main:app",
        host="0.0.0.0",
        port=settings.service_port(settings.SERVICE_NAME),
        reload=settings.DEBUG,
        log_level="info"
    )
