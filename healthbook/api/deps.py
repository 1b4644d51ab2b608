from fastapi import Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from typing import Optional, List

from ..clients.service_client import ServiceClients
from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.security import (
    security, verify_token, AuthenticationError,
    AuthorizationError, UserRole, TokenPayload
)
from ..models.user import User

async def get_auth_token(
    token: Optional[str] = Depends(security)
) -> str:
    """Raw ``x-auth-token`` value, forwarded on calls to other services."""
    if not token:
        raise AuthenticationError("No token, authorization denied")
    return token

async def get_current_user_token(
    token: str = Depends(get_auth_token)
) -> TokenPayload:
    """Verify the JWT carried in the x-auth-token header."""
    token_payload = verify_token(token)
    if not token_payload:
        raise AuthenticationError("Invalid or expired token")

    if not token_payload.sub or not token_payload.role:
        raise AuthenticationError("Invalid token payload")

    return token_payload

async def get_current_user(
    token_payload: TokenPayload = Depends(get_current_user_token),
    db: Session = Depends(get_db)
) -> User:
    """Load the authenticated account (user service only)."""
    user = db.query(User).filter(User.id == token_payload.sub).first()
    if not user:
        raise AuthenticationError("User not found")

    return user

# Role-based access control dependencies
def require_role(allowed_roles: List[UserRole]):
    """Create a dependency that requires specific user roles."""
    async def role_checker(
        token_payload: TokenPayload = Depends(get_current_user_token)
    ) -> TokenPayload:
        if token_payload.role not in allowed_roles:
            raise AuthorizationError(
                f"Access denied. Required roles: {[role.value for role in allowed_roles]}"
            )
        return token_payload

    return role_checker

# Specific role dependencies
async def get_admin_user(
    token_payload: TokenPayload = Depends(require_role([UserRole.ADMIN]))
) -> TokenPayload:
    """Require admin role."""
    return token_payload

async def get_patient_user(
    token_payload: TokenPayload = Depends(require_role([UserRole.PATIENT, UserRole.ADMIN]))
) -> TokenPayload:
    """Require patient or admin role."""
    return token_payload

_service_clients: Optional[ServiceClients] = None

def get_service_clients() -> ServiceClients:
    """HTTP clients for the other services."""
    global _service_clients
    if _service_clients is None:
        _service_clients = ServiceClients.from_settings(settings)
    return _service_clients

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Basic per-IP rate limiting for authentication endpoints."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{request.url.path}:{client_ip}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, settings.RATE_LIMIT_WINDOW_SECONDS, 1)
    else:
        if int(current_requests) >= settings.RATE_LIMIT_REQUESTS:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later."
            )
        redis_client.incr(key)
