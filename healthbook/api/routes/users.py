from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...core.security import UserRole, TokenPayload, AuthorizationError
from ...api.deps import (
    get_current_user, get_current_user_token, get_admin_user, rate_limit_check
)
from ...services.user_service import UserService
from ...schemas.common import MessageResponse
from ...schemas.user import (
    UserLogin, UserRegister, UserCreate, UserUpdate, UserResponse,
    AuthResponse, ChangePassword
)
from ...models.user import User

router = APIRouter(prefix="/api/users", tags=["Users"])

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Register a new patient or doctor account."""
    return UserService(db).register_user(user_data)

@router.post("/login", response_model=AuthResponse)
async def login(
    login_data: UserLogin,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Authenticate user and return an access token."""
    return UserService(db).authenticate_user(login_data)

@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user information."""
    return current_user

@router.get("/profile", response_model=UserResponse)
async def get_profile(
    current_user: User = Depends(get_current_user)
):
    return current_user

@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    password_data: ChangePassword,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Change user password."""
    UserService(db).change_password(current_user, password_data)
    return {"message": "Password changed successfully"}

# Admin routes
@router.get("", response_model=List[UserResponse])
async def list_users(
    role: Optional[UserRole] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    _: TokenPayload = Depends(get_admin_user)
):
    """List all users (admin only)."""
    return UserService(db).list_users(role=role, skip=skip, limit=limit)

@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    _: TokenPayload = Depends(get_admin_user)
):
    """Create an account of any role (admin only)."""
    return UserService(db).create_user(user_data)

@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, db: Session = Depends(get_db)):
    """Public account lookup used by the other services."""
    return UserService(db).get_user(user_id)

@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    update_data: UserUpdate,
    db: Session = Depends(get_db),
    token_payload: TokenPayload = Depends(get_current_user_token)
):
    """Update a profile (the account owner or an admin)."""
    if token_payload.role != UserRole.ADMIN and token_payload.sub != user_id:
        raise AuthorizationError("Not authorized")

    service = UserService(db)
    user = service.get_user(user_id)
    return service.update_user(user, update_data)

@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    _: TokenPayload = Depends(get_admin_user)
):
    """Delete an account (admin only)."""
    service = UserService(db)
    service.delete_user(service.get_user(user_id))
    return {"message": "User removed"}
