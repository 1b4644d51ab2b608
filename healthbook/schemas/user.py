from pydantic import EmailStr, Field, field_validator
from typing import Optional
from datetime import date, datetime

from ..core.security import UserRole
from .common import CamelModel

class UserBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=255)
    profile_picture: Optional[str] = None
    date_of_birth: Optional[date] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

class UserRegister(UserBase):
    password: str = Field(..., min_length=6, max_length=72)
    role: UserRole = UserRole.PATIENT

    @field_validator("role")
    @classmethod
    def self_service_role(cls, v: UserRole) -> UserRole:
        if v == UserRole.ADMIN:
            raise ValueError("Admin accounts cannot be self-registered")
        return v

class UserCreate(UserBase):
    """Admin-created account; any role allowed."""
    password: str = Field(..., min_length=6, max_length=72)
    role: UserRole

class UserLogin(CamelModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

class UserUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=255)
    profile_picture: Optional[str] = None
    date_of_birth: Optional[date] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v

class ChangePassword(CamelModel):
    current_password: str
    new_password: str = Field(..., min_length=6, max_length=72)

class UserResponse(CamelModel):
    id: str
    email: str
    name: str
    role: UserRole
    phone: Optional[str] = None
    address: Optional[str] = None
    profile_picture: Optional[str] = None
    date_of_birth: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class AuthResponse(CamelModel):
    token: str
    user: UserResponse
