from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from typing import List, Optional
import logging

from ..models.user import User
from ..core.config import settings
from ..core.security import (
    verify_password, get_password_hash, create_access_token, UserRole
)
from ..schemas.user import (
    UserLogin, UserRegister, UserCreate, UserUpdate, UserResponse,
    AuthResponse, ChangePassword
)

logger = logging.getLogger(__name__)

class UserService:
    def __init__(self, db: Session):
        self.db = db

    def register_user(self, user_data: UserRegister) -> AuthResponse:
        """Register a new account and sign it in."""
        user = self.create_user(user_data)
        return self._auth_response(user)

    def create_user(self, user_data: UserCreate) -> User:
        """Create an account with a hashed password."""
        if self.get_by_email(user_data.email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="User already exists"
            )

        new_user = User(
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
            name=user_data.name,
            role=user_data.role,
            phone=user_data.phone,
            address=user_data.address,
            profile_picture=user_data.profile_picture,
            date_of_birth=user_data.date_of_birth,
        )

        self.db.add(new_user)
        self.db.commit()
        self.db.refresh(new_user)

        logger.info(f"Created {new_user.role.value} account {new_user.id}")
        return new_user

    def authenticate_user(self, login_data: UserLogin) -> AuthResponse:
        """Check credentials and issue an access token."""
        user = self.get_by_email(login_data.email)

        if not user or not verify_password(login_data.password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password"
            )

        return self._auth_response(user)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.lower()).first()

    def get_user(self, user_id: str) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )
        return user

    def list_users(
        self,
        role: Optional[UserRole] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[User]:
        query = self.db.query(User)
        if role:
            query = query.filter(User.role == role)
        return query.order_by(User.created_at.desc()).offset(skip).limit(limit).all()

    def update_user(self, user: User, update_data: UserUpdate) -> User:
        """Update profile fields; the role is fixed after creation."""
        changes = update_data.model_dump(exclude_unset=True)

        new_email = changes.get("email")
        if new_email and new_email != user.email and self.get_by_email(new_email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already in use"
            )

        for field, value in changes.items():
            if field in ("name", "email") and value is None:
                continue
            setattr(user, field, value)

        self.db.commit()
        self.db.refresh(user)
        return user

    def change_password(self, user: User, password_data: ChangePassword) -> None:
        if not verify_password(password_data.current_password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Current password is incorrect"
            )

        user.password_hash = get_password_hash(password_data.new_password)
        self.db.commit()

    def delete_user(self, user: User) -> None:
        self.db.delete(user)
        self.db.commit()
        logger.info(f"Deleted account {user.id}")

    def ensure_admin(self, email: str, password: str, name: str) -> Optional[User]:
        """Seed the bootstrap admin account if it does not exist yet."""
        if self.get_by_email(email):
            return None

        return self.create_user(UserCreate(
            name=name,
            email=email,
            password=password,
            role=UserRole.ADMIN,
        ))

    def _auth_response(self, user: User) -> AuthResponse:
        token = create_access_token(user.id, user.email, user.role)
        return AuthResponse(token=token, user=UserResponse.model_validate(user))

def seed_admin(db: Session) -> None:
    """Create the admin account configured through ADMIN_EMAIL/ADMIN_PASSWORD."""
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        return

    admin = UserService(db).ensure_admin(
        settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD, settings.ADMIN_NAME
    )
    if admin:
        logger.info(f"Seeded admin account {admin.email}")
