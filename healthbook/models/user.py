from sqlalchemy import Column, String, DateTime, Date, Enum as SQLEnum
from sqlalchemy.sql import func

from ..core.database import Base, generate_id, utcnow
from ..core.security import UserRole

class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(200), nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False)

    # Contact information
    phone = Column(String(30), nullable=True)
    address = Column(String(255), nullable=True)
    profile_picture = Column(String(500), nullable=True)
    date_of_birth = Column(Date, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
