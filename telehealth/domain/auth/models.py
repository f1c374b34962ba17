from sqlalchemy import Column, String, Boolean, DateTime, Enum, Uuid
from sqlalchemy.sql import func
from telehealth.infrastructure.database import Base
import uuid
import enum


class UserRole(str, enum.Enum):
    """Roles of the three telehealth portals"""
    PATIENT = "patient"
    PROVIDER = "provider"
    ADMIN = "admin"


class User(Base):
    """Account for a patient, provider or administrator"""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(200), nullable=False)

    role = Column(Enum(UserRole), nullable=False, default=UserRole.PATIENT)
    specialty = Column(String(100))  # providers only

    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
