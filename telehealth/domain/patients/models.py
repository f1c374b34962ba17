from sqlalchemy import Column, String, Date, DateTime, ForeignKey, Enum, Table, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from telehealth.infrastructure.database import Base
import uuid
import enum


class Gender(str, enum.Enum):
    """Gender categories reported on the provider dashboard"""
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


# Providers a patient is assigned to
patient_providers = Table(
    "patient_providers",
    Base.metadata,
    Column("patient_id", Uuid, ForeignKey("patients.id", ondelete="CASCADE"), primary_key=True),
    Column("provider_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True),
)


class Patient(Base):
    """Patient record, optionally linked to a patient login"""
    __tablename__ = "patients"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), unique=True, index=True)

    full_name = Column(String(200), nullable=False)
    date_of_birth = Column(Date)
    gender = Column(Enum(Gender))

    phone = Column(String(20))
    email = Column(String(255))

    created_at = Column(DateTime, default=func.now())

    # Relationships
    user = relationship("User", foreign_keys=[user_id])
    providers = relationship("User", secondary=patient_providers, lazy="selectin")

    @property
    def assigned_provider_ids(self):
        return [provider.id for provider in self.providers]
