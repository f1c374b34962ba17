from sqlalchemy import Column, String, Date, DateTime, ForeignKey, Text, Enum, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from telehealth.infrastructure.database import Base
import uuid
import enum


class ReportStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REVIEWED = "reviewed"


class Report(Base):
    """Medical report written by a provider, with its generated PDF"""
    __tablename__ = "reports"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id = Column(Uuid, ForeignKey("patients.id"), nullable=False, index=True)
    provider_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    type = Column(String(100), nullable=False)  # free text, e.g. "Blood Test"
    date = Column(Date, nullable=False)
    status = Column(Enum(ReportStatus), nullable=False, default=ReportStatus.PENDING)

    results = Column(Text, nullable=False)
    recommendations = Column(Text)
    notes = Column(Text)

    pdf_path = Column(String(500), nullable=False)

    created_at = Column(DateTime, default=func.now())

    # Relationships
    patient = relationship("Patient", foreign_keys=[patient_id])
    provider = relationship("User", foreign_keys=[provider_id])
