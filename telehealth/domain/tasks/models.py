from sqlalchemy import Column, DateTime, ForeignKey, Text, Enum, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from telehealth.infrastructure.database import Base
import uuid
import enum


class TaskStatus(str, enum.Enum):
    """Task status; overdue is normally derived when tasks are read"""
    PENDING = "pending"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class Task(Base):
    """Follow-up work item on a provider's to-do list"""
    __tablename__ = "tasks"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    assigned_to_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    description = Column(Text, nullable=False)
    status = Column(Enum(TaskStatus), nullable=False, default=TaskStatus.PENDING, index=True)
    due_date = Column(DateTime, index=True)

    related_patient_id = Column(Uuid, ForeignKey("patients.id", ondelete="SET NULL"))
    created_by = Column(Uuid, ForeignKey("users.id"))

    created_at = Column(DateTime, default=func.now())
    completed_at = Column(DateTime)

    # Relationships
    assigned_to = relationship("User", foreign_keys=[assigned_to_id])
    related_patient = relationship("Patient", foreign_keys=[related_patient_id])
