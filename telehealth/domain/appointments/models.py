"""
Appointments Domain Models

Implements the database models for:
- Appointment scheduling and the status lifecycle
- Provider working-hour windows
"""

from datetime import datetime, timedelta
from sqlalchemy import (
    Column, String, Boolean, DateTime, ForeignKey,
    Integer, Time, Text, Enum, Uuid, CheckConstraint, Index, text
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from telehealth.infrastructure.database import Base
import uuid
import enum


class AppointmentStatus(str, enum.Enum):
    """Appointment status enumeration"""
    PENDING = "pending"
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Allowed status changes; completed and cancelled are terminal
STATUS_TRANSITIONS = {
    AppointmentStatus.PENDING: frozenset({
        AppointmentStatus.SCHEDULED,
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.SCHEDULED: frozenset({
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.CONFIRMED: frozenset({
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}


def can_transition(current: AppointmentStatus, requested: AppointmentStatus) -> bool:
    return requested in STATUS_TRANSITIONS[current]


class AppointmentType(str, enum.Enum):
    """Type of appointment"""
    CONSULTATION = "consultation"
    FOLLOW_UP = "follow-up"
    CHECKUP = "checkup"
    EMERGENCY = "emergency"
    ROUTINE = "routine"


class AppointmentPriority(str, enum.Enum):
    """Triage priority chosen at booking time"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ProviderSchedule(Base):
    """Working-hour window of a provider on one weekday"""
    __tablename__ = "provider_schedules"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    provider_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Day of week (0=Monday, 6=Sunday)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Relationships
    provider = relationship("User", foreign_keys=[provider_id])

    __table_args__ = (
        CheckConstraint('day_of_week >= 0 AND day_of_week <= 6', name='check_day_of_week'),
        CheckConstraint('start_time < end_time', name='check_time_order'),
    )


class Appointment(Base):
    """Booked consultation between a provider and a patient"""
    __tablename__ = "appointments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    appointment_number = Column(String(50), unique=True, nullable=False, index=True)

    # Patient and provider
    provider_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    patient_id = Column(Uuid, ForeignKey("patients.id"), nullable=False, index=True)

    # Scheduling
    date_time = Column(DateTime, nullable=False, index=True)
    duration = Column(Integer, nullable=False, default=30)  # minutes

    # Type and status
    appointment_type = Column(Enum(AppointmentType), nullable=False, default=AppointmentType.CONSULTATION)
    status = Column(Enum(AppointmentStatus), nullable=False, default=AppointmentStatus.PENDING)
    priority = Column(Enum(AppointmentPriority), nullable=False, default=AppointmentPriority.MEDIUM)

    # Visit details
    reason = Column(Text, nullable=False)
    symptoms = Column(Text)
    notes = Column(Text)
    doctor_notes = Column(Text)

    # Lifecycle tracking
    confirmed_at = Column(DateTime)
    completed_at = Column(DateTime)
    cancelled_at = Column(DateTime)
    cancelled_by = Column(Uuid, ForeignKey("users.id"))
    cancellation_reason = Column(Text)

    # Audit
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
    created_by = Column(Uuid, ForeignKey("users.id"))

    # Relationships
    patient = relationship("Patient", foreign_keys=[patient_id])
    provider = relationship("User", foreign_keys=[provider_id])

    __table_args__ = (
        CheckConstraint('duration > 0', name='check_duration_positive'),
        # Two live bookings can never share a start time for one provider
        Index(
            'uq_active_appointment_start',
            'provider_id', 'date_time',
            unique=True,
            sqlite_where=text("status != 'CANCELLED'"),
            postgresql_where=text("status != 'CANCELLED'"),
        ),
    )

    @property
    def end_time(self) -> datetime:
        return self.date_time + timedelta(minutes=self.duration)
