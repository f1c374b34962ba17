"""Builders and identity helpers shared by the test modules."""

from datetime import date, datetime, timedelta
from typing import Optional
from sqlalchemy.orm import Session
import uuid

from telehealth.core.permissions import CurrentUser, permissions_for_role
from telehealth.core.security import create_access_token
from telehealth.domain.auth.models import User, UserRole
from telehealth.domain.auth.repository import UserRepository
from telehealth.domain.patients.models import Patient, Gender
from telehealth.domain.appointments.models import Appointment, AppointmentStatus

# Wednesday; its week runs Mon 2030-01-07 .. Sun 2030-01-13
FIXED_NOW = datetime(2030, 1, 9, 8, 0)


def caller_for(user: User) -> CurrentUser:
    """Identity the API would build from this user's token"""
    return CurrentUser(id=user.id, role=user.role, permissions=permissions_for_role(user.role))


def auth_headers(user: User) -> dict:
    token = create_access_token(str(user.id), {"role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


def upcoming_weekday(weekday: int, min_days_ahead: int = 2) -> date:
    """First date at least min_days_ahead from today falling on weekday (0=Monday)"""
    day = date.today() + timedelta(days=min_days_ahead)
    while day.weekday() != weekday:
        day += timedelta(days=1)
    return day


def make_user(db: Session, role: UserRole, full_name: str, specialty: Optional[str] = None) -> User:
    return UserRepository(db).create({
        "email": f"{uuid.uuid4().hex[:10]}@example.com",
        "full_name": full_name,
        "role": role,
        "specialty": specialty,
        "is_active": True,
    })


def make_patient(
    db: Session,
    full_name: str = "Jane Doe",
    gender: Optional[Gender] = Gender.FEMALE,
    providers: Optional[list] = None,
    user: Optional[User] = None
) -> Patient:
    patient = Patient(
        full_name=full_name,
        gender=gender,
        date_of_birth=date(1990, 1, 1),
        user_id=user.id if user else None,
    )
    patient.providers = list(providers or [])
    db.add(patient)
    db.commit()
    db.refresh(patient)
    return patient


def make_appointment(
    db: Session,
    provider: User,
    patient: Patient,
    when: datetime,
    status: AppointmentStatus = AppointmentStatus.SCHEDULED,
    duration: int = 30
) -> Appointment:
    """Insert an appointment directly, bypassing booking rules"""
    appointment = Appointment(
        appointment_number=f"APT-{when:%Y%m%d}-{uuid.uuid4().hex[:8].upper()}",
        provider_id=provider.id,
        patient_id=patient.id,
        date_time=when,
        duration=duration,
        status=status,
        reason="Routine check",
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment
