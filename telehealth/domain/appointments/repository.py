"""
Appointments Repository Layer

Provides data access operations for appointments and provider schedules.
"""

from typing import Optional, List
from sqlalchemy import and_, func
from sqlalchemy.orm import Session, joinedload
from datetime import datetime, time
import uuid

from telehealth.domain.appointments.models import (
    Appointment, AppointmentStatus, ProviderSchedule
)
from telehealth.domain.auth.models import User, UserRole
from telehealth.infrastructure.database import commit_or_raise


class ProviderScheduleRepository:
    """Repository for provider working-hour windows"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, schedule_data: dict) -> ProviderSchedule:
        """Create a new working-hour window"""
        schedule = ProviderSchedule(**schedule_data)
        self.db.add(schedule)
        commit_or_raise(self.db, "create provider schedule")
        self.db.refresh(schedule)
        return schedule

    def get_by_id(self, schedule_id: uuid.UUID) -> Optional[ProviderSchedule]:
        return self.db.query(ProviderSchedule).filter(
            ProviderSchedule.id == schedule_id
        ).first()

    def get_by_provider_id(self, provider_id: uuid.UUID, active_only: bool = True) -> List[ProviderSchedule]:
        """Get all windows for a provider, ordered by weekday and start"""
        query = self.db.query(ProviderSchedule).filter(
            ProviderSchedule.provider_id == provider_id
        )
        if active_only:
            query = query.filter(ProviderSchedule.is_active == True)  # noqa: E712
        return query.order_by(ProviderSchedule.day_of_week, ProviderSchedule.start_time).all()

    def has_any_schedule(self, provider_id: uuid.UUID) -> bool:
        """Whether the provider ever configured working hours"""
        return self.db.query(ProviderSchedule.id).filter(
            ProviderSchedule.provider_id == provider_id
        ).first() is not None

    def get_overlapping_windows(
        self,
        provider_id: uuid.UUID,
        day_of_week: int,
        start_time: time,
        end_time: time
    ) -> List[ProviderSchedule]:
        """Active windows on the same weekday that intersect [start_time, end_time)"""
        return self.db.query(ProviderSchedule).filter(
            and_(
                ProviderSchedule.provider_id == provider_id,
                ProviderSchedule.day_of_week == day_of_week,
                ProviderSchedule.is_active == True,  # noqa: E712
                ProviderSchedule.start_time < end_time,
                ProviderSchedule.end_time > start_time
            )
        ).all()

    def deactivate(self, schedule: ProviderSchedule) -> ProviderSchedule:
        schedule.is_active = False
        commit_or_raise(self.db, "deactivate provider schedule")
        self.db.refresh(schedule)
        return schedule


class AppointmentRepository:
    """Repository for appointment data access operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_provider(self, provider_id: uuid.UUID, lock: bool = False) -> Optional[User]:
        """Active provider account; lock=True takes a row lock for the transaction"""
        query = self.db.query(User).filter(
            and_(
                User.id == provider_id,
                User.role == UserRole.PROVIDER,
                User.is_active == True  # noqa: E712
            )
        )
        if lock:
            query = query.with_for_update()
        return query.first()

    def list_providers(self) -> List[User]:
        return self.db.query(User).filter(
            and_(User.role == UserRole.PROVIDER, User.is_active == True)  # noqa: E712
        ).order_by(User.full_name).all()

    def add(self, appointment_data: dict) -> Appointment:
        """Stage a new appointment in the current transaction (no commit)"""
        appointment = Appointment(**appointment_data)
        self.db.add(appointment)
        self.db.flush()
        return appointment

    def get_by_id(self, appointment_id: uuid.UUID) -> Optional[Appointment]:
        """Get appointment by ID with relationships"""
        return self.db.query(Appointment).options(
            joinedload(Appointment.patient),
            joinedload(Appointment.provider)
        ).filter(Appointment.id == appointment_id).first()

    def get_active_in_range(
        self,
        provider_id: uuid.UUID,
        range_start: datetime,
        range_end: datetime
    ) -> List[Appointment]:
        """Non-cancelled appointments of a provider starting in [range_start, range_end)"""
        return self.db.query(Appointment).filter(
            and_(
                Appointment.provider_id == provider_id,
                Appointment.status != AppointmentStatus.CANCELLED,
                Appointment.date_time >= range_start,
                Appointment.date_time < range_end
            )
        ).order_by(Appointment.date_time).all()

    def _scoped(
        self,
        query,
        provider_id: Optional[uuid.UUID] = None,
        patient_id: Optional[uuid.UUID] = None,
        status: Optional[AppointmentStatus] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None
    ):
        if provider_id:
            query = query.filter(Appointment.provider_id == provider_id)
        if patient_id:
            query = query.filter(Appointment.patient_id == patient_id)
        if status:
            query = query.filter(Appointment.status == status)
        if date_from:
            query = query.filter(Appointment.date_time >= date_from)
        if date_to:
            query = query.filter(Appointment.date_time <= date_to)
        return query

    def get_all(
        self,
        skip: int = 0,
        limit: Optional[int] = 10,
        provider_id: Optional[uuid.UUID] = None,
        patient_id: Optional[uuid.UUID] = None,
        status: Optional[AppointmentStatus] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None
    ) -> List[Appointment]:
        """Get appointments with filtering, newest first"""
        query = self.db.query(Appointment).options(
            joinedload(Appointment.patient),
            joinedload(Appointment.provider)
        )
        query = self._scoped(query, provider_id, patient_id, status, date_from, date_to)
        return query.order_by(Appointment.date_time.desc()).offset(skip).limit(limit).all()

    def count(
        self,
        provider_id: Optional[uuid.UUID] = None,
        patient_id: Optional[uuid.UUID] = None,
        status: Optional[AppointmentStatus] = None,
        statuses: Optional[List[AppointmentStatus]] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None
    ) -> int:
        """Count appointments with filters"""
        query = self.db.query(func.count(Appointment.id))
        query = self._scoped(query, provider_id, patient_id, status, date_from, date_to)
        if statuses:
            query = query.filter(Appointment.status.in_(statuses))
        return query.scalar() or 0

    def save(self, appointment: Appointment, operation: str) -> Appointment:
        commit_or_raise(self.db, operation)
        self.db.refresh(appointment)
        return appointment
