"""
Appointments Service Layer

Business logic for provider working hours, slot availability, booking and
the appointment status lifecycle.
"""

from typing import Optional, List, Dict, Any, Tuple
from datetime import datetime, date, time, timedelta, timezone
import logging
import uuid

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from telehealth.core.config import settings
from telehealth.core.exceptions import (
    ValidationError, NotFoundError, ConflictError, AuthorizationError,
    BusinessLogicError, SlotNoLongerAvailableError, InvalidStatusTransitionError,
    handle_storage_error
)
from telehealth.core.permissions import CurrentUser
from telehealth.domain.appointments.models import (
    Appointment, AppointmentStatus, AppointmentType, AppointmentPriority,
    ProviderSchedule, can_transition
)
from telehealth.domain.appointments.repository import (
    AppointmentRepository, ProviderScheduleRepository
)
from telehealth.domain.appointments.scheduling import (
    Booking, WorkingWindow, conflicts_with, default_windows,
    filter_available_slots, fits_working_hours, generate_candidate_slots
)
from telehealth.domain.auth.models import User
from telehealth.domain.patients.models import Patient
from telehealth.domain.patients.repository import PatientRepository

logger = logging.getLogger(__name__)

PROVIDER_ACTIONS = frozenset({
    AppointmentStatus.SCHEDULED,
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.COMPLETED,
})


def utc_now() -> datetime:
    """Naive UTC wall clock, the reference for all stored timestamps"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def day_bounds(target_date: date) -> Tuple[datetime, datetime]:
    """[00:00, next day 00:00) of target_date"""
    start = datetime.combine(target_date, time.min)
    return start, start + timedelta(days=1)


class ProviderScheduleService:
    """Service layer for provider working-hour windows"""

    def __init__(self, db: Session):
        self.db = db
        self.schedule_repo = ProviderScheduleRepository(db)
        self.appointment_repo = AppointmentRepository(db)

    def create_schedule(
        self,
        caller: CurrentUser,
        provider_id: uuid.UUID,
        day_of_week: int,
        start_time: time,
        end_time: time
    ) -> ProviderSchedule:
        """Add a working-hour window for a provider"""
        if not caller.is_admin and caller.id != provider_id:
            raise AuthorizationError("Providers can only manage their own schedule")

        if day_of_week < 0 or day_of_week > 6:
            raise ValidationError(
                "Day of week must be between 0 (Monday) and 6 (Sunday)",
                field="day_of_week"
            )

        if start_time >= end_time:
            raise ValidationError("Start time must be before end time", field="end_time")

        if not self.appointment_repo.get_provider(provider_id):
            raise ValidationError("Provider not found", field="provider_id")

        if self.schedule_repo.get_overlapping_windows(provider_id, day_of_week, start_time, end_time):
            raise ConflictError("Working hours overlap an existing window for this day")

        schedule_data = {
            "provider_id": provider_id,
            "day_of_week": day_of_week,
            "start_time": start_time,
            "end_time": end_time,
            "is_active": True
        }
        return self.schedule_repo.create(schedule_data)

    def get_provider_schedules(
        self,
        provider_id: uuid.UUID,
        active_only: bool = True
    ) -> List[ProviderSchedule]:
        """Get all windows for a provider"""
        return self.schedule_repo.get_by_provider_id(provider_id, active_only)

    def deactivate_schedule(self, caller: CurrentUser, schedule_id: uuid.UUID) -> ProviderSchedule:
        schedule = self.schedule_repo.get_by_id(schedule_id)
        if not schedule or (not caller.is_admin and schedule.provider_id != caller.id):
            raise NotFoundError("Schedule not found")
        return self.schedule_repo.deactivate(schedule)

    def get_working_windows(self, provider_id: uuid.UUID) -> List[WorkingWindow]:
        """Configured windows, or the default calendar if none were ever set"""
        if not self.schedule_repo.has_any_schedule(provider_id):
            return default_windows(
                settings.DEFAULT_WORKING_DAYS,
                settings.DEFAULT_WORKDAY_START,
                settings.DEFAULT_WORKDAY_END
            )
        return [
            WorkingWindow(s.day_of_week, s.start_time, s.end_time)
            for s in self.schedule_repo.get_by_provider_id(provider_id)
        ]


class AppointmentService:
    """Service layer for appointment management"""

    def __init__(self, db: Session):
        self.db = db
        self.appointment_repo = AppointmentRepository(db)
        self.patient_repo = PatientRepository(db)
        self.schedule_service = ProviderScheduleService(db)

    def _generate_appointment_number(self, when: datetime) -> str:
        """Generate unique appointment number"""
        return f"APT-{when.strftime('%Y%m%d')}-{uuid.uuid4().hex[:8].upper()}"

    def _validate_duration(self, duration_minutes: int) -> None:
        if duration_minutes <= 0 or duration_minutes > settings.MAX_APPOINTMENT_MINUTES:
            raise ValidationError(
                f"Duration must be between 1 and {settings.MAX_APPOINTMENT_MINUTES} minutes",
                field="duration"
            )

    def _bookings_around(
        self,
        provider_id: uuid.UUID,
        range_start: datetime,
        range_end: datetime
    ) -> List[Booking]:
        """Live bookings that can intersect [range_start, range_end)"""
        lookback = timedelta(minutes=settings.MAX_APPOINTMENT_MINUTES)
        appointments = self.appointment_repo.get_active_in_range(
            provider_id, range_start - lookback, range_end
        )
        return [Booking(a.date_time, a.duration) for a in appointments]

    def list_providers(self) -> List[User]:
        return self.appointment_repo.list_providers()

    def get_available_slots(
        self,
        provider_id: uuid.UUID,
        target_date: date,
        duration_minutes: int = 30,
        now: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """Bookable start times for a provider on a date, ascending"""
        now = now or utc_now()
        self._validate_duration(duration_minutes)

        if target_date < now.date():
            raise ValidationError("Cannot get slots for past dates", field="date")

        if not self.appointment_repo.get_provider(provider_id):
            raise ValidationError("Provider not found", field="provider_id")

        windows = self.schedule_service.get_working_windows(provider_id)
        candidates = generate_candidate_slots(
            windows, target_date, duration_minutes,
            granularity_minutes=settings.SLOT_GRANULARITY_MINUTES
        )
        if not candidates:
            return []

        day_start, day_end = day_bounds(target_date)
        bookings = self._bookings_around(provider_id, day_start, day_end)
        available = filter_available_slots(candidates, duration_minutes, bookings, now)

        return [
            {
                "start_time": slot,
                "end_time": slot + timedelta(minutes=duration_minutes),
                "time": slot.strftime("%I:%M %p").lstrip("0"),
            }
            for slot in available
        ]

    def _resolve_patient(self, caller: CurrentUser, patient_id: Optional[uuid.UUID]) -> Patient:
        if caller.is_patient:
            patient = self.patient_repo.get_by_user_id(caller.id)
            if not patient:
                raise ValidationError("No patient record is linked to this account", field="patient_id")
            if patient_id and patient_id != patient.id:
                raise AuthorizationError("Patients can only book appointments for themselves")
            return patient

        if not patient_id:
            raise ValidationError("Patient is required", field="patient_id")
        patient = self.patient_repo.get_by_id(patient_id)
        if not patient:
            raise ValidationError("Patient not found", field="patient_id")
        return patient

    def create_appointment(
        self,
        caller: CurrentUser,
        provider_id: uuid.UUID,
        start_time: datetime,
        duration: int,
        reason: str,
        patient_id: Optional[uuid.UUID] = None,
        appointment_type: AppointmentType = AppointmentType.CONSULTATION,
        symptoms: Optional[str] = None,
        notes: Optional[str] = None,
        priority: AppointmentPriority = AppointmentPriority.MEDIUM,
        now: Optional[datetime] = None
    ) -> Appointment:
        """Book an appointment after re-checking the slot inside the write transaction"""
        now = now or utc_now()

        if not reason or not reason.strip():
            raise ValidationError("Reason for the appointment is required", field="reason")

        if caller.is_provider and provider_id != caller.id:
            raise AuthorizationError("Providers can only book into their own calendar")

        provider = self.appointment_repo.get_provider(provider_id)
        if not provider:
            raise ValidationError("Provider not found", field="provider_id")

        patient = self._resolve_patient(caller, patient_id)
        self._validate_duration(duration)

        start_time = to_naive_utc(start_time)
        if start_time <= now:
            raise ValidationError("Appointment time must be in the future", field="start_time")

        windows = self.schedule_service.get_working_windows(provider_id)
        if not fits_working_hours(windows, start_time, duration):
            raise ValidationError(
                "Appointment time is outside the provider's working hours",
                field="start_time"
            )
        if not fits_working_hours(windows, start_time, duration, settings.SLOT_GRANULARITY_MINUTES):
            raise ValidationError(
                f"Appointments start on {settings.SLOT_GRANULARITY_MINUTES}-minute slot boundaries",
                field="start_time"
            )

        initial_status = AppointmentStatus.PENDING if caller.is_patient else AppointmentStatus.SCHEDULED
        end_time = start_time + timedelta(minutes=duration)

        try:
            # Serializes concurrent bookings for this provider until commit
            self.appointment_repo.get_provider(provider_id, lock=True)

            bookings = self._bookings_around(provider_id, start_time, end_time)
            if conflicts_with(start_time, duration, bookings):
                self.db.rollback()
                logger.info(f"Slot {start_time.isoformat()} for provider {provider_id} already taken")
                raise SlotNoLongerAvailableError(
                    details={"start_time": start_time.isoformat(), "duration": duration}
                )

            appointment = self.appointment_repo.add({
                "appointment_number": self._generate_appointment_number(start_time),
                "provider_id": provider_id,
                "patient_id": patient.id,
                "date_time": start_time,
                "duration": duration,
                "appointment_type": appointment_type,
                "status": initial_status,
                "priority": priority,
                "reason": reason.strip(),
                "symptoms": symptoms,
                "notes": notes,
                "created_by": caller.id,
            })
            self.patient_repo.assign_provider(patient, provider)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.info(f"Concurrent booking rejected for provider {provider_id}: {e.orig}")
            raise SlotNoLongerAvailableError(
                details={"start_time": start_time.isoformat(), "duration": duration}
            ) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise handle_storage_error(e, "create appointment") from e

        self.db.refresh(appointment)
        logger.info(
            f"Appointment {appointment.appointment_number} booked with provider {provider_id} "
            f"at {start_time.isoformat()} ({duration} min)"
        )
        return appointment

    def _visible_to(self, caller: CurrentUser, appointment: Appointment) -> bool:
        if caller.is_admin:
            return True
        if caller.is_provider:
            return appointment.provider_id == caller.id
        return appointment.patient is not None and appointment.patient.user_id == caller.id

    def get_appointment(self, caller: CurrentUser, appointment_id: uuid.UUID) -> Appointment:
        """Get appointment by ID"""
        appointment = self.appointment_repo.get_by_id(appointment_id)
        if not appointment or not self._visible_to(caller, appointment):
            raise NotFoundError("Appointment not found")
        return appointment

    def _scope(self, caller: CurrentUser) -> Optional[Dict[str, Any]]:
        """Repository filters limiting results to the caller; None means nothing visible"""
        if caller.is_admin:
            return {}
        if caller.is_provider:
            return {"provider_id": caller.id}
        patient = self.patient_repo.get_by_user_id(caller.id)
        if not patient:
            return None
        return {"patient_id": patient.id}

    def list_appointments(
        self,
        caller: CurrentUser,
        skip: int = 0,
        limit: int = 10,
        status: Optional[AppointmentStatus] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None
    ) -> Tuple[List[Appointment], int]:
        """Appointments visible to the caller, newest first, with total count"""
        scope = self._scope(caller)
        if scope is None:
            return [], 0

        appointments = self.appointment_repo.get_all(
            skip=skip, limit=limit, status=status,
            date_from=date_from, date_to=date_to, **scope
        )
        total = self.appointment_repo.count(
            status=status, date_from=date_from, date_to=date_to, **scope
        )
        return appointments, total

    def get_appointment_stats(self, caller: CurrentUser, now: Optional[datetime] = None) -> Dict[str, int]:
        """Totals shown on the patient and provider appointment pages"""
        now = now or utc_now()
        scope = self._scope(caller)
        if scope is None:
            return {"total": 0, "today": 0, "upcoming": 0, "completed": 0, "cancelled": 0}

        today_start, tomorrow_start = day_bounds(now.date())
        return {
            "total": self.appointment_repo.count(**scope),
            "today": self.appointment_repo.count(
                date_from=today_start,
                date_to=tomorrow_start - timedelta(microseconds=1),
                **scope
            ),
            "upcoming": self.appointment_repo.count(
                statuses=[AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED],
                date_from=now,
                **scope
            ),
            "completed": self.appointment_repo.count(status=AppointmentStatus.COMPLETED, **scope),
            "cancelled": self.appointment_repo.count(status=AppointmentStatus.CANCELLED, **scope),
        }

    def update_appointment_status(
        self,
        caller: CurrentUser,
        appointment_id: uuid.UUID,
        new_status: AppointmentStatus,
        doctor_notes: Optional[str] = None,
        cancellation_reason: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Appointment:
        """Move an appointment along its lifecycle"""
        now = now or utc_now()
        appointment = self.get_appointment(caller, appointment_id)
        new_status = AppointmentStatus(new_status)

        if new_status in PROVIDER_ACTIONS and not (caller.is_provider or caller.is_admin):
            raise AuthorizationError(f"Only providers can mark appointments as {new_status.value}")

        current_status = AppointmentStatus(appointment.status)
        if not can_transition(current_status, new_status):
            raise InvalidStatusTransitionError(current_status.value, new_status.value)

        if new_status == AppointmentStatus.CONFIRMED:
            appointment.confirmed_at = now
        elif new_status == AppointmentStatus.COMPLETED:
            appointment.completed_at = now
            if doctor_notes:
                appointment.doctor_notes = doctor_notes
        elif new_status == AppointmentStatus.CANCELLED:
            cutoff = timedelta(hours=settings.CANCELLATION_CUTOFF_HOURS)
            if appointment.date_time - now < cutoff:
                raise BusinessLogicError(
                    f"Appointment cannot be cancelled less than "
                    f"{settings.CANCELLATION_CUTOFF_HOURS} hours before it starts",
                    error_code="CANCELLATION_WINDOW_CLOSED"
                )
            appointment.cancelled_at = now
            appointment.cancelled_by = caller.id
            appointment.cancellation_reason = cancellation_reason

        appointment.status = new_status
        appointment = self.appointment_repo.save(appointment, "update appointment status")
        logger.info(
            f"Appointment {appointment.appointment_number} moved "
            f"{current_status.value} -> {new_status.value} by {caller.role.value} {caller.id}"
        )
        return appointment
