"""
Dashboard Service Layer

Read-only summaries for the provider dashboard. Every figure is computed
from stored appointments, patients, messages and tasks on each request;
nothing here writes to the database.
"""

from typing import Optional, List, Dict, Any
from datetime import datetime, timedelta
import uuid

from sqlalchemy.orm import Session

from telehealth.core.config import settings
from telehealth.domain.appointments.models import AppointmentStatus
from telehealth.domain.appointments.repository import AppointmentRepository
from telehealth.domain.appointments.service import day_bounds, utc_now
from telehealth.domain.messages.service import MessageService
from telehealth.domain.patients.models import Gender
from telehealth.domain.patients.repository import PatientRepository
from telehealth.domain.tasks.service import TaskService

WEEKDAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

# Fixed category order of the demographics chart
DEMOGRAPHIC_CATEGORIES = [Gender.MALE, Gender.FEMALE, Gender.OTHER]


def percentage_half_up(part: int, whole: int) -> int:
    """round(100 * part / whole) with halves rounded up; 0 when whole is 0"""
    if whole <= 0:
        return 0
    return (200 * part + whole) // (2 * whole)


class DashboardService:
    """Service layer for provider dashboard figures"""

    def __init__(self, db: Session):
        self.db = db
        self.appointment_repo = AppointmentRepository(db)
        self.patient_repo = PatientRepository(db)
        self.message_service = MessageService(db)
        self.task_service = TaskService(db)

    def count_todays_appointments(self, provider_id: uuid.UUID, now: Optional[datetime] = None) -> int:
        """Appointments of any status starting today"""
        now = now or utc_now()
        today_start, tomorrow_start = day_bounds(now.date())
        return self.appointment_repo.count(
            provider_id=provider_id,
            date_from=today_start,
            date_to=tomorrow_start - timedelta(microseconds=1)
        )

    def count_total_patients(self, provider_id: uuid.UUID) -> int:
        return self.patient_repo.count_by_provider(provider_id)

    def completion_rate(self, provider_id: uuid.UUID, now: Optional[datetime] = None) -> int:
        """Completed share of completed plus scheduled appointments over the trailing window"""
        now = now or utc_now()
        since = now - timedelta(days=settings.COMPLETION_RATE_WINDOW_DAYS)

        completed = self.appointment_repo.count(
            provider_id=provider_id,
            status=AppointmentStatus.COMPLETED,
            date_from=since
        )
        relevant = self.appointment_repo.count(
            provider_id=provider_id,
            statuses=[AppointmentStatus.COMPLETED, AppointmentStatus.SCHEDULED],
            date_from=since
        )
        return percentage_half_up(completed, relevant)

    def count_new_messages(self, provider_id: uuid.UUID) -> int:
        return self.message_service.count_unread(provider_id)

    def get_dashboard_counts(self, provider_id: uuid.UUID, now: Optional[datetime] = None) -> Dict[str, int]:
        now = now or utc_now()
        return {
            "todays_appointments": self.count_todays_appointments(provider_id, now),
            "total_patients": self.count_total_patients(provider_id),
            "completion_rate": self.completion_rate(provider_id, now),
            "new_messages": self.count_new_messages(provider_id),
        }

    def get_weekly_appointment_summary(
        self,
        provider_id: uuid.UUID,
        now: Optional[datetime] = None,
        include_weekend: bool = False
    ) -> List[Dict[str, Any]]:
        """Completed and scheduled counts per day of the current Monday-based week"""
        now = now or utc_now()
        week_start, _ = day_bounds(now.date() - timedelta(days=now.weekday()))
        week_end = week_start + timedelta(days=7)

        appointments = self.appointment_repo.get_all(
            skip=0,
            limit=None,
            provider_id=provider_id,
            date_from=week_start,
            date_to=week_end - timedelta(microseconds=1)
        )

        # ISO weekday: Monday=1 .. Sunday=7
        counts = {day: {"completed": 0, "scheduled": 0} for day in range(1, 8)}
        for appointment in appointments:
            status = AppointmentStatus(appointment.status)
            if status in (AppointmentStatus.COMPLETED, AppointmentStatus.SCHEDULED):
                counts[appointment.date_time.isoweekday()][status.value] += 1

        summary = [
            {"day": WEEKDAY_NAMES[day - 1], **counts[day]}
            for day in range(1, 8)
        ]
        return summary if include_weekend else summary[:5]

    def get_patient_demographics(self, provider_id: uuid.UUID) -> List[Dict[str, Any]]:
        """Assigned patients per gender; every category is always present"""
        found = {Gender(gender): count for gender, count in self.patient_repo.count_by_gender(provider_id)}
        return [
            {"category": category.value, "count": found.get(category, 0)}
            for category in DEMOGRAPHIC_CATEGORIES
        ]

    def get_pending_tasks(
        self,
        provider_id: uuid.UUID,
        now: Optional[datetime] = None,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        return self.task_service.get_pending_tasks(provider_id, now, limit)
