from telehealth.domain.auth.models import User
from telehealth.domain.patients.models import Patient
from telehealth.domain.appointments.models import Appointment, ProviderSchedule
from telehealth.domain.reports.models import Report
from telehealth.domain.tasks.models import Task
from telehealth.domain.messages.models import Message

__all__ = [
    "User",
    "Patient",
    "Appointment",
    "ProviderSchedule",
    "Report",
    "Task",
    "Message",
]
