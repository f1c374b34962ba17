# Appointments domain module
from telehealth.domain.appointments.models import (
    Appointment,
    AppointmentPriority,
    AppointmentStatus,
    AppointmentType,
    ProviderSchedule,
)

__all__ = [
    "Appointment",
    "AppointmentPriority",
    "AppointmentStatus",
    "AppointmentType",
    "ProviderSchedule",
]
