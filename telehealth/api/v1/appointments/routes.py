"""
Appointments API Routes

API endpoints for provider schedules, slot lookup, booking and the
appointment status lifecycle.
"""

from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional
from datetime import date, datetime, time
import uuid
import math

from telehealth.infrastructure.database import get_db
from telehealth.core.permissions import require_permissions, Permissions
from telehealth.domain.appointments.service import AppointmentService, ProviderScheduleService
from telehealth.domain.appointments.models import AppointmentStatus
from telehealth.api.v1.appointments.schemas import (
    ProviderScheduleCreate, ProviderScheduleResponse, ProviderResponse,
    AvailableSlot, AvailableSlotsResponse,
    AppointmentCreate, AppointmentStatusUpdate, AppointmentResponse,
    AppointmentListResponse, AppointmentStatsResponse
)

router = APIRouter()


# ==================== Provider Schedule Endpoints ====================

@router.post("/schedules", response_model=ProviderScheduleResponse, status_code=status.HTTP_201_CREATED)
def create_provider_schedule(
    schedule_data: ProviderScheduleCreate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SCHEDULES_MANAGE]))
):
    """Add a working-hour window"""
    service = ProviderScheduleService(db)
    return service.create_schedule(
        current_user,
        provider_id=schedule_data.provider_id,
        day_of_week=schedule_data.day_of_week,
        start_time=schedule_data.start_time,
        end_time=schedule_data.end_time
    )


@router.get("/schedules/provider/{provider_id}", response_model=List[ProviderScheduleResponse])
def get_provider_schedules(
    provider_id: uuid.UUID,
    active_only: bool = Query(True),
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SCHEDULES_READ]))
):
    """Get all working-hour windows of a provider"""
    service = ProviderScheduleService(db)
    return service.get_provider_schedules(provider_id, active_only)


@router.delete("/schedules/{schedule_id}", response_model=ProviderScheduleResponse)
def deactivate_provider_schedule(
    schedule_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.SCHEDULES_MANAGE]))
):
    """Deactivate a working-hour window"""
    service = ProviderScheduleService(db)
    return service.deactivate_schedule(current_user, schedule_id)


# ==================== Booking Endpoints ====================

@router.get("/providers", response_model=List[ProviderResponse])
def list_providers(
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.APPOINTMENTS_READ]))
):
    """Active providers that can be booked"""
    service = AppointmentService(db)
    return service.list_providers()


@router.get("/available-slots", response_model=AvailableSlotsResponse)
def get_available_slots(
    provider_id: uuid.UUID,
    target_date: date = Query(..., alias="date"),
    duration: int = Query(30),
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.APPOINTMENTS_READ]))
):
    """Get available start times for a provider on a date"""
    service = AppointmentService(db)
    slots = service.get_available_slots(provider_id, target_date, duration)

    return AvailableSlotsResponse(
        provider_id=provider_id,
        date=target_date,
        duration=duration,
        slots=[AvailableSlot(**slot) for slot in slots]
    )


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    appointment_data: AppointmentCreate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.APPOINTMENTS_CREATE]))
):
    """Book a new appointment"""
    service = AppointmentService(db)
    return service.create_appointment(
        current_user,
        provider_id=appointment_data.provider_id,
        patient_id=appointment_data.patient_id,
        start_time=appointment_data.start_time,
        duration=appointment_data.duration,
        reason=appointment_data.reason,
        appointment_type=appointment_data.appointment_type,
        symptoms=appointment_data.symptoms,
        notes=appointment_data.notes,
        priority=appointment_data.priority
    )


@router.get("", response_model=AppointmentListResponse)
def list_appointments(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.APPOINTMENTS_READ]))
):
    """List the caller's appointments with filtering and pagination"""
    service = AppointmentService(db)
    skip = (page - 1) * limit

    appointments, total = service.list_appointments(
        current_user,
        skip=skip,
        limit=limit,
        status=status_filter,
        date_from=datetime.combine(date_from, time.min) if date_from else None,
        date_to=datetime.combine(date_to, time.max) if date_to else None
    )

    return AppointmentListResponse(
        items=appointments,
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit) if total > 0 else 1
    )


@router.get("/stats", response_model=AppointmentStatsResponse)
def get_appointment_stats(
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.APPOINTMENTS_READ]))
):
    """Appointment totals for the caller"""
    service = AppointmentService(db)
    return service.get_appointment_stats(current_user)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.APPOINTMENTS_READ]))
):
    """Get appointment by ID"""
    service = AppointmentService(db)
    return service.get_appointment(current_user, appointment_id)


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: uuid.UUID,
    update_data: AppointmentStatusUpdate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([
        Permissions.APPOINTMENTS_UPDATE, Permissions.APPOINTMENTS_CANCEL
    ]))
):
    """Change appointment status"""
    service = AppointmentService(db)
    return service.update_appointment_status(
        current_user,
        appointment_id,
        update_data.status,
        doctor_notes=update_data.doctor_notes,
        cancellation_reason=update_data.cancellation_reason
    )
