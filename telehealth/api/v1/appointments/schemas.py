"""
Appointments API Schemas

Pydantic models for appointment and provider schedule requests and responses.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, ValidationInfo
from typing import Optional, List
from datetime import datetime, time
import datetime as dt
import uuid
from telehealth.domain.appointments.models import (
    AppointmentStatus, AppointmentType, AppointmentPriority
)


# ==================== Provider Schedule Schemas ====================

class ProviderScheduleBase(BaseModel):
    """Base schema for a working-hour window"""
    day_of_week: int = Field(..., ge=0, le=6, description="Day of week (0=Monday, 6=Sunday)")
    start_time: time
    end_time: time


class ProviderScheduleCreate(ProviderScheduleBase):
    """Schema for creating a working-hour window"""
    provider_id: uuid.UUID

    @field_validator('end_time')
    @classmethod
    def validate_time_order(cls, v: time, info: ValidationInfo) -> time:
        start = info.data.get('start_time')
        if start is not None and v <= start:
            raise ValueError('End time must be after start time')
        return v


class ProviderScheduleResponse(ProviderScheduleBase):
    """Schema for working-hour window response"""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    provider_id: uuid.UUID
    is_active: bool
    created_at: Optional[datetime] = None


# ==================== Provider Schemas ====================

class ProviderResponse(BaseModel):
    """Provider shown in the booking form"""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    full_name: str
    email: str
    specialty: Optional[str] = None


# ==================== Slot Schemas ====================

class AvailableSlot(BaseModel):
    """Bookable start time"""
    start_time: datetime
    end_time: datetime
    time: str


class AvailableSlotsResponse(BaseModel):
    """Schema for available slots response"""
    provider_id: uuid.UUID
    date: dt.date
    duration: int
    slots: List[AvailableSlot]


# ==================== Appointment Schemas ====================

class AppointmentCreate(BaseModel):
    """Schema for booking an appointment"""
    provider_id: uuid.UUID
    patient_id: Optional[uuid.UUID] = None
    start_time: datetime
    duration: int = 30
    appointment_type: AppointmentType = AppointmentType.CONSULTATION
    priority: AppointmentPriority = AppointmentPriority.MEDIUM
    reason: str = Field("", max_length=1000)
    symptoms: Optional[str] = Field(None, max_length=2000)
    notes: Optional[str] = None


class AppointmentStatusUpdate(BaseModel):
    """Schema for moving an appointment along its lifecycle"""
    status: AppointmentStatus
    doctor_notes: Optional[str] = None
    cancellation_reason: Optional[str] = Field(None, max_length=500)


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    appointment_number: str
    provider_id: uuid.UUID
    patient_id: uuid.UUID
    date_time: datetime
    end_time: datetime
    duration: int
    appointment_type: AppointmentType
    status: AppointmentStatus
    priority: AppointmentPriority
    reason: str
    symptoms: Optional[str] = None
    notes: Optional[str] = None
    doctor_notes: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    created_at: Optional[datetime] = None


class AppointmentListResponse(BaseModel):
    """Schema for paginated appointment list"""
    items: List[AppointmentResponse]
    total: int
    page: int
    limit: int
    pages: int


class AppointmentStatsResponse(BaseModel):
    total: int
    today: int
    upcoming: int
    completed: int
    cancelled: int
