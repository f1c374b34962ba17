from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime, date
import uuid
from telehealth.domain.patients.models import Gender


class BasePatientSchema(BaseModel):
    """Base schema for patient data"""
    full_name: str = Field(..., min_length=1, max_length=200)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=255)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        if v and '@' not in v:
            raise ValueError('Invalid email format')
        return v

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v):
        if v and not v.replace('+', '').replace('-', '').replace(' ', '').isdigit():
            raise ValueError('Phone number must contain only digits, +, -, and spaces')
        return v


class PatientCreate(BasePatientSchema):
    """Schema for creating a new patient"""
    user_id: Optional[uuid.UUID] = None
    assigned_provider_ids: List[uuid.UUID] = []


class PatientResponse(BasePatientSchema):
    """Schema for patient response"""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    assigned_provider_ids: List[uuid.UUID] = []
    created_at: Optional[datetime] = None
