from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional
import uuid

from telehealth.infrastructure.database import get_db
from telehealth.core.exceptions import ValidationError
from telehealth.core.permissions import require_permissions, Permissions
from telehealth.domain.patients.service import PatientService
from telehealth.api.v1.patients.schemas import PatientCreate, PatientResponse

router = APIRouter()


@router.post("", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
def create_patient(
    patient_data: PatientCreate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.PATIENTS_CREATE]))
):
    """Create a new patient record"""
    service = PatientService(db)
    return service.create_patient(current_user, **patient_data.model_dump())


@router.get("", response_model=List[PatientResponse])
def list_patients(
    provider_id: Optional[uuid.UUID] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.PATIENTS_READ]))
):
    """Patients assigned to the calling provider"""
    if not current_user.is_admin:
        provider_id = current_user.id
    elif provider_id is None:
        raise ValidationError("provider_id is required for admin requests", field="provider_id")

    service = PatientService(db)
    return service.list_provider_patients(provider_id, skip=(page - 1) * limit, limit=limit)


@router.get("/{patient_id}", response_model=PatientResponse)
def get_patient(
    patient_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.PATIENTS_READ, Permissions.APPOINTMENTS_READ]))
):
    """Get patient by ID"""
    service = PatientService(db)
    return service.get_patient(current_user, patient_id)
