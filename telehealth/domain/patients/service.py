from typing import Optional, List
from datetime import date
import uuid

from sqlalchemy.orm import Session

from telehealth.core.exceptions import ValidationError, NotFoundError
from telehealth.core.permissions import CurrentUser
from telehealth.domain.appointments.repository import AppointmentRepository
from telehealth.domain.auth.models import UserRole
from telehealth.domain.auth.repository import UserRepository
from telehealth.domain.patients.models import Patient, Gender
from telehealth.domain.patients.repository import PatientRepository


class PatientService:
    """Service layer for patient records and provider assignment"""

    def __init__(self, db: Session):
        self.db = db
        self.patient_repo = PatientRepository(db)
        self.appointment_repo = AppointmentRepository(db)
        self.user_repo = UserRepository(db)

    def create_patient(
        self,
        caller: CurrentUser,
        full_name: str,
        date_of_birth: Optional[date] = None,
        gender: Optional[Gender] = None,
        phone: Optional[str] = None,
        email: Optional[str] = None,
        user_id: Optional[uuid.UUID] = None,
        assigned_provider_ids: Optional[List[uuid.UUID]] = None
    ) -> Patient:
        """Create a patient; a creating provider is always assigned"""
        if not full_name or not full_name.strip():
            raise ValidationError("Patient name is required", field="full_name")

        if date_of_birth and date_of_birth > date.today():
            raise ValidationError("Date of birth cannot be in the future", field="date_of_birth")

        provider_ids = list(dict.fromkeys(assigned_provider_ids or []))
        if caller.is_provider and caller.id not in provider_ids:
            provider_ids.append(caller.id)

        providers = []
        for provider_id in provider_ids:
            provider = self.appointment_repo.get_provider(provider_id)
            if not provider:
                raise ValidationError(
                    f"Unknown provider {provider_id}",
                    field="assigned_provider_ids"
                )
            providers.append(provider)

        if user_id:
            user = self.user_repo.get_active(user_id)
            if not user or user.role != UserRole.PATIENT:
                raise ValidationError("User must be an active patient account", field="user_id")
            if self.patient_repo.get_by_user_id(user_id):
                raise ValidationError("This user already has a patient record", field="user_id")

        patient_data = {
            "full_name": full_name.strip(),
            "date_of_birth": date_of_birth,
            "gender": gender,
            "phone": phone,
            "email": email,
            "user_id": user_id,
        }
        return self.patient_repo.create(patient_data, providers)

    def get_patient(self, caller: CurrentUser, patient_id: uuid.UUID) -> Patient:
        """Get a patient visible to the caller"""
        patient = self.patient_repo.get_by_id(patient_id)
        if not patient or not self._can_view(caller, patient):
            raise NotFoundError("Patient not found")
        return patient

    def list_provider_patients(self, provider_id: uuid.UUID, skip: int = 0, limit: int = 50) -> List[Patient]:
        return self.patient_repo.get_by_provider(provider_id, skip, limit)

    def _can_view(self, caller: CurrentUser, patient: Patient) -> bool:
        if caller.is_admin:
            return True
        if caller.is_patient:
            return patient.user_id == caller.id
        return self.patient_repo.is_assigned(patient.id, caller.id)
