from typing import Optional, List
from sqlalchemy import func
from sqlalchemy.orm import Session
import uuid

from telehealth.domain.auth.models import User
from telehealth.domain.patients.models import Patient, patient_providers
from telehealth.infrastructure.database import commit_or_raise


class PatientRepository:
    """Repository for patient data access operations"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, patient_data: dict, providers: List[User]) -> Patient:
        patient = Patient(**patient_data)
        patient.providers = list(providers)
        self.db.add(patient)
        commit_or_raise(self.db, "create patient")
        self.db.refresh(patient)
        return patient

    def get_by_id(self, patient_id: uuid.UUID) -> Optional[Patient]:
        return self.db.query(Patient).filter(Patient.id == patient_id).first()

    def get_by_user_id(self, user_id: uuid.UUID) -> Optional[Patient]:
        return self.db.query(Patient).filter(Patient.user_id == user_id).first()

    def get_by_provider(self, provider_id: uuid.UUID, skip: int = 0, limit: int = 50) -> List[Patient]:
        """Patients assigned to a provider, by name"""
        return self.db.query(Patient).join(
            patient_providers, patient_providers.c.patient_id == Patient.id
        ).filter(
            patient_providers.c.provider_id == provider_id
        ).order_by(Patient.full_name).offset(skip).limit(limit).all()

    def is_assigned(self, patient_id: uuid.UUID, provider_id: uuid.UUID) -> bool:
        return self.db.query(patient_providers).filter(
            patient_providers.c.patient_id == patient_id,
            patient_providers.c.provider_id == provider_id
        ).first() is not None

    def assign_provider(self, patient: Patient, provider: User) -> None:
        """Stage the assignment in the current transaction (no commit)"""
        if provider not in patient.providers:
            patient.providers.append(provider)

    def count_by_provider(self, provider_id: uuid.UUID) -> int:
        return self.db.query(func.count(func.distinct(patient_providers.c.patient_id))).filter(
            patient_providers.c.provider_id == provider_id
        ).scalar() or 0

    def count_by_gender(self, provider_id: uuid.UUID) -> List[tuple]:
        """(gender, count) rows for a provider's patients with a recorded gender"""
        return self.db.query(Patient.gender, func.count(Patient.id)).join(
            patient_providers, patient_providers.c.patient_id == Patient.id
        ).filter(
            patient_providers.c.provider_id == provider_id,
            Patient.gender.isnot(None)
        ).group_by(Patient.gender).all()
