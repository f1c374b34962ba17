from typing import Optional, List, Tuple, Dict, Any
from datetime import date, datetime
import logging
import uuid

from sqlalchemy.orm import Session

from telehealth.core.config import settings
from telehealth.core.exceptions import (
    ValidationError, NotFoundError, AuthorizationError, StorageError
)
from telehealth.core.permissions import CurrentUser
from telehealth.domain.appointments.service import utc_now
from telehealth.domain.auth.repository import UserRepository
from telehealth.domain.patients.repository import PatientRepository
from telehealth.domain.reports.models import Report, ReportStatus
from telehealth.domain.reports.repository import ReportRepository
from telehealth.services import file_store
from telehealth.services.report_pdf import render_medical_report

logger = logging.getLogger(__name__)


def report_filename(when: datetime) -> str:
    """report_<epoch millis>_<random hex>.pdf"""
    millis = int(when.timestamp() * 1000)
    return f"report_{millis}_{uuid.uuid4().hex[:8]}.pdf"


class ReportService:
    """Service layer for provider-authored medical reports"""

    def __init__(self, db: Session):
        self.db = db
        self.report_repo = ReportRepository(db)
        self.patient_repo = PatientRepository(db)
        self.user_repo = UserRepository(db)

    def create_report(
        self,
        caller: CurrentUser,
        patient_id: Optional[uuid.UUID],
        report_type: Optional[str],
        report_date: Optional[date],
        results: Optional[str],
        recommendations: Optional[str] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Report:
        """Render the report PDF, store it, then record the report"""
        if not caller.is_provider:
            raise AuthorizationError("Only providers can create reports")

        for field, value in (
            ("patient_id", patient_id),
            ("type", report_type),
            ("date", report_date),
            ("results", results),
        ):
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(f"{field} is required", field=field)

        patient = self.patient_repo.get_by_id(patient_id)
        if not patient:
            raise NotFoundError("Patient not found")

        provider = self.user_repo.get_active(caller.id)

        content = render_medical_report(
            patient_name=patient.full_name,
            report_type=report_type.strip(),
            report_date=report_date,
            results=results,
            recommendations=recommendations,
            notes=notes,
            provider_name=provider.full_name if provider else None
        )
        pdf_path = file_store.save_file(content, report_filename(now or utc_now()), settings.REPORTS_DIR)

        try:
            report = self.report_repo.create({
                "patient_id": patient.id,
                "provider_id": caller.id,
                "type": report_type.strip(),
                "date": report_date,
                "status": ReportStatus.PENDING,
                "results": results,
                "recommendations": recommendations,
                "notes": notes,
                "pdf_path": pdf_path,
            })
        except StorageError:
            file_store.delete_file(pdf_path)
            raise

        logger.info(f"Report {report.id} created by provider {caller.id} for patient {patient.id}")
        return report

    def _can_view(self, caller: CurrentUser, report: Report) -> bool:
        if caller.is_admin:
            return True
        if caller.is_provider:
            return report.provider_id == caller.id
        return report.patient is not None and report.patient.user_id == caller.id

    def get_report(self, caller: CurrentUser, report_id: uuid.UUID) -> Report:
        report = self.report_repo.get_by_id(report_id)
        if not report or not self._can_view(caller, report):
            raise NotFoundError("Report not found")
        return report

    def get_report_file(self, caller: CurrentUser, report_id: uuid.UUID) -> str:
        """Path of the stored PDF of a visible report"""
        report = self.get_report(caller, report_id)
        if not file_store.file_exists(report.pdf_path):
            logger.warning(f"PDF for report {report.id} missing at {report.pdf_path}")
            raise NotFoundError("Report file not found")
        return report.pdf_path

    def list_provider_reports(
        self,
        caller: CurrentUser,
        patient_id: Optional[uuid.UUID] = None,
        status: Optional[ReportStatus] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Report], int]:
        """Reports written by the calling provider (all reports for admins)"""
        provider_id = None if caller.is_admin else caller.id
        reports = self.report_repo.get_all(skip, limit, provider_id, patient_id, status)
        total = self.report_repo.count(provider_id, patient_id, status)
        return reports, total

    def list_patient_reports(
        self,
        caller: CurrentUser,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Report], int]:
        """Reports about the calling patient"""
        patient = self.patient_repo.get_by_user_id(caller.id)
        if not patient:
            return [], 0
        reports = self.report_repo.get_all(skip, limit, patient_id=patient.id)
        total = self.report_repo.count(patient_id=patient.id)
        return reports, total

    def _report_counts(
        self,
        provider_id: Optional[uuid.UUID] = None,
        patient_id: Optional[uuid.UUID] = None
    ) -> Dict[str, Any]:
        by_status = self.report_repo.count_by_status(provider_id, patient_id)
        return {
            "total": sum(by_status.values()),
            "pending": by_status.get(ReportStatus.PENDING, 0),
            "completed": by_status.get(ReportStatus.COMPLETED, 0),
            "reviewed": by_status.get(ReportStatus.REVIEWED, 0),
            "type_breakdown": [
                {"type": report_type, "count": count}
                for report_type, count in self.report_repo.count_by_type(provider_id, patient_id)
            ],
        }

    def get_provider_report_stats(self, caller: CurrentUser, latest_limit: int = 5) -> Dict[str, Any]:
        """Status counts, type breakdown and latest reports of the calling provider (all reports for admins)"""
        provider_id = None if caller.is_admin else caller.id
        stats = self._report_counts(provider_id=provider_id)
        stats["latest"] = [
            {
                "id": report.id,
                "type": report.type,
                "date": report.date,
                "status": report.status,
                "patient_name": report.patient.full_name if report.patient else "Unknown Patient",
            }
            for report in self.report_repo.get_all(limit=latest_limit, provider_id=provider_id)
        ]
        return stats

    def get_patient_report_stats(self, caller: CurrentUser) -> Dict[str, Any]:
        """Status counts, type breakdown and most recent report about the calling patient"""
        patient = self.patient_repo.get_by_user_id(caller.id)
        if not patient:
            return {
                "total": 0, "pending": 0, "completed": 0, "reviewed": 0,
                "type_breakdown": [], "latest": None
            }

        stats = self._report_counts(patient_id=patient.id)
        latest = self.report_repo.get_all(limit=1, patient_id=patient.id)
        stats["latest"] = {
            "id": latest[0].id,
            "type": latest[0].type,
            "date": latest[0].date,
            "status": latest[0].status,
            "provider_name": latest[0].provider.full_name if latest[0].provider else "Unknown Provider",
        } if latest else None
        return stats
