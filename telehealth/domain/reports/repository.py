from typing import Optional, List, Dict, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload
import uuid

from telehealth.domain.reports.models import Report, ReportStatus
from telehealth.infrastructure.database import commit_or_raise


class ReportRepository:
    """Repository for medical reports"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, report_data: dict) -> Report:
        report = Report(**report_data)
        self.db.add(report)
        commit_or_raise(self.db, "create report")
        self.db.refresh(report)
        return report

    def get_by_id(self, report_id: uuid.UUID) -> Optional[Report]:
        return self.db.query(Report).options(
            joinedload(Report.patient)
        ).filter(Report.id == report_id).first()

    def _filtered(
        self,
        provider_id: Optional[uuid.UUID] = None,
        patient_id: Optional[uuid.UUID] = None,
        status: Optional[ReportStatus] = None
    ):
        query = self.db.query(Report)
        if provider_id:
            query = query.filter(Report.provider_id == provider_id)
        if patient_id:
            query = query.filter(Report.patient_id == patient_id)
        if status:
            query = query.filter(Report.status == status)
        return query

    def get_all(
        self,
        skip: int = 0,
        limit: int = 20,
        provider_id: Optional[uuid.UUID] = None,
        patient_id: Optional[uuid.UUID] = None,
        status: Optional[ReportStatus] = None
    ) -> List[Report]:
        """Reports newest first"""
        return self._filtered(provider_id, patient_id, status).order_by(
            Report.date.desc(), Report.created_at.desc()
        ).offset(skip).limit(limit).all()

    def count(
        self,
        provider_id: Optional[uuid.UUID] = None,
        patient_id: Optional[uuid.UUID] = None,
        status: Optional[ReportStatus] = None
    ) -> int:
        return self._filtered(provider_id, patient_id, status).with_entities(
            func.count(Report.id)
        ).scalar() or 0

    def count_by_status(
        self,
        provider_id: Optional[uuid.UUID] = None,
        patient_id: Optional[uuid.UUID] = None
    ) -> Dict[ReportStatus, int]:
        rows = self._filtered(provider_id, patient_id).with_entities(
            Report.status, func.count(Report.id)
        ).group_by(Report.status).all()
        return {ReportStatus(status): count for status, count in rows}

    def count_by_type(
        self,
        provider_id: Optional[uuid.UUID] = None,
        patient_id: Optional[uuid.UUID] = None
    ) -> List[Tuple[str, int]]:
        """(type, count) pairs, most frequent first"""
        count = func.count(Report.id)
        rows = self._filtered(provider_id, patient_id).with_entities(
            Report.type, count
        ).group_by(Report.type).order_by(count.desc(), Report.type).all()
        return [(report_type, total) for report_type, total in rows]
