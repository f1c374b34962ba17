from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import FileResponse
from typing import Optional
import uuid
import math
import os

from telehealth.infrastructure.database import get_db
from telehealth.core.permissions import require_permissions, Permissions
from telehealth.domain.reports.models import ReportStatus
from telehealth.domain.reports.service import ReportService
from telehealth.api.v1.reports.schemas import (
    ReportCreate, ReportResponse, ReportListResponse,
    ProviderReportStatsResponse, PatientReportStatsResponse
)

router = APIRouter()


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
def create_report(
    report_data: ReportCreate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.REPORTS_CREATE]))
):
    """Create a report and generate its PDF"""
    service = ReportService(db)
    return service.create_report(
        current_user,
        patient_id=report_data.patient_id,
        report_type=report_data.type,
        report_date=report_data.date,
        results=report_data.results,
        recommendations=report_data.recommendations,
        notes=report_data.notes
    )


@router.get("", response_model=ReportListResponse)
def list_reports(
    patient_id: Optional[uuid.UUID] = None,
    status_filter: Optional[ReportStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.REPORTS_READ]))
):
    """Reports written by the calling provider"""
    service = ReportService(db)
    reports, total = service.list_provider_reports(
        current_user, patient_id, status_filter, skip=(page - 1) * limit, limit=limit
    )
    return ReportListResponse(
        items=reports,
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit) if total > 0 else 1
    )


@router.get("/patient/me", response_model=ReportListResponse)
def list_my_reports(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.REPORTS_READ_OWN]))
):
    """Reports about the calling patient"""
    service = ReportService(db)
    reports, total = service.list_patient_reports(current_user, skip=(page - 1) * limit, limit=limit)
    return ReportListResponse(
        items=reports,
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit) if total > 0 else 1
    )


@router.get("/stats", response_model=ProviderReportStatsResponse)
def get_report_stats(
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.REPORTS_READ]))
):
    """Report counts by status and type, with the latest reports"""
    service = ReportService(db)
    return service.get_provider_report_stats(current_user)


@router.get("/patient/me/stats", response_model=PatientReportStatsResponse)
def get_my_report_stats(
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.REPORTS_READ_OWN]))
):
    service = ReportService(db)
    return service.get_patient_report_stats(current_user)


@router.get("/{report_id}", response_model=ReportResponse)
def get_report(
    report_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.REPORTS_READ, Permissions.REPORTS_READ_OWN]))
):
    service = ReportService(db)
    return service.get_report(current_user, report_id)


@router.get("/{report_id}/pdf")
def download_report_pdf(
    report_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.REPORTS_READ, Permissions.REPORTS_READ_OWN]))
):
    """Stream the stored report PDF"""
    service = ReportService(db)
    path = service.get_report_file(current_user, report_id)
    return FileResponse(path, media_type="application/pdf", filename=os.path.basename(path))
