"""
Dashboard API Routes

Provider dashboard figures. Providers always see their own data; admins
pick a provider with the provider_id query parameter.
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional
import uuid

from telehealth.infrastructure.database import get_db
from telehealth.core.exceptions import ValidationError
from telehealth.core.permissions import require_permissions, Permissions, CurrentUser
from telehealth.domain.dashboard.service import DashboardService
from telehealth.api.v1.dashboard.schemas import (
    DashboardCountsResponse, WeeklySummaryResponse,
    DemographicsResponse, PendingTasksResponse
)

router = APIRouter()


def resolve_provider_id(current_user: CurrentUser, provider_id: Optional[uuid.UUID]) -> uuid.UUID:
    if not current_user.is_admin:
        return current_user.id
    if provider_id is None:
        raise ValidationError("provider_id is required for admin requests", field="provider_id")
    return provider_id


@router.get("/counts", response_model=DashboardCountsResponse)
def get_dashboard_counts(
    provider_id: Optional[uuid.UUID] = None,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.DASHBOARD_READ]))
):
    """Headline figures of the provider dashboard"""
    service = DashboardService(db)
    return service.get_dashboard_counts(resolve_provider_id(current_user, provider_id))


@router.get("/weekly-summary", response_model=WeeklySummaryResponse)
def get_weekly_summary(
    provider_id: Optional[uuid.UUID] = None,
    include_weekend: bool = Query(False),
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.DASHBOARD_READ]))
):
    service = DashboardService(db)
    summary = service.get_weekly_appointment_summary(
        resolve_provider_id(current_user, provider_id),
        include_weekend=include_weekend
    )
    return WeeklySummaryResponse(weekly_appointment_summary=summary)


@router.get("/demographics", response_model=DemographicsResponse)
def get_demographics(
    provider_id: Optional[uuid.UUID] = None,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.DASHBOARD_READ]))
):
    service = DashboardService(db)
    demographics = service.get_patient_demographics(resolve_provider_id(current_user, provider_id))
    return DemographicsResponse(patient_demographics=demographics)


@router.get("/tasks", response_model=PendingTasksResponse)
def get_pending_tasks(
    provider_id: Optional[uuid.UUID] = None,
    limit: Optional[int] = Query(None, ge=1, le=100),
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.DASHBOARD_READ]))
):
    """Open tasks, earliest due first"""
    service = DashboardService(db)
    tasks = service.get_pending_tasks(resolve_provider_id(current_user, provider_id), limit=limit)
    return PendingTasksResponse(tasks=tasks)
