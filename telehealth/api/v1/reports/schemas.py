from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime
import datetime as dt
import uuid
from telehealth.domain.reports.models import ReportStatus


class ReportCreate(BaseModel):
    """Required fields are checked by the service so the error names the field"""
    patient_id: Optional[uuid.UUID] = None
    type: Optional[str] = Field(None, max_length=100)
    date: Optional[dt.date] = None
    results: Optional[str] = None
    recommendations: Optional[str] = None
    notes: Optional[str] = None


class ReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    patient_id: uuid.UUID
    provider_id: uuid.UUID
    type: str
    date: dt.date
    status: ReportStatus
    results: str
    recommendations: Optional[str] = None
    notes: Optional[str] = None
    pdf_path: str
    created_at: Optional[datetime] = None


class ReportListResponse(BaseModel):
    items: List[ReportResponse]
    total: int
    page: int
    limit: int
    pages: int


class ReportTypeCount(BaseModel):
    type: str
    count: int


class ProviderLatestReport(BaseModel):
    id: uuid.UUID
    type: str
    date: dt.date
    status: ReportStatus
    patient_name: str


class PatientLatestReport(BaseModel):
    id: uuid.UUID
    type: str
    date: dt.date
    status: ReportStatus
    provider_name: str


class ReportStatsBase(BaseModel):
    total: int
    pending: int
    completed: int
    reviewed: int
    type_breakdown: List[ReportTypeCount]


class ProviderReportStatsResponse(ReportStatsBase):
    latest: List[ProviderLatestReport]


class PatientReportStatsResponse(ReportStatsBase):
    latest: Optional[PatientLatestReport] = None
