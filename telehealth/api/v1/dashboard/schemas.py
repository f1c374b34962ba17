from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
import uuid
from telehealth.domain.tasks.models import TaskStatus


class DashboardCountsResponse(BaseModel):
    todays_appointments: int
    total_patients: int
    completion_rate: int
    new_messages: int


class WeeklySummaryDay(BaseModel):
    day: str
    completed: int
    scheduled: int


class DemographicCategory(BaseModel):
    category: str
    count: int


class PendingTask(BaseModel):
    id: uuid.UUID
    description: str
    status: TaskStatus
    due_date: Optional[datetime] = None
    related_patient_id: Optional[uuid.UUID] = None


class WeeklySummaryResponse(BaseModel):
    weekly_appointment_summary: List[WeeklySummaryDay]


class DemographicsResponse(BaseModel):
    patient_demographics: List[DemographicCategory]


class PendingTasksResponse(BaseModel):
    tasks: List[PendingTask]
