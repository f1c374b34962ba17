from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
import uuid
from telehealth.domain.tasks.models import TaskStatus


class TaskCreate(BaseModel):
    description: str = Field(..., max_length=2000)
    due_date: Optional[datetime] = None
    assigned_to_id: Optional[uuid.UUID] = None
    related_patient_id: Optional[uuid.UUID] = None


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    assigned_to_id: uuid.UUID
    description: str
    status: TaskStatus
    due_date: Optional[datetime] = None
    related_patient_id: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
