from fastapi import APIRouter, Depends, status
import uuid

from telehealth.infrastructure.database import get_db
from telehealth.core.permissions import require_permissions, Permissions
from telehealth.domain.tasks.service import TaskService
from telehealth.api.v1.tasks.schemas import TaskCreate, TaskResponse

router = APIRouter()


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.TASKS_MANAGE]))
):
    """Add a task to a provider's list"""
    service = TaskService(db)
    return service.create_task(current_user, **task_data.model_dump())


@router.post("/{task_id}/complete", response_model=TaskResponse)
def complete_task(
    task_id: uuid.UUID,
    db = Depends(get_db),
    current_user = Depends(require_permissions([Permissions.TASKS_MANAGE]))
):
    service = TaskService(db)
    return service.complete_task(current_user, task_id)
