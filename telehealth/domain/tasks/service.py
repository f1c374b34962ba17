from typing import Optional, List, Dict, Any
from datetime import datetime
import logging
import uuid

from sqlalchemy.orm import Session

from telehealth.core.exceptions import ValidationError, NotFoundError, ConflictError
from telehealth.core.permissions import CurrentUser
from telehealth.domain.appointments.repository import AppointmentRepository
from telehealth.domain.appointments.service import utc_now
from telehealth.domain.patients.repository import PatientRepository
from telehealth.domain.tasks.models import Task, TaskStatus
from telehealth.domain.tasks.repository import TaskRepository

logger = logging.getLogger(__name__)


def effective_status(task: Task, now: datetime) -> TaskStatus:
    """Stored status, with a pending task past its due date reported as overdue"""
    status = TaskStatus(task.status)
    if status == TaskStatus.PENDING and task.due_date is not None and task.due_date < now:
        return TaskStatus.OVERDUE
    return status


class TaskService:
    """Service layer for provider tasks"""

    def __init__(self, db: Session):
        self.db = db
        self.task_repo = TaskRepository(db)
        self.appointment_repo = AppointmentRepository(db)
        self.patient_repo = PatientRepository(db)

    def create_task(
        self,
        caller: CurrentUser,
        description: str,
        due_date: Optional[datetime] = None,
        assigned_to_id: Optional[uuid.UUID] = None,
        related_patient_id: Optional[uuid.UUID] = None
    ) -> Task:
        """Create a task; providers create tasks for themselves"""
        if not description or not description.strip():
            raise ValidationError("Task description is required", field="description")

        if caller.is_provider:
            assigned_to_id = caller.id
        elif not assigned_to_id:
            raise ValidationError("Assignee is required", field="assigned_to_id")

        if not self.appointment_repo.get_provider(assigned_to_id):
            raise ValidationError("Provider not found", field="assigned_to_id")

        if related_patient_id and not self.patient_repo.get_by_id(related_patient_id):
            raise ValidationError("Patient not found", field="related_patient_id")

        task = self.task_repo.create({
            "assigned_to_id": assigned_to_id,
            "description": description.strip(),
            "due_date": due_date,
            "related_patient_id": related_patient_id,
            "created_by": caller.id,
            "status": TaskStatus.PENDING,
        })
        logger.info(f"Task {task.id} created for provider {assigned_to_id}")
        return task

    def complete_task(self, caller: CurrentUser, task_id: uuid.UUID, now: Optional[datetime] = None) -> Task:
        task = self.task_repo.get_by_id(task_id)
        if not task or (not caller.is_admin and task.assigned_to_id != caller.id):
            raise NotFoundError("Task not found")

        if task.status == TaskStatus.COMPLETED:
            raise ConflictError("Task is already completed")

        task.status = TaskStatus.COMPLETED
        task.completed_at = now or utc_now()
        return self.task_repo.save(task, "complete task")

    def get_pending_tasks(
        self,
        provider_id: uuid.UUID,
        now: Optional[datetime] = None,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Open tasks with overdue status derived against now; nothing is written"""
        now = now or utc_now()
        return [
            {
                "id": task.id,
                "description": task.description,
                "status": effective_status(task, now),
                "due_date": task.due_date,
                "related_patient_id": task.related_patient_id,
            }
            for task in self.task_repo.get_open_for_provider(provider_id, limit)
        ]
