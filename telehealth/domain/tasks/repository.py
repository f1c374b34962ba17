from typing import Optional, List
from sqlalchemy.orm import Session
import uuid

from telehealth.domain.tasks.models import Task, TaskStatus
from telehealth.infrastructure.database import commit_or_raise


class TaskRepository:
    """Repository for provider tasks"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, task_data: dict) -> Task:
        task = Task(**task_data)
        self.db.add(task)
        commit_or_raise(self.db, "create task")
        self.db.refresh(task)
        return task

    def get_by_id(self, task_id: uuid.UUID) -> Optional[Task]:
        return self.db.query(Task).filter(Task.id == task_id).first()

    def get_open_for_provider(self, provider_id: uuid.UUID, limit: Optional[int] = None) -> List[Task]:
        """Pending and overdue tasks, earliest due first, undated last"""
        query = self.db.query(Task).filter(
            Task.assigned_to_id == provider_id,
            Task.status.in_([TaskStatus.PENDING, TaskStatus.OVERDUE])
        ).order_by(
            Task.due_date.is_(None),
            Task.due_date,
            Task.created_at
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    def save(self, task: Task, operation: str) -> Task:
        commit_or_raise(self.db, operation)
        self.db.refresh(task)
        return task
