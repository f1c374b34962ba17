from typing import Optional, List, Iterable
from sqlalchemy.orm import Session
import uuid

from telehealth.domain.auth.models import User, UserRole
from telehealth.infrastructure.database import commit_or_raise


class UserRepository:
    """Repository for user accounts"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, user_data: dict) -> User:
        """Create a new user"""
        user = User(**user_data)
        self.db.add(user)
        commit_or_raise(self.db, "create user")
        self.db.refresh(user)
        return user

    def get_active(self, user_id: uuid.UUID) -> Optional[User]:
        return self.db.query(User).filter(
            User.id == user_id,
            User.is_active == True  # noqa: E712
        ).first()

    def get_active_by_roles(self, roles: Iterable[UserRole], exclude_id: Optional[uuid.UUID] = None) -> List[User]:
        """Active accounts holding any of the roles, ordered by name"""
        query = self.db.query(User).filter(
            User.role.in_(list(roles)),
            User.is_active == True  # noqa: E712
        )
        if exclude_id:
            query = query.filter(User.id != exclude_id)
        return query.order_by(User.full_name).all()
