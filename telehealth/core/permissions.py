from dataclasses import dataclass, field
from typing import List, FrozenSet
from fastapi import Request
import uuid

from telehealth.core.exceptions import AuthenticationError, AuthorizationError
from telehealth.core.security import verify_token
from telehealth.domain.auth.models import UserRole


class Permissions:
    """Permission constants for the telehealth API"""

    # Appointments
    APPOINTMENTS_CREATE = "appointments:create"
    APPOINTMENTS_READ = "appointments:read"
    APPOINTMENTS_UPDATE = "appointments:update"
    APPOINTMENTS_CANCEL = "appointments:cancel"

    # Schedules
    SCHEDULES_MANAGE = "schedules:manage"
    SCHEDULES_READ = "schedules:read"

    # Patients
    PATIENTS_CREATE = "patients:create"
    PATIENTS_READ = "patients:read"

    # Dashboard
    DASHBOARD_READ = "dashboard:read"

    # Reports
    REPORTS_CREATE = "reports:create"
    REPORTS_READ = "reports:read"
    REPORTS_READ_OWN = "reports:read:own"

    # Tasks
    TASKS_MANAGE = "tasks:manage"

    # Messages
    MESSAGES_SEND = "messages:send"
    MESSAGES_READ = "messages:read"

    # System
    SYSTEM_ADMIN = "system:admin"


ROLE_PERMISSIONS = {
    UserRole.PATIENT: frozenset({
        Permissions.APPOINTMENTS_CREATE,
        Permissions.APPOINTMENTS_READ,
        Permissions.APPOINTMENTS_CANCEL,
        Permissions.SCHEDULES_READ,
        Permissions.REPORTS_READ_OWN,
        Permissions.MESSAGES_SEND,
        Permissions.MESSAGES_READ,
    }),
    UserRole.PROVIDER: frozenset({
        Permissions.APPOINTMENTS_CREATE,
        Permissions.APPOINTMENTS_READ,
        Permissions.APPOINTMENTS_UPDATE,
        Permissions.APPOINTMENTS_CANCEL,
        Permissions.SCHEDULES_MANAGE,
        Permissions.SCHEDULES_READ,
        Permissions.PATIENTS_CREATE,
        Permissions.PATIENTS_READ,
        Permissions.DASHBOARD_READ,
        Permissions.REPORTS_CREATE,
        Permissions.REPORTS_READ,
        Permissions.TASKS_MANAGE,
        Permissions.MESSAGES_SEND,
        Permissions.MESSAGES_READ,
    }),
}


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated caller as asserted by the access token"""
    id: uuid.UUID
    role: UserRole
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_provider(self) -> bool:
        return self.role == UserRole.PROVIDER

    @property
    def is_patient(self) -> bool:
        return self.role == UserRole.PATIENT

    def has_any(self, required_permissions: List[str]) -> bool:
        if Permissions.SYSTEM_ADMIN in self.permissions:
            return True
        return any(perm in self.permissions for perm in required_permissions)


def permissions_for_role(role: UserRole) -> FrozenSet[str]:
    if role == UserRole.ADMIN:
        return frozenset({Permissions.SYSTEM_ADMIN})
    return ROLE_PERMISSIONS.get(role, frozenset())


def get_current_user(request: Request) -> CurrentUser:
    """Extract and validate user from request"""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise AuthenticationError("Authentication required")

    token = auth_header.split(" ", 1)[1]
    payload = verify_token(token, "access")

    if not payload:
        raise AuthenticationError("Invalid or expired token")

    try:
        user_id = uuid.UUID(payload["sub"])
        role = UserRole(payload["role"])
    except (KeyError, ValueError):
        raise AuthenticationError("Malformed token claims")

    return CurrentUser(id=user_id, role=role, permissions=permissions_for_role(role))


def require_permissions(required_permissions: List[str]):
    """Dependency function to check permissions"""
    def permission_checker(request: Request) -> CurrentUser:
        current_user = get_current_user(request)
        request.state.user = current_user

        if not current_user.has_any(required_permissions):
            raise AuthorizationError("Insufficient permissions")

        return current_user

    return permission_checker
