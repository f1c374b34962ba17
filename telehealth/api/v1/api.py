from fastapi import APIRouter
from telehealth.core.exceptions import ErrorResponse
from telehealth.api.v1.appointments import routes as appointments
from telehealth.api.v1.dashboard import routes as dashboard
from telehealth.api.v1.patients import routes as patients
from telehealth.api.v1.reports import routes as reports
from telehealth.api.v1.tasks import routes as tasks
from telehealth.api.v1.messages import routes as messages

api_router = APIRouter(
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    }
)
api_router.include_router(appointments.router, prefix="/appointments", tags=["appointments"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(patients.router, prefix="/patients", tags=["patients"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
api_router.include_router(messages.router, prefix="/messages", tags=["messages"])
