"""API routes."""

from payroll_advances.api.routes.advances import router as advances_router
from payroll_advances.api.routes.employees import router as employees_router
from payroll_advances.api.routes.health import router as health_router
from payroll_advances.api.routes.salary_records import router as salary_records_router

__all__ = [
    "advances_router",
    "employees_router",
    "health_router",
    "salary_records_router",
]
