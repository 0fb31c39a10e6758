"""API routes."""

from payroll_consolidation.api.routes.employees import router as employees_router
from payroll_consolidation.api.routes.exports import router as exports_router
from payroll_consolidation.api.routes.health import router as health_router
from payroll_consolidation.api.routes.payroll import router as payroll_router
from payroll_consolidation.api.routes.payslips import router as payslips_router
from payroll_consolidation.api.routes.presets import router as presets_router
from payroll_consolidation.api.routes.records import router as records_router

__all__ = [
    "employees_router",
    "exports_router",
    "health_router",
    "payroll_router",
    "payslips_router",
    "presets_router",
    "records_router",
]
