"""ORM models."""

from payroll_consolidation.models.audit import AuditEvent
from payroll_consolidation.models.base import Base, TimestampMixin
from payroll_consolidation.models.payslips import Payslip, PayrollPreset
from payroll_consolidation.models.records import (
    EarningRecord,
    PeriodAdjustment,
    RecordAdjustment,
    RecordKind,
)

__all__ = [
    "AuditEvent",
    "Base",
    "EarningRecord",
    "Payslip",
    "PayrollPreset",
    "PeriodAdjustment",
    "RecordAdjustment",
    "RecordKind",
    "TimestampMixin",
]
