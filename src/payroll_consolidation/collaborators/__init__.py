"""Adapters for systems the engine reads from but does not own."""

from payroll_consolidation.collaborators.base import (
    BankDetails,
    EmployeeDirectory,
    EmploymentType,
    vacation_pay_default,
)
from payroll_consolidation.collaborators.directory_stub import InMemoryEmployeeDirectory

__all__ = [
    "BankDetails",
    "EmployeeDirectory",
    "EmploymentType",
    "InMemoryEmployeeDirectory",
    "vacation_pay_default",
]
