"""Protocol and types for the employee directory collaborator.

The engine only reads from the directory: bank details are shown before an
out-of-band transfer, and the employment relationship decides whether
vacation pay applies by default.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol
from uuid import UUID


class EmploymentType(str, Enum):
    """Employment relationship between an employer and an employee."""

    HOURLY = "hourly"
    SALARIED = "salaried"
    CONSULTANT = "consultant"


# Relationship types that earn vacation pay on top of gross by default
VACATION_ELIGIBLE = frozenset({EmploymentType.HOURLY})


@dataclass(frozen=True)
class BankDetails:
    """Where an employee's net pay is transferred."""

    bank_name: str
    clearing_number: str
    account_number: str
    address: str


class EmployeeDirectory(Protocol):
    """Protocol for employee directory adapters."""

    def get_employee_bank_details(self, employee_id: UUID) -> BankDetails | None:
        """Bank details for an employee, or None if none are registered."""
        ...

    def get_employment_relationship(
        self, employee_id: UUID, employer_id: UUID | None
    ) -> EmploymentType | None:
        """Relationship type, or None if the pair is unknown."""
        ...


def vacation_pay_default(relationship: EmploymentType | None) -> bool:
    return relationship in VACATION_ELIGIBLE
