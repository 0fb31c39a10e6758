"""In-memory employee directory for local development and testing.

Replace with an adapter over the HR/profile service for production.
"""

from __future__ import annotations

from uuid import UUID

from payroll_consolidation.collaborators.base import BankDetails, EmploymentType


class InMemoryEmployeeDirectory:
    """Stub directory backed by dictionaries."""

    provider_name = "in_memory"

    def __init__(self) -> None:
        self._bank_details: dict[UUID, BankDetails] = {}
        # (employee_id, employer_id) -> type; employer None matches any employer
        self._relationships: dict[tuple[UUID, UUID | None], EmploymentType] = {}

    def register_bank_details(self, employee_id: UUID, details: BankDetails) -> None:
        self._bank_details[employee_id] = details

    def register_relationship(
        self,
        employee_id: UUID,
        relationship: EmploymentType | str,
        employer_id: UUID | None = None,
    ) -> None:
        self._relationships[(employee_id, employer_id)] = EmploymentType(relationship)

    def get_employee_bank_details(self, employee_id: UUID) -> BankDetails | None:
        return self._bank_details.get(employee_id)

    def get_employment_relationship(
        self, employee_id: UUID, employer_id: UUID | None
    ) -> EmploymentType | None:
        found = self._relationships.get((employee_id, employer_id))
        if found is None:
            found = self._relationships.get((employee_id, None))
        return found
