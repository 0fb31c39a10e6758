"""Domain exceptions raised by the consolidation engine.

Every exception carries a stable ``code`` that the API layer forwards to
callers. Validation and precondition errors are always raised before any
state is mutated.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


class PayrollError(Exception):
    """Base class for all engine errors."""

    code = "PAYROLL_ERROR"


# ===== Validation =====


class ValidationFailedError(PayrollError):
    """Input has the wrong shape or an out-of-range value."""

    code = "VALIDATION_ERROR"


class RecordValidationError(ValidationFailedError):
    code = "INVALID_RECORD"


class AdjustmentValidationError(ValidationFailedError):
    code = "INVALID_ADJUSTMENT"


class PresetValidationError(ValidationFailedError):
    code = "INVALID_PRESET"


class ConfigValidationError(ValidationFailedError):
    code = "INVALID_PAYSLIP_CONFIG"


# ===== Not found =====


class NotFoundError(PayrollError):
    code = "NOT_FOUND"

    def __init__(self, entity: str, identifier: Any):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} {identifier} not found")


class RecordNotFound(NotFoundError):
    code = "RECORD_NOT_FOUND"

    def __init__(self, record_ids: Iterable[Any]):
        self.record_ids = sorted(str(r) for r in record_ids)
        super().__init__("Earning record(s)", ", ".join(self.record_ids))


class AdjustmentNotFound(NotFoundError):
    code = "ADJUSTMENT_NOT_FOUND"

    def __init__(self, identifier: Any):
        super().__init__("Adjustment", identifier)


class PresetNotFound(NotFoundError):
    code = "PRESET_NOT_FOUND"

    def __init__(self, identifier: Any):
        super().__init__("Payroll preset", identifier)


class PayslipNotFound(NotFoundError):
    code = "PAYSLIP_NOT_FOUND"

    def __init__(self, identifier: Any):
        super().__init__("Payslip", identifier)


# ===== Preconditions =====


class PreconditionError(PayrollError):
    """The current state does not allow the operation. Nothing was changed."""

    code = "PRECONDITION_FAILED"


class EmptyPeriod(PreconditionError):
    code = "EMPTY_PERIOD"

    def __init__(self, employee_id: Any, pay_period: str):
        self.employee_id = employee_id
        self.pay_period = pay_period
        super().__init__(
            f"No earning records for employee {employee_id} in pay period {pay_period}"
        )


class EmptySelection(PreconditionError):
    code = "EMPTY_SELECTION"

    def __init__(self) -> None:
        super().__init__("Selection must contain at least one record")


class MixedEmployeeSelection(PreconditionError):
    code = "MIXED_EMPLOYEE_SELECTION"

    def __init__(self, expected_employee_id: Any, found_employee_ids: Iterable[Any]):
        self.expected_employee_id = expected_employee_id
        self.found_employee_ids = sorted(str(e) for e in found_employee_ids)
        super().__init__(
            f"Selection must belong to employee {expected_employee_id}, "
            f"found {', '.join(self.found_employee_ids)}"
        )


class MixedPeriodSelection(PreconditionError):
    code = "MIXED_PERIOD_SELECTION"

    def __init__(self, pay_periods: Iterable[str]):
        self.pay_periods = sorted(pay_periods)
        super().__init__(
            f"Selection spans several pay periods: {', '.join(self.pay_periods)}"
        )


class NonHomogeneousSelection(PreconditionError):
    code = "NON_HOMOGENEOUS_SELECTION"

    def __init__(self, expected_status: str, found_statuses: Iterable[str]):
        self.expected_status = expected_status
        self.found_statuses = sorted(set(found_statuses))
        super().__init__(
            f"All selected records must be '{expected_status}', "
            f"found: {', '.join(self.found_statuses)}"
        )


class PartialPayslipSelection(PreconditionError):
    code = "PARTIAL_PAYSLIP_SELECTION"

    def __init__(self, payslip_id: Any, missing_record_ids: Iterable[Any]):
        self.payslip_id = payslip_id
        self.missing_record_ids = sorted(str(r) for r in missing_record_ids)
        super().__init__(
            f"Reverting payslip {payslip_id} requires all of its records; "
            f"missing: {', '.join(self.missing_record_ids)}"
        )


class PeriodAdjustmentLocked(PreconditionError):
    """A period-level adjustment is already counted on a live payslip."""

    code = "PERIOD_ADJUSTMENT_LOCKED"

    def __init__(self, adjustment_ids: Iterable[Any]):
        self.adjustment_ids = sorted(str(a) for a in adjustment_ids)
        super().__init__(
            f"Period adjustments {', '.join(self.adjustment_ids)} are on a live payslip; "
            "revert that payslip to pending before changing them"
        )


class RecordNotEditable(PreconditionError):
    code = "RECORD_NOT_EDITABLE"

    def __init__(self, record_id: Any, status: str):
        self.record_id = record_id
        self.status = status
        super().__init__(
            f"Record {record_id} is '{status}'; adjustments can only change on pending records"
        )


class DuplicatePresetName(PreconditionError):
    code = "DUPLICATE_PRESET_NAME"

    def __init__(self, employer_id: Any, preset_name: str):
        self.employer_id = employer_id
        self.preset_name = preset_name
        super().__init__(f"Preset '{preset_name}' already exists for employer {employer_id}")


class InvalidTransitionError(PreconditionError):
    """Raised when an invalid state transition is attempted."""

    code = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class StaleSelectionError(PreconditionError):
    """The selection changed between validation and write."""

    code = "STALE_SELECTION"

    def __init__(self, expected: int, updated: int):
        self.expected = expected
        self.updated = updated
        super().__init__(
            f"Expected to update {expected} record(s) but {updated} matched; "
            "re-fetch and retry"
        )


# ===== Integrity =====


class PayslipImmutableError(PayrollError):
    code = "PAYSLIP_IMMUTABLE"

    def __init__(self, payslip_id: Any, fields: Iterable[str]):
        self.payslip_id = payslip_id
        self.fields = sorted(fields)
        super().__init__(
            f"Payslip {payslip_id} financial fields are write-once: {', '.join(self.fields)}"
        )
