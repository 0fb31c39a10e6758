"""Earning record state machine with transition validation."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING

from payroll_consolidation.errors import InvalidTransitionError, NonHomogeneousSelection

if TYPE_CHECKING:
    from payroll_consolidation.models import EarningRecord


class RecordStatus(str, Enum):
    """Earning record status values."""

    PENDING = "pending"
    PROCESSED = "processed"
    PAID = "paid"


class PayslipStatus(str, Enum):
    """Payslip status values."""

    PROCESSED = "processed"
    PAID = "paid"
    VOID = "void"


class RecordStateMachine:
    """State machine for earning record status transitions.

    Allowed transitions:
    - pending → processed (process)
    - processed → paid (pay)
    - processed → pending (revert, voids the payslip)
    - paid → processed (revert)

    There are no skip transitions: pending → paid and paid → pending
    are rejected.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        RecordStatus.PENDING: [RecordStatus.PROCESSED],
        RecordStatus.PROCESSED: [RecordStatus.PAID, RecordStatus.PENDING],
        RecordStatus.PAID: [RecordStatus.PROCESSED],
    }

    REVERSALS: dict[str, str] = {
        RecordStatus.PROCESSED: RecordStatus.PENDING,
        RecordStatus.PAID: RecordStatus.PROCESSED,
    }

    # Statuses where adjustments can be modified
    INPUTS_MUTABLE = {RecordStatus.PENDING}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def reversal_target(cls, from_status: str) -> str:
        """Status a revert from ``from_status`` lands on."""
        try:
            return cls.REVERSALS[from_status]
        except KeyError:
            raise InvalidTransitionError(
                from_status, "(revert)", "only processed and paid records can be reverted"
            ) from None

    @classmethod
    def can_modify_inputs(cls, status: str) -> bool:
        """Check if adjustments can be modified in this status."""
        return status in cls.INPUTS_MUTABLE

    @classmethod
    def validate_selection(
        cls, records: Iterable[EarningRecord], from_status: str, to_status: str
    ) -> None:
        """Validate a bulk transition over a record selection.

        Every record must currently be exactly ``from_status``.
        """
        cls.validate_transition(from_status, to_status)
        statuses = [r.status for r in records]
        if any(s != from_status for s in statuses):
            raise NonHomogeneousSelection(from_status, statuses)
