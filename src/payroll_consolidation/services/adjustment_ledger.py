"""Adjustment ledger: per-record and per-period corrections."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_consolidation.calculators.pay_calculator import (
    GUARD,
    net_adjustments,
    quantize_guard,
    record_total,
)
from payroll_consolidation.database import acquire_period_lock
from payroll_consolidation.errors import (
    AdjustmentNotFound,
    AdjustmentValidationError,
    PeriodAdjustmentLocked,
    RecordNotEditable,
)
from payroll_consolidation.models import (
    EarningRecord,
    Payslip,
    PeriodAdjustment,
    RecordAdjustment,
)
from payroll_consolidation.services.audit import record_audit
from payroll_consolidation.services.record_store import RecordStore, validate_pay_period
from payroll_consolidation.services.state_machine import PayslipStatus, RecordStateMachine

logger = logging.getLogger(__name__)

AMOUNT_LIMIT = Decimal("10000000000")


@dataclass(frozen=True)
class AdjustmentInput:
    """A pending edit: reason plus signed amount, with the id when editing."""

    reason: str
    amount: Any
    id: UUID | None = None


def _clean(adjustment: AdjustmentInput) -> tuple[str, Decimal]:
    """Validate an adjustment, returning the stripped reason and amount."""
    reason = adjustment.reason.strip() if isinstance(adjustment.reason, str) else ""
    if not reason:
        raise AdjustmentValidationError("Adjustment reason must not be empty")
    if isinstance(adjustment.amount, bool):
        raise AdjustmentValidationError("Adjustment amount must be numeric")
    try:
        amount = Decimal(str(adjustment.amount).strip())
    except (InvalidOperation, ValueError) as e:
        raise AdjustmentValidationError(
            f"Adjustment amount must be numeric, got {adjustment.amount!r}"
        ) from e
    if not amount.is_finite():
        raise AdjustmentValidationError("Adjustment amount must be finite")
    # Numeric(14, 4): anything finer or larger would be altered on storage
    if abs(amount) >= AMOUNT_LIMIT:
        raise AdjustmentValidationError(f"Adjustment amount must be below {AMOUNT_LIMIT:,}")
    if amount != amount.quantize(GUARD):
        raise AdjustmentValidationError(
            f"Adjustment amount may have at most four decimals, got {adjustment.amount!r}"
        )
    return reason, amount


def _snapshot(record: EarningRecord) -> dict[str, Any]:
    return {
        "adjustments": [
            {"reason": a.reason, "amount": str(a.amount)} for a in record.adjustments
        ],
        "net_adjustments": str(record.net_adjustments),
        "total_pay": str(record.total_pay),
    }


class AdjustmentLedger:
    """Service for record-level and period-level adjustments.

    Every record mutation rebuilds ``net_adjustments`` and ``total_pay``
    from the stored base fields and the live adjustment list; the previous
    cached total is never used as a starting point.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.records = RecordStore(session)

    # ===== Record-level =====

    async def add_or_update_record_adjustment(
        self,
        record_id: UUID,
        adjustment: AdjustmentInput,
        actor_id: UUID | None = None,
    ) -> EarningRecord:
        """Append an adjustment, or edit the one named by ``adjustment.id``."""
        reason, amount = _clean(adjustment)
        record = await self._load_editable(record_id)
        before = _snapshot(record)

        if adjustment.id is not None:
            existing = self._find(record, adjustment.id)
            existing.reason = reason
            existing.amount = amount
            action = "adjustment_updated"
        else:
            record.adjustments.append(
                RecordAdjustment(
                    reason=reason,
                    amount=amount,
                    position=self._next_position(record),
                )
            )
            action = "adjustment_added"

        return await self._commit_record_change(record, before, action, actor_id)

    async def remove_record_adjustment(
        self,
        record_id: UUID,
        adjustment_index_or_id: int | UUID | str,
        actor_id: UUID | None = None,
    ) -> EarningRecord:
        """Remove an adjustment by list index or by id."""
        record = await self._load_editable(record_id)
        before = _snapshot(record)

        target = self._resolve(record, adjustment_index_or_id)
        record.adjustments.remove(target)
        for position, adj in enumerate(record.adjustments):
            adj.position = position

        return await self._commit_record_change(record, before, "adjustment_removed", actor_id)

    async def replace_record_adjustments(
        self,
        record_id: UUID,
        adjustments: Sequence[AdjustmentInput],
        actor_id: UUID | None = None,
    ) -> EarningRecord:
        """Replace the record's whole adjustment list."""
        cleaned = [_clean(adj) for adj in adjustments]
        record = await self._load_editable(record_id)
        before = _snapshot(record)

        record.adjustments = [
            RecordAdjustment(reason=reason, amount=amount, position=position)
            for position, (reason, amount) in enumerate(cleaned)
        ]

        return await self._commit_record_change(record, before, "adjustments_replaced", actor_id)

    async def _load_editable(self, record_id: UUID) -> EarningRecord:
        record = await self.records.get_record(record_id, for_update=True)
        if not RecordStateMachine.can_modify_inputs(record.status):
            raise RecordNotEditable(record_id, record.status)
        self.heal_if_stale(record)
        return record

    @classmethod
    def heal_if_stale(cls, record: EarningRecord) -> bool:
        """Repair cached totals that disagree with the source fields.

        Returns True when a repair was needed.
        """
        fresh_net = quantize_guard(net_adjustments(record))
        fresh_total = quantize_guard(record_total(record))
        if record.net_adjustments == fresh_net and record.total_pay == fresh_total:
            return False
        logger.warning(
            "Record %s cached totals out of sync (net %s -> %s, total %s -> %s); "
            "recomputed from source fields",
            record.earning_record_id,
            record.net_adjustments,
            fresh_net,
            record.total_pay,
            fresh_total,
        )
        cls.recompute(record)
        return True

    async def _commit_record_change(
        self,
        record: EarningRecord,
        before: dict[str, Any],
        action: str,
        actor_id: UUID | None,
    ) -> EarningRecord:
        self.recompute(record)
        await record_audit(
            self.session,
            entity_type="earning_record",
            entity_id=record.earning_record_id,
            action=action,
            actor_id=actor_id,
            before=before,
            after=_snapshot(record),
        )
        await self.session.flush()
        return record

    @staticmethod
    def recompute(record: EarningRecord) -> EarningRecord:
        """Rebuild the cached totals from base fields and live adjustments."""
        fresh_net = quantize_guard(net_adjustments(record))
        fresh_total = quantize_guard(record_total(record))
        record.net_adjustments = fresh_net
        record.total_pay = fresh_total
        return record

    @staticmethod
    def _find(record: EarningRecord, adjustment_id: UUID) -> RecordAdjustment:
        for adj in record.adjustments:
            if adj.record_adjustment_id == adjustment_id:
                return adj
        raise AdjustmentNotFound(adjustment_id)

    @staticmethod
    def _next_position(record: EarningRecord) -> int:
        return max((a.position for a in record.adjustments), default=-1) + 1

    def _resolve(self, record: EarningRecord, key: int | UUID | str) -> RecordAdjustment:
        if isinstance(key, str):
            try:
                key = UUID(key)
            except ValueError:
                if not key.lstrip("-").isdigit():
                    raise AdjustmentNotFound(key) from None
                key = int(key)
        if isinstance(key, UUID):
            return self._find(record, key)
        if isinstance(key, bool) or not 0 <= key < len(record.adjustments):
            raise AdjustmentNotFound(key)
        return record.adjustments[key]

    # ===== Period-level =====

    async def list_period_level_adjustments(
        self, employee_id: UUID, pay_period: str
    ) -> list[PeriodAdjustment]:
        """Stored period-level adjustments, oldest first."""
        validate_pay_period(pay_period)
        result = await self.session.execute(
            select(PeriodAdjustment)
            .where(
                PeriodAdjustment.employee_id == employee_id,
                PeriodAdjustment.pay_period == pay_period,
            )
            .order_by(PeriodAdjustment.created_at, PeriodAdjustment.period_adjustment_id)
        )
        return list(result.scalars().all())

    async def consumed_period_adjustment_ids(
        self, employee_id: UUID, pay_period: str
    ) -> set[UUID]:
        """Period-level adjustments already counted on a live payslip."""
        result = await self.session.execute(
            select(Payslip).where(
                Payslip.employee_id == employee_id,
                Payslip.pay_period == pay_period,
                Payslip.status != PayslipStatus.VOID.value,
            )
        )
        consumed: set[UUID] = set()
        for payslip in result.scalars().all():
            consumed |= payslip.consumed_adjustment_ids
        return consumed

    async def open_period_level_adjustments(
        self, employee_id: UUID, pay_period: str
    ) -> list[PeriodAdjustment]:
        """Period-level adjustments not yet counted on any live payslip."""
        consumed = await self.consumed_period_adjustment_ids(employee_id, pay_period)
        return [
            adj
            for adj in await self.list_period_level_adjustments(employee_id, pay_period)
            if adj.period_adjustment_id not in consumed
        ]

    async def upsert_period_level_adjustments(
        self,
        employee_id: UUID,
        pay_period: str,
        desired: Sequence[AdjustmentInput],
        actor_employer_id: UUID,
    ) -> list[PeriodAdjustment]:
        """Make storage match the full desired list for an employee and period.

        Stored entries missing from ``desired`` are deleted, entries with a
        known id and a changed reason or amount are updated, and entries
        without an id are inserted. An id that is not stored for this
        employee and period is rejected. Entries already counted on a live
        payslip cannot be changed or deleted (PeriodAdjustmentLocked).

        Returns the stored list after the change.
        """
        validate_pay_period(pay_period)
        cleaned = [(adj.id, *_clean(adj)) for adj in desired]
        seen: set[UUID] = set()
        for adj_id, _, _ in cleaned:
            if adj_id is None:
                continue
            if adj_id in seen:
                raise AdjustmentValidationError(f"Adjustment {adj_id} appears more than once")
            seen.add(adj_id)

        await acquire_period_lock(self.session, str(employee_id), pay_period)
        existing = {
            adj.period_adjustment_id: adj
            for adj in await self.list_period_level_adjustments(employee_id, pay_period)
        }
        unknown = seen - existing.keys()
        if unknown:
            raise AdjustmentNotFound(", ".join(sorted(str(u) for u in unknown)))

        desired_by_id = {
            adj_id: (reason, amount) for adj_id, reason, amount in cleaned if adj_id is not None
        }
        touched = {
            adj_id
            for adj_id, stored in existing.items()
            if desired_by_id.get(adj_id) != (stored.reason, stored.amount)
        }
        locked = touched & await self.consumed_period_adjustment_ids(employee_id, pay_period)
        if locked:
            raise PeriodAdjustmentLocked(locked)

        for adj_id, stored in existing.items():
            if adj_id not in seen:
                await self.session.delete(stored)
                await self._audit_period(stored, "period_adjustment_deleted", actor_employer_id)

        for adj_id, reason, amount in cleaned:
            if adj_id is None:
                created = PeriodAdjustment(
                    employee_id=employee_id,
                    pay_period=pay_period,
                    reason=reason,
                    amount=amount,
                    created_by_employer_id=actor_employer_id,
                )
                self.session.add(created)
                await self.session.flush()
                await self._audit_period(created, "period_adjustment_created", actor_employer_id)
                continue

            stored = existing[adj_id]
            if stored.reason != reason or stored.amount != amount:
                stored.reason = reason
                stored.amount = amount
                await self._audit_period(stored, "period_adjustment_updated", actor_employer_id)

        await self.session.flush()
        logger.info(
            "Saved %d period adjustment(s) for employee %s in %s",
            len(cleaned),
            employee_id,
            pay_period,
        )
        return await self.list_period_level_adjustments(employee_id, pay_period)

    async def _audit_period(
        self, adjustment: PeriodAdjustment, action: str, actor_id: UUID
    ) -> None:
        await record_audit(
            self.session,
            entity_type="period_adjustment",
            entity_id=adjustment.period_adjustment_id,
            action=action,
            actor_id=actor_id,
            after={
                "employee_id": str(adjustment.employee_id),
                "pay_period": adjustment.pay_period,
                "reason": adjustment.reason,
                "amount": str(adjustment.amount),
            },
        )
