"""Bulk status transitions for earning records."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_consolidation.calculators.consolidation import consolidate
from payroll_consolidation.calculators.payslip_producer import produce
from payroll_consolidation.calculators.types import PayslipConfig
from payroll_consolidation.database import acquire_period_lock
from payroll_consolidation.errors import (
    EmptySelection,
    MixedEmployeeSelection,
    MixedPeriodSelection,
    PartialPayslipSelection,
    StaleSelectionError,
)
from payroll_consolidation.models import EarningRecord, Payslip
from payroll_consolidation.services.adjustment_ledger import AdjustmentLedger
from payroll_consolidation.services.audit import record_audit
from payroll_consolidation.services.record_store import RecordStore
from payroll_consolidation.services.state_machine import (
    PayslipStatus,
    RecordStateMachine,
    RecordStatus,
)

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    """Outcome of one bulk transition."""

    record_ids: list[UUID]
    from_status: str
    to_status: str
    payslip_ids: list[UUID] = field(default_factory=list)


class StatusLifecycleManager:
    """The only mutator of earning record status.

    Operations:
    - process_bulk: pending → processed, creating one payslip
    - pay_bulk: processed → paid
    - revert_bulk: paid → processed, or processed → pending (voids the payslip)

    Each call is all-or-nothing over its selection. Preconditions are
    checked on freshly loaded, row-locked records before anything is
    written, and every write is a conditional update whose row count must
    match the selection. A mismatch raises StaleSelectionError and the
    caller's unit of work must be rolled back.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.records = RecordStore(session)
        self.ledger = AdjustmentLedger(session)

    async def process_bulk(
        self,
        record_ids: Iterable[UUID],
        employee_id: UUID,
        config: PayslipConfig,
        actor_employer_id: UUID | None = None,
    ) -> Payslip:
        """Consolidate exactly ``record_ids`` into a new payslip.

        A period may hold several live payslips for the same employee, for
        example when a late shift is processed after the first payslip was
        paid. Each period-level adjustment is counted on the first live
        payslip produced after it was saved and skipped by later ones.

        Raises:
            EmptySelection, RecordNotFound, MixedEmployeeSelection,
            MixedPeriodSelection, NonHomogeneousSelection,
            ConfigValidationError, StaleSelectionError
        """
        ids = self._selection(record_ids)
        records = await self.records.get_records(ids, for_update=True)

        employees = {r.employee_id for r in records}
        if employees != {employee_id}:
            raise MixedEmployeeSelection(employee_id, employees)
        periods = {r.pay_period for r in records}
        if len(periods) > 1:
            raise MixedPeriodSelection(periods)
        pay_period = periods.pop()

        RecordStateMachine.validate_selection(
            records, RecordStatus.PENDING, RecordStatus.PROCESSED
        )

        await acquire_period_lock(self.session, str(employee_id), pay_period)

        for record in records:
            self.ledger.heal_if_stale(record)
        period_adjustments = await self.ledger.open_period_level_adjustments(
            employee_id, pay_period
        )
        summary = consolidate(employee_id, pay_period, records, period_adjustments)

        now = datetime.now(timezone.utc)
        payslip = produce(summary, config, processed_at=now, created_by_employer_id=actor_employer_id)
        self.session.add(payslip)
        await self.session.flush()

        await self._conditional_update(
            ids,
            RecordStatus.PENDING,
            status=RecordStatus.PROCESSED.value,
            processed_at=now,
            payslip_id=payslip.payslip_id,
        )

        await record_audit(
            self.session,
            entity_type="payslip",
            entity_id=payslip.payslip_id,
            action="created",
            actor_id=actor_employer_id,
            after={
                "gross_pay": str(payslip.gross_pay),
                "vacation_pay_added": str(payslip.vacation_pay_added),
                "tax_deducted": str(payslip.tax_deducted),
                "net_pay": str(payslip.net_pay),
                "source_record_ids": payslip.source_record_ids,
                "period_adjustment_ids": payslip.period_adjustment_ids,
            },
        )
        await self._audit_records(ids, RecordStatus.PENDING, RecordStatus.PROCESSED, actor_employer_id)
        await self.session.flush()

        logger.info(
            "Processed %d record(s) for employee %s in %s into payslip %s (net %s)",
            len(ids),
            employee_id,
            pay_period,
            payslip.payslip_id,
            payslip.net_pay,
        )
        return payslip

    async def pay_bulk(
        self, record_ids: Iterable[UUID], actor_id: UUID | None = None
    ) -> TransitionResult:
        """Mark processed records as paid.

        A payslip turns ``paid`` once every one of its source records is paid.
        """
        ids = self._selection(record_ids)
        records = await self.records.get_records(ids, for_update=True)
        RecordStateMachine.validate_selection(records, RecordStatus.PROCESSED, RecordStatus.PAID)

        now = datetime.now(timezone.utc)
        await self._conditional_update(
            ids, RecordStatus.PROCESSED, status=RecordStatus.PAID.value, paid_at=now
        )

        payslip_ids = self._payslip_ids(records)
        for payslip in await self._load_payslips(payslip_ids):
            if await self._count_unpaid(payslip.payslip_id) == 0:
                payslip.status = PayslipStatus.PAID.value
                payslip.paid_at = now
                await record_audit(
                    self.session,
                    entity_type="payslip",
                    entity_id=payslip.payslip_id,
                    action="status_change:processed:paid",
                    actor_id=actor_id,
                )

        await self._audit_records(ids, RecordStatus.PROCESSED, RecordStatus.PAID, actor_id)
        await self.session.flush()
        logger.info("Paid %d record(s)", len(ids))
        return TransitionResult(ids, RecordStatus.PROCESSED.value, RecordStatus.PAID.value, payslip_ids)

    async def revert_bulk(
        self,
        record_ids: Iterable[UUID],
        from_status: str,
        actor_id: UUID | None = None,
    ) -> TransitionResult:
        """Step records back one status.

        ``paid → processed`` clears ``paid_at`` and reopens the payslip.
        ``processed → pending`` clears ``processed_at`` and voids the
        payslip; the selection must then include every record on it.
        """
        ids = self._selection(record_ids)
        to_status = RecordStatus(RecordStateMachine.reversal_target(from_status)).value
        from_status = RecordStatus(from_status).value
        records = await self.records.get_records(ids, for_update=True)
        RecordStateMachine.validate_selection(records, from_status, to_status)

        payslip_ids = self._payslip_ids(records)
        payslips = await self._load_payslips(payslip_ids)
        now = datetime.now(timezone.utc)

        if to_status == RecordStatus.PENDING.value:
            selected = set(ids)
            for payslip in payslips:
                missing = payslip.source_ids - selected
                if missing:
                    raise PartialPayslipSelection(payslip.payslip_id, missing)

            await self._conditional_update(
                ids,
                RecordStatus.PROCESSED,
                status=RecordStatus.PENDING.value,
                processed_at=None,
                payslip_id=None,
            )
            for payslip in payslips:
                payslip.status = PayslipStatus.VOID.value
                payslip.voided_at = now
                await record_audit(
                    self.session,
                    entity_type="payslip",
                    entity_id=payslip.payslip_id,
                    action="voided",
                    actor_id=actor_id,
                )
        else:
            await self._conditional_update(
                ids, RecordStatus.PAID, status=RecordStatus.PROCESSED.value, paid_at=None
            )
            for payslip in payslips:
                if payslip.status == PayslipStatus.PAID:
                    payslip.status = PayslipStatus.PROCESSED.value
                    payslip.paid_at = None
                    await record_audit(
                        self.session,
                        entity_type="payslip",
                        entity_id=payslip.payslip_id,
                        action="status_change:paid:processed",
                        actor_id=actor_id,
                    )

        await self._audit_records(ids, from_status, to_status, actor_id)
        await self.session.flush()
        logger.info("Reverted %d record(s) from %s to %s", len(ids), from_status, to_status)
        return TransitionResult(ids, from_status, to_status, payslip_ids)

    @staticmethod
    def _selection(record_ids: Iterable[UUID]) -> list[UUID]:
        ids = list(dict.fromkeys(record_ids))
        if not ids:
            raise EmptySelection()
        return ids

    @staticmethod
    def _payslip_ids(records: Sequence[EarningRecord]) -> list[UUID]:
        return list(dict.fromkeys(r.payslip_id for r in records if r.payslip_id is not None))

    async def _conditional_update(
        self, ids: list[UUID], expected_status: str, **values: object
    ) -> None:
        result = await self.session.execute(
            update(EarningRecord)
            .where(
                EarningRecord.earning_record_id.in_(ids),
                EarningRecord.status == RecordStatus(expected_status).value,
            )
            .values(**values)
        )
        if result.rowcount != len(ids):
            raise StaleSelectionError(len(ids), result.rowcount)

    async def _load_payslips(self, payslip_ids: list[UUID]) -> list[Payslip]:
        if not payslip_ids:
            return []
        result = await self.session.execute(
            select(Payslip).where(Payslip.payslip_id.in_(payslip_ids)).with_for_update()
        )
        return list(result.scalars().all())

    async def _count_unpaid(self, payslip_id: UUID) -> int:
        count = await self.session.scalar(
            select(func.count())
            .select_from(EarningRecord)
            .where(
                EarningRecord.payslip_id == payslip_id,
                EarningRecord.status != RecordStatus.PAID.value,
            )
        )
        return count or 0

    async def _audit_records(
        self,
        ids: list[UUID],
        from_status: str,
        to_status: str,
        actor_id: UUID | None,
    ) -> None:
        action = f"status_change:{RecordStatus(from_status).value}:{RecordStatus(to_status).value}"
        for record_id in ids:
            await record_audit(
                self.session,
                entity_type="earning_record",
                entity_id=record_id,
                action=action,
                actor_id=actor_id,
            )
