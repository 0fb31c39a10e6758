"""Load-and-consolidate orchestration over stored records."""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from payroll_consolidation.calculators.consolidation import consolidate
from payroll_consolidation.calculators.types import ConsolidatedPayrollSummary
from payroll_consolidation.services.adjustment_ledger import AdjustmentLedger
from payroll_consolidation.services.record_store import RecordStore, validate_pay_period


class ConsolidationService:
    """Read-only consolidation for review, export and processing.

    Reads are not serialized against writers; callers re-fetch before any
    bulk action.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.records = RecordStore(session)
        self.ledger = AdjustmentLedger(session)

    async def summarize(
        self,
        employee_id: UUID,
        pay_period: str,
        record_ids: Iterable[UUID] | None = None,
    ) -> ConsolidatedPayrollSummary:
        """Consolidate an employee's period, optionally over a subset of records.

        Raises:
            RecordNotFound: If ``record_ids`` names a missing record.
            EmptyPeriod: If nothing is left to consolidate.
        """
        validate_pay_period(pay_period)
        if record_ids is None:
            records = await self.records.list_records(
                employee_id=employee_id, pay_period=pay_period
            )
        else:
            records = await self.records.get_records(record_ids)

        period_adjustments = await self.ledger.list_period_level_adjustments(
            employee_id, pay_period
        )
        return consolidate(employee_id, pay_period, records, period_adjustments)
