"""Payslip reads."""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_consolidation.errors import PayslipNotFound
from payroll_consolidation.models import EarningRecord, Payslip
from payroll_consolidation.services.record_store import validate_pay_period


class PayslipService:
    """Read access to produced payslips. Writes go through the lifecycle manager."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_payslip(self, payslip_id: UUID) -> Payslip:
        payslip = await self.session.get(Payslip, payslip_id)
        if payslip is None:
            raise PayslipNotFound(payslip_id)
        return payslip

    async def list_payslips(
        self,
        *,
        employee_id: UUID | None = None,
        pay_period: str | None = None,
        status: str | None = None,
        record_ids: Iterable[UUID] | None = None,
    ) -> list[Payslip]:
        """Payslips newest first, optionally filtered.

        ``record_ids`` keeps the payslips those records are currently
        attached to, so only processed and paid records contribute.
        """
        query = select(Payslip)
        if employee_id is not None:
            query = query.where(Payslip.employee_id == employee_id)
        if pay_period:
            query = query.where(Payslip.pay_period == validate_pay_period(pay_period))
        if status:
            query = query.where(Payslip.status == status)
        if record_ids is not None:
            query = query.where(
                Payslip.payslip_id.in_(
                    select(EarningRecord.payslip_id).where(
                        EarningRecord.earning_record_id.in_(list(record_ids)),
                        EarningRecord.payslip_id.is_not(None),
                    )
                )
            )
        query = query.order_by(Payslip.processed_at.desc(), Payslip.payslip_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())
