"""Earning record store: intake of completed work items and record reads."""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_consolidation.calculators.pay_calculator import (
    ZERO,
    net_adjustments,
    quantize_guard,
    record_total,
)
from payroll_consolidation.errors import RecordNotFound, RecordValidationError
from payroll_consolidation.models import EarningRecord, RecordKind
from payroll_consolidation.services.audit import record_audit

PAY_PERIOD_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
UUID_RE = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


def validate_pay_period(pay_period: str) -> str:
    """Return ``pay_period`` if it is a ``YYYY-MM`` calendar month."""
    if not isinstance(pay_period, str) or not PAY_PERIOD_RE.match(pay_period):
        raise RecordValidationError(f"pay_period must be YYYY-MM, got {pay_period!r}")
    return pay_period


def pay_period_for(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def _decimal_field(name: str, value: Any, *, required: bool, non_negative: bool = True) -> Decimal | None:
    if value is None:
        if required:
            raise RecordValidationError(f"{name} is required")
        return None
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise RecordValidationError(f"{name} must be numeric, got {value!r}") from e
    if not number.is_finite():
        raise RecordValidationError(f"{name} must be finite")
    if non_negative and number < 0:
        raise RecordValidationError(f"{name} must not be negative")
    return number


class RecordStore:
    """Read surface and intake for earning records.

    Records are created when a work item is completed upstream and are
    never deleted.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_record(
        self,
        *,
        kind: str,
        employee_id: UUID,
        pay_period: str,
        hours_worked: Any = None,
        hourly_rate: Any = None,
        ob_premium_total: Any = None,
        ob_breakdown: dict[str, Any] | None = None,
        agreed_compensation: Any = None,
        employee_name: str | None = None,
        employee_email: str | None = None,
        employer_id: UUID | None = None,
        employer_name: str | None = None,
        work_item_id: UUID | None = None,
        item_date: date | None = None,
        item_title: str | None = None,
    ) -> EarningRecord:
        """Create a pending earning record for a completed work item."""
        if kind not in (RecordKind.SHIFT, RecordKind.ENGAGEMENT):
            raise RecordValidationError(f"kind must be 'shift' or 'engagement', got {kind!r}")
        validate_pay_period(pay_period)

        is_shift = kind == RecordKind.SHIFT
        hours = _decimal_field("hours_worked", hours_worked, required=is_shift)
        rate = _decimal_field("hourly_rate", hourly_rate, required=is_shift)
        ob_total = _decimal_field("ob_premium_total", ob_premium_total, required=False)
        compensation = _decimal_field(
            "agreed_compensation", agreed_compensation, required=not is_shift
        )

        breakdown = None
        if ob_breakdown:
            breakdown = {
                key: str(_decimal_field(f"ob_breakdown.{key}", value, required=True))
                for key, value in ob_breakdown.items()
            }

        record = EarningRecord(
            kind=RecordKind(kind).value,
            employee_id=employee_id,
            pay_period=pay_period,
            hours_worked=hours,
            hourly_rate=rate if is_shift else None,
            ob_premium_total=(ob_total or ZERO) if is_shift else None,
            ob_breakdown=breakdown if is_shift else None,
            agreed_compensation=compensation if not is_shift else None,
            employee_name=employee_name,
            employee_email=employee_email,
            employer_id=employer_id,
            employer_name=employer_name,
            work_item_id=work_item_id,
            item_date=item_date,
            item_title=item_title,
            status="pending",
            adjustments=[],
        )
        record.net_adjustments = quantize_guard(net_adjustments(record))
        record.total_pay = quantize_guard(record_total(record))
        self.session.add(record)
        await self.session.flush()

        await record_audit(
            self.session,
            entity_type="earning_record",
            entity_id=record.earning_record_id,
            action="created",
            after={"kind": record.kind, "total_pay": str(record.total_pay)},
        )
        return record

    async def get_record(self, record_id: UUID, *, for_update: bool = False) -> EarningRecord:
        """Load one record, raising RecordNotFound if it does not exist."""
        records = await self.get_records([record_id], for_update=for_update)
        return records[0]

    async def get_records(
        self, record_ids: Iterable[UUID], *, for_update: bool = False
    ) -> list[EarningRecord]:
        """Load records by id in the order given.

        With ``for_update`` the rows are locked until the transaction ends
        (PostgreSQL; ignored by SQLite).

        Raises:
            RecordNotFound: Listing every id that does not exist.
        """
        ids = list(dict.fromkeys(record_ids))
        if not ids:
            return []
        query = select(EarningRecord).where(EarningRecord.earning_record_id.in_(ids))
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(query)
        found = {r.earning_record_id: r for r in result.scalars().all()}
        missing = [i for i in ids if i not in found]
        if missing:
            raise RecordNotFound(missing)
        return [found[i] for i in ids]

    async def list_records(
        self,
        *,
        employee_id: UUID | None = None,
        pay_period: str | None = None,
        employer_id: UUID | None = None,
        status: str | None = None,
        kind: str | None = None,
        search: str | None = None,
    ) -> list[EarningRecord]:
        """Completed work-item records, newest first.

        ``search`` matches an exact employee id or a case-insensitive
        substring of the employee name.
        """
        query = select(EarningRecord)
        if employee_id is not None:
            query = query.where(EarningRecord.employee_id == employee_id)
        if pay_period:
            query = query.where(EarningRecord.pay_period == validate_pay_period(pay_period))
        if employer_id is not None:
            query = query.where(EarningRecord.employer_id == employer_id)
        if status:
            query = query.where(EarningRecord.status == status)
        if kind:
            query = query.where(EarningRecord.kind == kind)
        if search:
            term = search.strip()
            if UUID_RE.match(term):
                query = query.where(EarningRecord.employee_id == UUID(term))
            else:
                query = query.where(
                    func.lower(EarningRecord.employee_name).contains(term.lower())
                )

        query = query.order_by(
            EarningRecord.pay_period.desc(),
            EarningRecord.created_at.desc(),
            EarningRecord.earning_record_id,
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())
