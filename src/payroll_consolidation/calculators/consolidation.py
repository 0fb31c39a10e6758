"""Consolidation of one employee's earning records for one pay period."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import date
from typing import Any
from uuid import UUID

from payroll_consolidation.calculators.pay_calculator import (
    ZERO,
    base_pay,
    hours_for,
    merge_ob_breakdowns,
    net_adjustments,
    ob_premium,
    quantize_guard,
    to_decimal,
)
from payroll_consolidation.calculators.types import (
    AdjustmentLine,
    ConsolidatedItem,
    ConsolidatedPayrollSummary,
)
from payroll_consolidation.errors import EmptyPeriod

logger = logging.getLogger(__name__)


def _sort_key(record: Any) -> tuple[date, float, str]:
    created = record.created_at.timestamp() if record.created_at else float("inf")
    return (record.item_date or date.max, created, str(record.id))


def build_item(record: Any) -> ConsolidatedItem:
    """Build the audit line for one record from its source fields.

    A cached ``net_adjustments``/``total_pay`` that disagrees with the fresh
    figures is logged; the fresh figures are used.
    """
    base = base_pay(record)
    ob = ob_premium(record)
    net = net_adjustments(record)
    total = base + ob + net

    cached_net = getattr(record, "net_adjustments", None)
    cached_total = getattr(record, "total_pay", None)
    if (cached_net is not None and to_decimal(cached_net) != quantize_guard(net)) or (
        cached_total is not None and to_decimal(cached_total) != quantize_guard(total)
    ):
        logger.warning(
            "Cached totals for record %s are stale (net %s/%s, total %s/%s); "
            "using recomputed values",
            record.id,
            cached_net,
            net,
            cached_total,
            total,
        )

    return ConsolidatedItem(
        record_id=record.id,
        kind=str(getattr(record.kind, "value", record.kind)),
        work_item_id=record.work_item_id,
        item_date=record.item_date,
        item_title=record.item_title,
        hours_worked=hours_for(record),
        base_pay=base,
        ob_premium=ob,
        adjustments=tuple(
            AdjustmentLine(reason=adj.reason, amount=to_decimal(adj.amount), id=adj.id)
            for adj in record.adjustments or []
        ),
        net_adjustments=net,
        total_pay=total,
        created_at=record.created_at,
    )


def consolidate(
    employee_id: UUID,
    pay_period: str,
    records: Iterable[Any],
    period_level_adjustments: Sequence[Any] = (),
) -> ConsolidatedPayrollSummary:
    """Merge an employee's records for a pay period into one summary.

    Records for other employees or periods are ignored.

    Raises:
        EmptyPeriod: If no record matches the employee and period.
    """
    matching = sorted(
        (r for r in records if r.employee_id == employee_id and r.pay_period == pay_period),
        key=_sort_key,
    )
    if not matching:
        raise EmptyPeriod(employee_id, pay_period)

    items = tuple(build_item(r) for r in matching)

    total_hours = sum((i.hours_worked for i in items), ZERO)
    total_base = sum((i.base_pay for i in items), ZERO)
    total_ob = sum((i.ob_premium for i in items), ZERO)
    total_item_adjustments = sum((i.net_adjustments for i in items), ZERO)
    sub_total = sum((i.total_pay for i in items), ZERO)

    employee_name = next((r.employee_name for r in matching if r.employee_name), None)

    summary = ConsolidatedPayrollSummary(
        employee_id=employee_id,
        pay_period=pay_period,
        items=items,
        total_hours=total_hours,
        total_base_pay=total_base,
        total_ob=total_ob,
        total_item_adjustments=total_item_adjustments,
        sub_total=sub_total,
        ob_breakdown=merge_ob_breakdowns(
            r.ob_breakdown for r in matching if r.kind == "shift"
        ),
        period_level_adjustments=(),
        total_period_level_adjustments=ZERO,
        grand_total=sub_total,
        employee_name=employee_name,
    )
    return summary.with_period_level_adjustments(list(period_level_adjustments))
