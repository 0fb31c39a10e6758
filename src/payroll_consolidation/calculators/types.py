"""Type definitions for the consolidation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from payroll_consolidation.calculators.pay_calculator import sum_amounts, to_decimal
from payroll_consolidation.config import DEFAULT_VACATION_RATE


@dataclass(frozen=True)
class AdjustmentLine:
    """A reason + signed amount pair as shown on a summary item."""

    reason: str
    amount: Decimal
    id: UUID | None = None


@dataclass(frozen=True)
class PeriodAdjustmentLine:
    """A period-level adjustment as it entered the summary."""

    reason: str
    amount: Decimal
    id: UUID | None = None


@dataclass(frozen=True)
class ConsolidatedItem:
    """One earning record's line on a consolidated summary."""

    record_id: UUID
    kind: str
    work_item_id: UUID | None
    item_date: date | None
    item_title: str | None
    hours_worked: Decimal
    base_pay: Decimal
    ob_premium: Decimal
    adjustments: tuple[AdjustmentLine, ...]
    net_adjustments: Decimal
    total_pay: Decimal
    created_at: datetime | None = None


@dataclass(frozen=True)
class ConsolidatedPayrollSummary:
    """All earning records of one employee in one pay period.

    ``sub_total`` is always the sum of item totals and ``grand_total`` is
    ``sub_total`` plus the period-level adjustments.
    """

    employee_id: UUID
    pay_period: str
    items: tuple[ConsolidatedItem, ...]
    total_hours: Decimal
    total_base_pay: Decimal
    total_ob: Decimal
    total_item_adjustments: Decimal
    sub_total: Decimal
    ob_breakdown: dict[str, Decimal]
    period_level_adjustments: tuple[PeriodAdjustmentLine, ...]
    total_period_level_adjustments: Decimal
    grand_total: Decimal
    employee_name: str | None = None

    @property
    def record_ids(self) -> list[UUID]:
        return [item.record_id for item in self.items]

    def with_period_level_adjustments(
        self, adjustments: list[Any] | tuple[Any, ...]
    ) -> ConsolidatedPayrollSummary:
        """Swap the period-level adjustments, keeping the item snapshot.

        Only the period totals and the grand total change; items and
        ``sub_total`` are carried over as-is.
        """
        lines = tuple(
            PeriodAdjustmentLine(
                reason=adj.reason,
                amount=to_decimal(adj.amount),
                id=getattr(adj, "id", None),
            )
            for adj in adjustments
        )
        total = sum_amounts(lines)
        return replace(
            self,
            period_level_adjustments=lines,
            total_period_level_adjustments=total,
            grand_total=self.sub_total + total,
        )


@dataclass(frozen=True)
class PayslipConfig:
    """Tax and vacation inputs for the payslip producer."""

    tax_percentage: Decimal
    apply_vacation_pay: bool
    vacation_rate: Decimal = DEFAULT_VACATION_RATE


@dataclass(frozen=True)
class PayslipFigures:
    """Computed payslip amounts before persistence."""

    gross_pay: Decimal
    vacation_pay_added: Decimal
    tax_deducted: Decimal
    net_pay: Decimal
    source_record_ids: list[str] = field(default_factory=list)

    @property
    def reconciles(self) -> bool:
        return self.net_pay == self.gross_pay + self.vacation_pay_added - self.tax_deducted

