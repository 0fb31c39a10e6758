"""Payslip production from a consolidated summary."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from payroll_consolidation.calculators.pay_calculator import ZERO, quantize_guard, to_decimal
from payroll_consolidation.calculators.types import (
    ConsolidatedPayrollSummary,
    PayslipConfig,
    PayslipFigures,
)
from payroll_consolidation.errors import ConfigValidationError
from payroll_consolidation.models import Payslip

HUNDRED = Decimal("100")


def validate_config(config: PayslipConfig) -> None:
    """Reject out-of-range tax or vacation inputs."""
    tax = to_decimal(config.tax_percentage)
    if not tax.is_finite() or tax < 0 or tax > HUNDRED:
        raise ConfigValidationError(
            f"tax_percentage must be between 0 and 100, got {config.tax_percentage}"
        )
    rate = to_decimal(config.vacation_rate)
    if not rate.is_finite() or rate < 0 or rate > 1:
        raise ConfigValidationError(
            f"vacation_rate must be between 0 and 1, got {config.vacation_rate}"
        )


def compute_figures(
    summary: ConsolidatedPayrollSummary, config: PayslipConfig
) -> PayslipFigures:
    """Compute gross, vacation add-on, tax and net for a summary.

    Gross, vacation pay and tax are fixed to the four-decimal storage
    precision before net is derived, so the figures returned are exactly
    the figures stored and they reconcile.
    """
    validate_config(config)

    gross = quantize_guard(summary.grand_total)
    vacation = (
        quantize_guard(gross * to_decimal(config.vacation_rate))
        if config.apply_vacation_pay
        else ZERO
    )
    tax = quantize_guard((gross + vacation) * to_decimal(config.tax_percentage) / HUNDRED)
    net = gross + vacation - tax

    return PayslipFigures(
        gross_pay=gross,
        vacation_pay_added=vacation,
        tax_deducted=tax,
        net_pay=net,
        source_record_ids=[str(r) for r in summary.record_ids],
    )


def produce(
    summary: ConsolidatedPayrollSummary,
    config: PayslipConfig,
    processed_at: datetime | None = None,
    created_by_employer_id: UUID | None = None,
) -> Payslip:
    """Build an unsaved payslip for ``summary``.

    The caller adds it to the session; its financial fields cannot change
    once flushed.
    """
    figures = compute_figures(summary, config)
    return Payslip(
        employee_id=summary.employee_id,
        pay_period=summary.pay_period,
        gross_pay=figures.gross_pay,
        vacation_pay_added=figures.vacation_pay_added,
        tax_deducted=figures.tax_deducted,
        net_pay=figures.net_pay,
        tax_percentage=to_decimal(config.tax_percentage),
        vacation_rate=to_decimal(config.vacation_rate),
        source_record_ids=figures.source_record_ids,
        period_adjustment_ids=[
            str(adj.id) for adj in summary.period_level_adjustments if adj.id is not None
        ],
        employee_name=summary.employee_name,
        status="processed",
        processed_at=processed_at or datetime.now(timezone.utc),
        created_by_employer_id=created_by_employer_id,
    )
