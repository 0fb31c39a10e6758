"""Payslip snapshot and payroll preset models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Numeric,
    String,
    UniqueConstraint,
    event,
    inspect,
)
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from payroll_consolidation.errors import PayslipImmutableError
from payroll_consolidation.models.base import Base, JSONType, TimestampMixin
from payroll_consolidation.models.records import Money

Rate = Numeric(9, 6)


class Payslip(Base, TimestampMixin):
    """Immutable financial snapshot of one processed consolidation.

    Only the lifecycle columns (status and its timestamps) change after
    creation. Corrections go through revert and reprocess.
    """

    __tablename__ = "payslip"

    FINANCIAL_FIELDS = (
        "employee_id",
        "pay_period",
        "gross_pay",
        "vacation_pay_added",
        "tax_deducted",
        "net_pay",
        "tax_percentage",
        "vacation_rate",
        "source_record_ids",
        "period_adjustment_ids",
    )

    payslip_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    employee_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False)
    pay_period: Mapped[str] = mapped_column(String(7), nullable=False)
    gross_pay: Mapped[Decimal] = mapped_column(Money, nullable=False)
    vacation_pay_added: Mapped[Decimal] = mapped_column(Money, nullable=False)
    tax_deducted: Mapped[Decimal] = mapped_column(Money, nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(Money, nullable=False)
    tax_percentage: Mapped[Decimal] = mapped_column(Rate, nullable=False)
    vacation_rate: Mapped[Decimal] = mapped_column(Rate, nullable=False)
    source_record_ids: Mapped[list[str]] = mapped_column(JSONType, nullable=False)
    # Period-level adjustments counted in gross; each is counted on one live payslip
    period_adjustment_ids: Mapped[list[str]] = mapped_column(
        JSONType, nullable=False, default=list
    )
    employee_name: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="processed")
    processed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    voided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by_employer_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True), nullable=True
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('processed', 'paid', 'void')",
            name="payslip_status_check",
        ),
    )

    @property
    def id(self) -> UUID:
        return self.payslip_id

    @property
    def source_ids(self) -> set[UUID]:
        return {UUID(r) for r in self.source_record_ids}

    @property
    def consumed_adjustment_ids(self) -> set[UUID]:
        return {UUID(a) for a in self.period_adjustment_ids or ()}


@event.listens_for(Payslip, "before_update")
def _reject_financial_changes(mapper: Any, connection: Any, target: Payslip) -> None:
    state = inspect(target)
    changed = [
        name
        for name in Payslip.FINANCIAL_FIELDS
        if state.attrs[name].history.has_changes()
    ]
    if changed:
        raise PayslipImmutableError(target.payslip_id, changed)


class PayrollPreset(Base, TimestampMixin):
    """Named tax/vacation shortcut for an employer."""

    __tablename__ = "payroll_preset"

    payroll_preset_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    employer_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False)
    preset_name: Mapped[str] = mapped_column(String, nullable=False)
    tax_percentage: Mapped[Decimal] = mapped_column(Rate, nullable=False)
    apply_vacation_pay: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        UniqueConstraint("employer_id", "preset_name", name="unique_preset_name_for_employer"),
        CheckConstraint(
            "tax_percentage >= 0 AND tax_percentage <= 100",
            name="payroll_preset_tax_range",
        ),
    )

    @property
    def id(self) -> UUID:
        return self.payroll_preset_id
