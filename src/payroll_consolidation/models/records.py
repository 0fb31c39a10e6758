"""Earning record, record adjustment and period-level adjustment models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_consolidation.models.base import Base, JSONType, TimestampMixin, utcnow

# Fixed-point storage: two decimals for display plus two guard digits
Money = Numeric(14, 4)
Hours = Numeric(10, 4)


class RecordKind(str, Enum):
    """Earning record variants."""

    SHIFT = "shift"
    ENGAGEMENT = "engagement"


class EarningRecord(Base, TimestampMixin):
    """Earnings for one completed shift or engagement.

    The work-item fields are an immutable fact supplied when the work item is
    completed. ``net_adjustments`` and ``total_pay`` are cached values that
    are rebuilt from the base fields on every adjustment write.
    """

    __tablename__ = "earning_record"

    earning_record_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    kind: Mapped[str] = mapped_column(String, nullable=False)
    employee_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False)
    employee_name: Mapped[str | None] = mapped_column(String, nullable=True)
    employee_email: Mapped[str | None] = mapped_column(String, nullable=True)
    employer_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    employer_name: Mapped[str | None] = mapped_column(String, nullable=True)
    work_item_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    pay_period: Mapped[str] = mapped_column(String(7), nullable=False)
    item_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    item_title: Mapped[str | None] = mapped_column(String, nullable=True)

    # Shift variant
    hours_worked: Mapped[Decimal | None] = mapped_column(Hours, nullable=True)
    hourly_rate: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    ob_premium_total: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    ob_breakdown: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)

    # Engagement variant
    agreed_compensation: Mapped[Decimal | None] = mapped_column(Money, nullable=True)

    # Cached derived values
    net_adjustments: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    total_pay: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))

    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    payslip_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("payslip.payslip_id"),
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint("kind IN ('shift', 'engagement')", name="earning_record_kind_check"),
        CheckConstraint(
            "status IN ('pending', 'processed', 'paid')",
            name="earning_record_status_check",
        ),
        CheckConstraint(
            "kind <> 'shift' OR (hours_worked IS NOT NULL AND hourly_rate IS NOT NULL)",
            name="earning_record_shift_fields_check",
        ),
        CheckConstraint(
            "kind <> 'engagement' OR agreed_compensation IS NOT NULL",
            name="earning_record_engagement_fields_check",
        ),
        Index("ix_earning_record_employee_period", "employee_id", "pay_period"),
    )

    adjustments: Mapped[list[RecordAdjustment]] = relationship(
        back_populates="record",
        order_by="RecordAdjustment.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def id(self) -> UUID:
        return self.earning_record_id

    @property
    def is_shift(self) -> bool:
        return self.kind == RecordKind.SHIFT


class RecordAdjustment(Base, TimestampMixin):
    """One ad-hoc correction attached to an earning record."""

    __tablename__ = "record_adjustment"

    record_adjustment_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    earning_record_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("earning_record.earning_record_id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)

    record: Mapped[EarningRecord] = relationship(back_populates="adjustments")

    @property
    def id(self) -> UUID:
        return self.record_adjustment_id


class PeriodAdjustment(Base, TimestampMixin):
    """Correction to an employee's whole pay period, not tied to any record."""

    __tablename__ = "period_adjustment"

    period_adjustment_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    employee_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False)
    pay_period: Mapped[str] = mapped_column(String(7), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    created_by_employer_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        onupdate=utcnow,
    )

    __table_args__ = (
        Index("ix_period_adjustment_employee_period", "employee_id", "pay_period"),
    )

    @property
    def id(self) -> UUID:
        return self.period_adjustment_id
