"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from payroll_consolidation.calculators import pay_calculator
from payroll_consolidation.calculators.types import ConsolidatedPayrollSummary


# ============================================================================
# Adjustment schemas
# ============================================================================


class AdjustmentIn(BaseModel):
    """A reason and signed amount; ``id`` selects an existing entry to edit."""

    id: UUID | None = None
    reason: str
    amount: Decimal


class AdjustmentListUpdate(BaseModel):
    """Full desired list of adjustments."""

    adjustments: list[AdjustmentIn] = Field(default_factory=list)


class RecordAdjustmentResponse(BaseModel):
    """Schema for a record-level adjustment."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    position: int
    reason: str
    amount: Decimal


class PeriodAdjustmentResponse(BaseModel):
    """Schema for a period-level adjustment."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employee_id: UUID
    pay_period: str
    reason: str
    amount: Decimal
    created_by_employer_id: UUID | None = None
    created_at: datetime


# ============================================================================
# Earning record schemas
# ============================================================================


class RecordCreate(BaseModel):
    """Schema for registering a completed work item."""

    kind: Literal["shift", "engagement"]
    employee_id: UUID
    pay_period: str
    hours_worked: Decimal | None = None
    hourly_rate: Decimal | None = None
    ob_premium_total: Decimal | None = None
    ob_breakdown: dict[str, Decimal] | None = None
    agreed_compensation: Decimal | None = None
    employee_name: str | None = None
    employee_email: str | None = None
    employer_id: UUID | None = None
    employer_name: str | None = None
    work_item_id: UUID | None = None
    item_date: date | None = None
    item_title: str | None = None


class RecordResponse(BaseModel):
    """Schema for earning record response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    kind: str
    employee_id: UUID
    employee_name: str | None = None
    employee_email: str | None = None
    employer_id: UUID | None = None
    employer_name: str | None = None
    work_item_id: UUID | None = None
    pay_period: str
    item_date: date | None = None
    item_title: str | None = None
    hours_worked: Decimal | None = None
    hourly_rate: Decimal | None = None
    ob_premium_total: Decimal | None = None
    ob_breakdown: dict[str, Decimal] | None = None
    agreed_compensation: Decimal | None = None
    adjustments: list[RecordAdjustmentResponse] = []
    net_adjustments: Decimal
    total_pay: Decimal
    status: str
    processed_at: datetime | None = None
    paid_at: datetime | None = None
    payslip_id: UUID | None = None
    created_at: datetime


class RecordListResponse(BaseModel):
    """Schema for listing earning records."""

    items: list[RecordResponse]
    total: int


class AuditEventResponse(BaseModel):
    """Schema for an audit trail entry."""

    model_config = ConfigDict(from_attributes=True)

    audit_event_id: UUID
    actor_id: UUID | None = None
    action: str
    before_json: dict[str, Any] | None = None
    after_json: dict[str, Any] | None = None
    created_at: datetime


# ============================================================================
# Summary schemas
# ============================================================================


class SummaryAdjustmentLine(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID | None = None
    reason: str
    amount: Decimal


class SummaryItem(BaseModel):
    """One record line on a consolidated summary."""

    model_config = ConfigDict(from_attributes=True)

    record_id: UUID
    kind: str
    work_item_id: UUID | None = None
    item_date: date | None = None
    item_title: str | None = None
    hours_worked: Decimal
    base_pay: Decimal
    ob_premium: Decimal
    adjustments: list[SummaryAdjustmentLine]
    net_adjustments: Decimal
    total_pay: Decimal


class SummaryResponse(BaseModel):
    """Consolidated payroll summary for one employee and pay period."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    employee_name: str | None = None
    pay_period: str
    items: list[SummaryItem]
    total_hours: Decimal
    total_base_pay: Decimal
    total_ob: Decimal
    total_item_adjustments: Decimal
    sub_total: Decimal
    ob_breakdown: dict[str, Decimal]
    ob_labels: list[str] = []
    period_level_adjustments: list[SummaryAdjustmentLine]
    total_period_level_adjustments: Decimal
    grand_total: Decimal

    @classmethod
    def from_summary(cls, summary: ConsolidatedPayrollSummary) -> "SummaryResponse":
        response = cls.model_validate(summary)
        response.ob_labels = pay_calculator.ob_labels(summary.ob_breakdown)
        return response


# ============================================================================
# Payroll transition schemas
# ============================================================================


class ProcessRequest(BaseModel):
    """Schema for processing pending records into a payslip.

    ``tax_percentage`` and ``apply_vacation_pay`` override the preset,
    which overrides the defaults.
    """

    employee_id: UUID
    record_ids: list[UUID]
    preset_id: UUID | None = None
    tax_percentage: Decimal | None = None
    apply_vacation_pay: bool | None = None


class PayRequest(BaseModel):
    record_ids: list[UUID]


class RevertRequest(BaseModel):
    record_ids: list[UUID]
    from_status: Literal["processed", "paid"]


class TransitionResponse(BaseModel):
    """Schema for a bulk status transition."""

    model_config = ConfigDict(from_attributes=True)

    record_ids: list[UUID]
    from_status: str
    to_status: str
    payslip_ids: list[UUID]


# ============================================================================
# Payslip schemas
# ============================================================================


class PayslipResponse(BaseModel):
    """Schema for payslip response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employee_id: UUID
    pay_period: str
    gross_pay: Decimal
    vacation_pay_added: Decimal
    tax_deducted: Decimal
    net_pay: Decimal
    tax_percentage: Decimal
    vacation_rate: Decimal
    source_record_ids: list[UUID]
    period_adjustment_ids: list[UUID] = []
    employee_name: str | None = None
    status: str
    processed_at: datetime
    paid_at: datetime | None = None
    voided_at: datetime | None = None
    created_by_employer_id: UUID | None = None


class PayslipListResponse(BaseModel):
    items: list[PayslipResponse]
    total: int


# ============================================================================
# Preset schemas
# ============================================================================


class PresetCreate(BaseModel):
    """Schema for creating a payroll preset."""

    preset_name: str
    tax_percentage: Decimal
    apply_vacation_pay: bool = False


class PresetResponse(BaseModel):
    """Schema for payroll preset response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employer_id: UUID
    preset_name: str
    tax_percentage: Decimal
    apply_vacation_pay: bool
    created_at: datetime


# ============================================================================
# Employee directory schemas
# ============================================================================


class BankDetailsResponse(BaseModel):
    """Schema for employee bank details."""

    model_config = ConfigDict(from_attributes=True)

    bank_name: str
    clearing_number: str
    account_number: str
    address: str | None = None


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
