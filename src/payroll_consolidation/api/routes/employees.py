"""Per-employee endpoints: period adjustments, summaries and bank details."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query

from payroll_consolidation.api.dependencies import DbSession, Directory, EmployerId
from payroll_consolidation.api.schemas import (
    AdjustmentListUpdate,
    BankDetailsResponse,
    ErrorResponse,
    PeriodAdjustmentResponse,
    SummaryResponse,
)
from payroll_consolidation.errors import NotFoundError
from payroll_consolidation.services.adjustment_ledger import AdjustmentInput, AdjustmentLedger
from payroll_consolidation.services.consolidation_service import ConsolidationService

router = APIRouter(prefix="/employees", tags=["employees"])

PayPeriod = Annotated[str, Path(pattern=r"^\d{4}-(0[1-9]|1[0-2])$")]


@router.get(
    "/{employee_id}/periods/{pay_period}/adjustments",
    response_model=list[PeriodAdjustmentResponse],
)
async def list_period_adjustments(
    db: DbSession,
    employee_id: Annotated[UUID, Path()],
    pay_period: PayPeriod,
) -> list[PeriodAdjustmentResponse]:
    """Period-level adjustments for an employee, oldest first."""
    adjustments = await AdjustmentLedger(db).list_period_level_adjustments(
        employee_id, pay_period
    )
    return [PeriodAdjustmentResponse.model_validate(a) for a in adjustments]


@router.put(
    "/{employee_id}/periods/{pay_period}/adjustments",
    response_model=list[PeriodAdjustmentResponse],
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def save_period_adjustments(
    db: DbSession,
    employer_id: EmployerId,
    employee_id: Annotated[UUID, Path()],
    pay_period: PayPeriod,
    payload: AdjustmentListUpdate,
) -> list[PeriodAdjustmentResponse]:
    """Replace the period-level adjustments with the submitted list.

    Entries without an ``id`` are created; stored entries missing from the
    list are deleted.
    """
    saved = await AdjustmentLedger(db).upsert_period_level_adjustments(
        employee_id,
        pay_period,
        [AdjustmentInput(reason=a.reason, amount=a.amount, id=a.id) for a in payload.adjustments],
        actor_employer_id=employer_id,
    )
    await db.commit()
    return [PeriodAdjustmentResponse.model_validate(a) for a in saved]


@router.get(
    "/{employee_id}/periods/{pay_period}/summary",
    response_model=SummaryResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def get_summary(
    db: DbSession,
    employee_id: Annotated[UUID, Path()],
    pay_period: PayPeriod,
    record_ids: Annotated[list[UUID] | None, Query()] = None,
) -> SummaryResponse:
    """Consolidated summary of the period, optionally over selected records."""
    summary = await ConsolidationService(db).summarize(employee_id, pay_period, record_ids)
    return SummaryResponse.from_summary(summary)


@router.get(
    "/{employee_id}/bank-details",
    response_model=BankDetailsResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_bank_details(
    directory: Directory,
    employee_id: Annotated[UUID, Path()],
) -> BankDetailsResponse:
    """Bank details for the transfer of an employee's net pay."""
    details = directory.get_employee_bank_details(employee_id)
    if details is None:
        raise NotFoundError("Bank details for employee", employee_id)
    return BankDetailsResponse.model_validate(details)
