"""Payslip read endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query

from payroll_consolidation.api.dependencies import DbSession
from payroll_consolidation.api.schemas import ErrorResponse, PayslipListResponse, PayslipResponse
from payroll_consolidation.services.payslip_service import PayslipService

router = APIRouter(prefix="/payslips", tags=["payslips"])


@router.get("", response_model=PayslipListResponse)
async def list_payslips(
    db: DbSession,
    employee_id: UUID | None = None,
    pay_period: str | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    record_ids: Annotated[list[UUID] | None, Query(alias="record_id")] = None,
) -> PayslipListResponse:
    """List payslips, newest first.

    Repeat ``record_id`` to find the payslips of selected records.
    """
    payslips = await PayslipService(db).list_payslips(
        employee_id=employee_id,
        pay_period=pay_period,
        status=status_filter,
        record_ids=record_ids,
    )
    return PayslipListResponse(
        items=[PayslipResponse.model_validate(p) for p in payslips],
        total=len(payslips),
    )


@router.get(
    "/{payslip_id}",
    response_model=PayslipResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payslip(
    db: DbSession,
    payslip_id: Annotated[UUID, Path()],
) -> PayslipResponse:
    """Get a specific payslip by ID."""
    payslip = await PayslipService(db).get_payslip(payslip_id)
    return PayslipResponse.model_validate(payslip)
