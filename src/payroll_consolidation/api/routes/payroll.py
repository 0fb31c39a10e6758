"""Bulk payroll status transitions."""

from fastapi import APIRouter, status

from payroll_consolidation.api.dependencies import ActorId, DbSession, Directory
from payroll_consolidation.api.schemas import (
    ErrorResponse,
    PayRequest,
    PayslipResponse,
    ProcessRequest,
    RevertRequest,
    TransitionResponse,
)
from payroll_consolidation.services.preset_service import PresetService
from payroll_consolidation.services.status_lifecycle import StatusLifecycleManager

router = APIRouter(prefix="/payroll", tags=["payroll"])

TRANSITION_ERRORS = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


@router.post(
    "/process",
    response_model=PayslipResponse,
    status_code=status.HTTP_201_CREATED,
    responses=TRANSITION_ERRORS,
)
async def process_records(
    db: DbSession,
    directory: Directory,
    actor_id: ActorId,
    payload: ProcessRequest,
) -> PayslipResponse:
    """Move pending records to processed and produce their payslip."""
    config = await PresetService(db).resolve_config(
        employee_id=payload.employee_id,
        employer_id=actor_id,
        directory=directory,
        preset_id=payload.preset_id,
        tax_percentage=payload.tax_percentage,
        apply_vacation_pay=payload.apply_vacation_pay,
    )
    payslip = await StatusLifecycleManager(db).process_bulk(
        payload.record_ids,
        payload.employee_id,
        config,
        actor_employer_id=actor_id,
    )
    await db.commit()
    return PayslipResponse.model_validate(payslip)


@router.post("/pay", response_model=TransitionResponse, responses=TRANSITION_ERRORS)
async def pay_records(
    db: DbSession,
    actor_id: ActorId,
    payload: PayRequest,
) -> TransitionResponse:
    """Mark processed records as paid."""
    result = await StatusLifecycleManager(db).pay_bulk(payload.record_ids, actor_id=actor_id)
    await db.commit()
    return TransitionResponse.model_validate(result)


@router.post("/revert", response_model=TransitionResponse, responses=TRANSITION_ERRORS)
async def revert_records(
    db: DbSession,
    actor_id: ActorId,
    payload: RevertRequest,
) -> TransitionResponse:
    """Step records back one status (paid to processed, processed to pending)."""
    result = await StatusLifecycleManager(db).revert_bulk(
        payload.record_ids, payload.from_status, actor_id=actor_id
    )
    await db.commit()
    return TransitionResponse.model_validate(result)
