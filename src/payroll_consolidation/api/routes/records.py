"""Earning record and record-level adjustment endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from payroll_consolidation.api.dependencies import ActorId, DbSession
from payroll_consolidation.api.schemas import (
    AdjustmentIn,
    AdjustmentListUpdate,
    AuditEventResponse,
    ErrorResponse,
    RecordCreate,
    RecordListResponse,
    RecordResponse,
)
from payroll_consolidation.services.adjustment_ledger import AdjustmentInput, AdjustmentLedger
from payroll_consolidation.services.audit import list_audit_events
from payroll_consolidation.services.record_store import RecordStore

router = APIRouter(prefix="/records", tags=["records"])


def _to_input(adjustment: AdjustmentIn) -> AdjustmentInput:
    return AdjustmentInput(reason=adjustment.reason, amount=adjustment.amount, id=adjustment.id)


# ============================================================================
# Records
# ============================================================================


@router.post(
    "",
    response_model=RecordResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
)
async def create_record(db: DbSession, payload: RecordCreate) -> RecordResponse:
    """Register a completed shift or engagement as a pending earning record."""
    record = await RecordStore(db).create_record(**payload.model_dump())
    await db.commit()
    return RecordResponse.model_validate(record)


@router.get("", response_model=RecordListResponse)
async def list_records(
    db: DbSession,
    employee_id: UUID | None = None,
    pay_period: str | None = None,
    employer_id: UUID | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    kind: str | None = None,
    search: str | None = None,
) -> RecordListResponse:
    """List earning records with optional filters, newest first."""
    records = await RecordStore(db).list_records(
        employee_id=employee_id,
        pay_period=pay_period,
        employer_id=employer_id,
        status=status_filter,
        kind=kind,
        search=search,
    )
    return RecordListResponse(
        items=[RecordResponse.model_validate(r) for r in records],
        total=len(records),
    )


@router.get(
    "/{record_id}",
    response_model=RecordResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_record(
    db: DbSession,
    record_id: Annotated[UUID, Path()],
) -> RecordResponse:
    """Get a specific earning record by ID."""
    record = await RecordStore(db).get_record(record_id)
    return RecordResponse.model_validate(record)


@router.get(
    "/{record_id}/audit",
    response_model=list[AuditEventResponse],
    responses={404: {"model": ErrorResponse}},
)
async def get_record_audit(
    db: DbSession,
    record_id: Annotated[UUID, Path()],
) -> list[AuditEventResponse]:
    """Audit trail of a record, oldest first."""
    await RecordStore(db).get_record(record_id)
    events = await list_audit_events(db, "earning_record", record_id)
    return [AuditEventResponse.model_validate(e) for e in events]


# ============================================================================
# Record-level adjustments
# ============================================================================


@router.post(
    "/{record_id}/adjustments",
    response_model=RecordResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def add_or_update_adjustment(
    db: DbSession,
    actor_id: ActorId,
    record_id: Annotated[UUID, Path()],
    payload: AdjustmentIn,
) -> RecordResponse:
    """Append an adjustment, or edit the one named by ``id``."""
    record = await AdjustmentLedger(db).add_or_update_record_adjustment(
        record_id, _to_input(payload), actor_id=actor_id
    )
    await db.commit()
    return RecordResponse.model_validate(record)


@router.put(
    "/{record_id}/adjustments",
    response_model=RecordResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def replace_adjustments(
    db: DbSession,
    actor_id: ActorId,
    record_id: Annotated[UUID, Path()],
    payload: AdjustmentListUpdate,
) -> RecordResponse:
    """Replace the record's whole adjustment list."""
    record = await AdjustmentLedger(db).replace_record_adjustments(
        record_id, [_to_input(a) for a in payload.adjustments], actor_id=actor_id
    )
    await db.commit()
    return RecordResponse.model_validate(record)


@router.delete(
    "/{record_id}/adjustments/{index_or_id}",
    response_model=RecordResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def remove_adjustment(
    db: DbSession,
    actor_id: ActorId,
    record_id: Annotated[UUID, Path()],
    index_or_id: Annotated[str, Path()],
) -> RecordResponse:
    """Remove an adjustment by list position or by adjustment ID."""
    record = await AdjustmentLedger(db).remove_record_adjustment(
        record_id, index_or_id, actor_id=actor_id
    )
    await db.commit()
    return RecordResponse.model_validate(record)
