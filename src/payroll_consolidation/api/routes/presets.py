"""Payroll preset endpoints, scoped to the calling employer."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Response, status

from payroll_consolidation.api.dependencies import DbSession, EmployerId
from payroll_consolidation.api.schemas import ErrorResponse, PresetCreate, PresetResponse
from payroll_consolidation.services.preset_service import PresetService

router = APIRouter(prefix="/presets", tags=["presets"])


@router.get("", response_model=list[PresetResponse])
async def list_presets(db: DbSession, employer_id: EmployerId) -> list[PresetResponse]:
    """List the employer's presets by name."""
    presets = await PresetService(db).list_presets(employer_id)
    return [PresetResponse.model_validate(p) for p in presets]


@router.post(
    "",
    response_model=PresetResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def create_preset(
    db: DbSession,
    employer_id: EmployerId,
    payload: PresetCreate,
) -> PresetResponse:
    """Save a named tax/vacation preset."""
    preset = await PresetService(db).create_preset(
        employer_id,
        payload.preset_name,
        payload.tax_percentage,
        payload.apply_vacation_pay,
    )
    await db.commit()
    return PresetResponse.model_validate(preset)


@router.delete(
    "/{preset_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_preset(
    db: DbSession,
    employer_id: EmployerId,
    preset_id: Annotated[UUID, Path()],
) -> Response:
    """Delete one of the employer's presets."""
    await PresetService(db).delete_preset(preset_id, employer_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
