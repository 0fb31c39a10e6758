"""CSV export endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Response

from payroll_consolidation.api.dependencies import DbSession
from payroll_consolidation.services.export_service import (
    export_payslips_csv,
    export_records_csv,
)
from payroll_consolidation.services.payslip_service import PayslipService
from payroll_consolidation.services.record_store import RecordStore

router = APIRouter(prefix="/exports", tags=["exports"])


def _csv_response(text: str, filename: str) -> Response:
    return Response(
        content=text.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/records.csv", response_class=Response)
async def export_records(
    db: DbSession,
    employee_id: UUID | None = None,
    pay_period: str | None = None,
    employer_id: UUID | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    kind: str | None = None,
    search: str | None = None,
) -> Response:
    """Download the filtered records in the payroll-office CSV layout."""
    records = await RecordStore(db).list_records(
        employee_id=employee_id,
        pay_period=pay_period,
        employer_id=employer_id,
        status=status_filter,
        kind=kind,
        search=search,
    )
    return _csv_response(export_records_csv(records), f"payroll_{pay_period or 'all'}.csv")


@router.get("/payslips.csv", response_class=Response)
async def export_payslips(
    db: DbSession,
    record_ids: Annotated[list[UUID] | None, Query(alias="record_id")] = None,
    employee_id: UUID | None = None,
    pay_period: str | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> Response:
    """Download payslip figures, typically for the payslips of selected records."""
    payslips = await PayslipService(db).list_payslips(
        employee_id=employee_id,
        pay_period=pay_period,
        status=status_filter,
        record_ids=record_ids,
    )
    return _csv_response(export_payslips_csv(payslips), f"payslips_{pay_period or 'all'}.csv")
