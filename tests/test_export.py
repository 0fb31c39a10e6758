"""Tests for the payroll-office CSV export."""

import csv
import io
import json
from datetime import date
from decimal import Decimal
from uuid import uuid4

from payroll_consolidation.calculators.types import PayslipConfig
from payroll_consolidation.services.adjustment_ledger import AdjustmentInput, AdjustmentLedger
from payroll_consolidation.services.export_service import (
    CSV_COLUMNS,
    PAYSLIP_CSV_COLUMNS,
    export_payslips_csv,
    export_records_csv,
)
from payroll_consolidation.services.payslip_service import PayslipService
from payroll_consolidation.services.status_lifecycle import StatusLifecycleManager


def parse(text: str) -> list[dict[str, str]]:
    assert text.startswith("\ufeff")
    return list(csv.DictReader(io.StringIO(text[1:])))


class TestExportRecordsCsv:
    """Column layout and formatting."""

    def test_header_order(self):
        text = export_records_csv([])

        assert text == "\ufeff" + ",".join(CSV_COLUMNS) + "\n"
        assert CSV_COLUMNS[0] == "Record ID"
        assert CSV_COLUMNS[-1] == "Processed At"
        assert len(CSV_COLUMNS) == 20

    async def test_shift_row(self, session, make_shift):
        record = await make_shift(item_date=date(2024, 5, 17))
        record = await AdjustmentLedger(session).add_or_update_record_adjustment(
            record.id, AdjustmentInput("Travel bonus", "500")
        )

        (row,) = parse(export_records_csv([record]))

        assert row["Record ID"] == str(record.id)
        assert row["Record Type"] == "shift"
        assert row["Item Date"] == "2024-05-17"
        assert row["Hours Worked"] == "8.00"
        assert row["Base Rate"] == "200.00"
        assert row["Agreed Compensation"] == ""
        assert row["OB Premium Total"] == "150.00"
        assert json.loads(row["OB Details"]) == {"ob_75_hours": "3.5"}
        assert row["Net Adjustments"] == "500.00"
        assert json.loads(row["Adjustment Details"]) == [
            {"reason": "Travel bonus", "amount": "500.00"}
        ]
        assert row["Total Pay"] == "2250.00"
        assert row["Status"] == "pending"
        assert row["Processed At"] == ""

    async def test_engagement_row(self, make_engagement):
        record = await make_engagement()

        (row,) = parse(export_records_csv([record]))

        assert row["Record Type"] == "engagement"
        assert row["Base Rate"] == ""
        assert row["Agreed Compensation"] == "1800.00"
        assert row["Hours Worked"] == "0.00"
        assert row["OB Premium Total"] == "0.00"
        assert row["Total Pay"] == "1800.00"

    async def test_quotes_and_commas_are_escaped(self, make_shift):
        record = await make_shift(employee_name='Berg, Alva "Al"', item_title="Night, ward 3")

        text = export_records_csv([record])

        assert '"Berg, Alva ""Al"""' in text
        (row,) = parse(text)
        assert row["Employee Name"] == 'Berg, Alva "Al"'
        assert row["Item Title"] == "Night, ward 3"


class TestExportPayslipsCsv:
    """Payslip figures for the records a user selected."""

    async def test_payslips_found_by_record(self, session, make_shift, employee_id):
        manager = StatusLifecycleManager(session)
        config = PayslipConfig(tax_percentage=Decimal("30"), apply_vacation_pay=True)
        first = await make_shift()
        second = await make_shift()
        unrelated = await make_shift(employee_id=uuid4())
        pending = await make_shift()
        may = await manager.process_bulk([first.id, second.id], employee_id, config)
        await manager.process_bulk([unrelated.id], unrelated.employee_id, config)

        payslips = await PayslipService(session).list_payslips(
            record_ids=[first.id, pending.id]
        )

        assert [p.id for p in payslips] == [may.id]
        assert await PayslipService(session).list_payslips(record_ids=[pending.id]) == []

    async def test_payslip_row(self, session, make_shift, employee_id):
        record = await make_shift()
        payslip = await StatusLifecycleManager(session).process_bulk(
            [record.id],
            employee_id,
            PayslipConfig(tax_percentage=Decimal("30"), apply_vacation_pay=True),
        )

        text = export_payslips_csv([payslip])

        assert text.startswith("\ufeff" + ",".join(PAYSLIP_CSV_COLUMNS) + "\n")
        (row,) = parse(text)
        assert row["Payslip ID"] == str(payslip.id)
        assert row["Employee Name"] == "Alva Berg"
        assert row["Pay Period"] == "2024-05"
        assert row["Gross Pay"] == "1750.00"
        assert row["Vacation Pay"] == "210.00"
        assert row["Tax Deducted"] == "588.00"
        assert row["Net Pay"] == "1372.00"
        assert row["Status"] == "processed"

    def test_empty_payslip_export_has_header(self):
        assert export_payslips_csv([]) == "\ufeff" + ",".join(PAYSLIP_CSV_COLUMNS) + "\n"
