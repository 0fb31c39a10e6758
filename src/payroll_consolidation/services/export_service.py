"""CSV exports of earning records and payslips for payroll-office import."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Iterable
from typing import Any

from payroll_consolidation.calculators.pay_calculator import quantize_money
from payroll_consolidation.models import EarningRecord, Payslip

# Column order is fixed; the payroll office imports by position.
CSV_COLUMNS = [
    "Record ID",
    "Record Type",
    "Employee Name",
    "Employee ID",
    "Email",
    "Pay Period",
    "Item Date",
    "Item Title",
    "Employer Name",
    "Employer ID",
    "Hours Worked",
    "Base Rate",
    "Agreed Compensation",
    "OB Premium Total",
    "OB Details",
    "Net Adjustments",
    "Adjustment Details",
    "Total Pay",
    "Status",
    "Processed At",
]

PAYSLIP_CSV_COLUMNS = [
    "Payslip ID",
    "Employee Name",
    "Employee ID",
    "Pay Period",
    "Gross Pay",
    "Vacation Pay",
    "Tax Deducted",
    "Net Pay",
    "Status",
]

BOM = "\ufeff"


def _money(value: Any) -> str:
    return f"{quantize_money(value):.2f}"


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def record_row(record: EarningRecord) -> dict[str, str]:
    """One CSV row for a record, keyed by column name."""
    is_shift = record.is_shift
    adjustments = [
        {"reason": adj.reason, "amount": _money(adj.amount)} for adj in record.adjustments
    ]
    return {
        "Record ID": str(record.earning_record_id),
        "Record Type": record.kind,
        "Employee Name": _text(record.employee_name),
        "Employee ID": str(record.employee_id),
        "Email": _text(record.employee_email),
        "Pay Period": record.pay_period,
        "Item Date": record.item_date.isoformat() if record.item_date else "",
        "Item Title": _text(record.item_title),
        "Employer Name": _text(record.employer_name),
        "Employer ID": _text(record.employer_id),
        "Hours Worked": _money(record.hours_worked),
        "Base Rate": _money(record.hourly_rate) if is_shift else "",
        "Agreed Compensation": "" if is_shift else _money(record.agreed_compensation),
        "OB Premium Total": _money(record.ob_premium_total),
        "OB Details": json.dumps(record.ob_breakdown or {}, sort_keys=True),
        "Net Adjustments": _money(record.net_adjustments),
        "Adjustment Details": json.dumps(adjustments),
        "Total Pay": _money(record.total_pay),
        "Status": record.status,
        "Processed At": record.processed_at.isoformat() if record.processed_at else "",
    }


def payslip_row(payslip: Payslip) -> dict[str, str]:
    """One CSV row for a payslip, keyed by column name."""
    return {
        "Payslip ID": str(payslip.payslip_id),
        "Employee Name": payslip.employee_name or "Unknown",
        "Employee ID": str(payslip.employee_id),
        "Pay Period": payslip.pay_period,
        "Gross Pay": _money(payslip.gross_pay),
        "Vacation Pay": _money(payslip.vacation_pay_added),
        "Tax Deducted": _money(payslip.tax_deducted),
        "Net Pay": _money(payslip.net_pay),
        "Status": payslip.status,
    }


def _write_csv(columns: list[str], rows: Iterable[dict[str, str]]) -> str:
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=columns, lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    return BOM + output.getvalue()


def export_records_csv(records: Iterable[EarningRecord]) -> str:
    """Render records as UTF-8 CSV text with a leading byte-order mark.

    The header row is always written, even for an empty selection.
    """
    return _write_csv(CSV_COLUMNS, (record_row(record) for record in records))


def export_payslips_csv(payslips: Iterable[Payslip]) -> str:
    """Render payslip figures as CSV, two decimals, with a leading BOM."""
    return _write_csv(PAYSLIP_CSV_COLUMNS, (payslip_row(p) for p in payslips))
