"""Payroll consolidation services."""

from payroll_consolidation.services.adjustment_ledger import AdjustmentInput, AdjustmentLedger
from payroll_consolidation.services.consolidation_service import ConsolidationService
from payroll_consolidation.services.export_service import export_payslips_csv, export_records_csv
from payroll_consolidation.services.payslip_service import PayslipService
from payroll_consolidation.services.preset_service import PresetService
from payroll_consolidation.services.record_store import RecordStore
from payroll_consolidation.services.state_machine import (
    PayslipStatus,
    RecordStateMachine,
    RecordStatus,
)
from payroll_consolidation.services.status_lifecycle import (
    StatusLifecycleManager,
    TransitionResult,
)

__all__ = [
    "AdjustmentInput",
    "AdjustmentLedger",
    "ConsolidationService",
    "PayslipService",
    "PayslipStatus",
    "PresetService",
    "RecordStateMachine",
    "RecordStatus",
    "RecordStore",
    "StatusLifecycleManager",
    "TransitionResult",
    "export_payslips_csv",
    "export_records_csv",
]
