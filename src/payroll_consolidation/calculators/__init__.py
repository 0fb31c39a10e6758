"""Pure payroll calculations: pay arithmetic, consolidation, payslip figures."""

from payroll_consolidation.calculators.consolidation import build_item, consolidate
from payroll_consolidation.calculators.pay_calculator import (
    base_pay,
    net_adjustments,
    ob_labels,
    quantize_money,
    record_total,
)
from payroll_consolidation.calculators.payslip_producer import compute_figures, produce
from payroll_consolidation.calculators.types import (
    ConsolidatedItem,
    ConsolidatedPayrollSummary,
    PayslipConfig,
    PayslipFigures,
)

__all__ = [
    "ConsolidatedItem",
    "ConsolidatedPayrollSummary",
    "PayslipConfig",
    "PayslipFigures",
    "base_pay",
    "build_item",
    "compute_figures",
    "consolidate",
    "net_adjustments",
    "ob_labels",
    "produce",
    "quantize_money",
    "record_total",
]
