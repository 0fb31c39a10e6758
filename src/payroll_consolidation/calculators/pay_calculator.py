"""Pure pay arithmetic for earning records.

Values stay as undiminished ``Decimal`` throughout. Rounding to cents only
happens in ``quantize_money``, which callers use for display and export.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Protocol

ZERO = Decimal("0")
CENTS = Decimal("0.01")
GUARD = Decimal("0.0001")

# Tier key -> display label, in display order
OB_TIERS: dict[str, str] = {
    "ob_50_hours": "OB 50% (weekday)",
    "ob_75_hours": "OB 75% (Fri/Sat)",
    "ob_100_hours": "OB 100% (Sun/holiday)",
}


class HasAmount(Protocol):
    amount: Any


class PayableRecord(Protocol):
    kind: str
    hours_worked: Any
    hourly_rate: Any
    ob_premium_total: Any
    agreed_compensation: Any
    adjustments: Any


def to_decimal(value: Any) -> Decimal:
    """Convert a stored or submitted number to Decimal (None -> 0)."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # repr keeps the shortest round-tripping form, not the binary expansion
        return Decimal(repr(value))
    return Decimal(value)


def quantize_money(value: Any) -> Decimal:
    """Round to two decimals, half-up. Display and export only."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def quantize_guard(value: Any) -> Decimal:
    """Round to the four-decimal storage precision."""
    return to_decimal(value).quantize(GUARD, rounding=ROUND_HALF_UP)


def base_pay(record: PayableRecord) -> Decimal:
    """Hours x rate for shifts, agreed compensation for engagements."""
    if record.kind == "shift":
        return to_decimal(record.hours_worked) * to_decimal(record.hourly_rate)
    return to_decimal(record.agreed_compensation)


def ob_premium(record: PayableRecord) -> Decimal:
    """OB premium counts for shifts only."""
    if record.kind == "shift":
        return to_decimal(record.ob_premium_total)
    return ZERO


def sum_amounts(items: Iterable[HasAmount]) -> Decimal:
    return sum((to_decimal(item.amount) for item in items), ZERO)


def net_adjustments(record: PayableRecord) -> Decimal:
    """Live sum of the record's adjustment amounts."""
    return sum_amounts(record.adjustments or [])


def record_total(record: PayableRecord) -> Decimal:
    return base_pay(record) + ob_premium(record) + net_adjustments(record)


def hours_for(record: PayableRecord) -> Decimal:
    """Worked hours; engagements without hours count as zero."""
    return to_decimal(record.hours_worked)


def merge_ob_breakdowns(breakdowns: Iterable[Mapping[str, Any] | None]) -> dict[str, Decimal]:
    """Sum OB tier hours across records, keeping every known tier key."""
    totals = {key: ZERO for key in OB_TIERS}
    for breakdown in breakdowns:
        for key, hours in (breakdown or {}).items():
            totals[key] = totals.get(key, ZERO) + to_decimal(hours)
    return totals


def ob_labels(breakdown: Mapping[str, Any] | None) -> list[str]:
    """Human labels for each nonzero known OB tier.

    >>> ob_labels({"ob_75_hours": 3.5, "ob_50_hours": 0})
    ['OB 75% (Fri/Sat): 3.50 h']
    """
    if not breakdown:
        return []
    labels = []
    for key, label in OB_TIERS.items():
        hours = to_decimal(breakdown.get(key))
        if hours > 0:
            labels.append(f"{label}: {quantize_money(hours)} h")
    return labels
