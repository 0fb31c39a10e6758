"""Payroll presets and payslip configuration resolution."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_consolidation.calculators.types import PayslipConfig
from payroll_consolidation.collaborators.base import EmployeeDirectory, vacation_pay_default
from payroll_consolidation.config import get_settings
from payroll_consolidation.errors import (
    ConfigValidationError,
    DuplicatePresetName,
    PresetNotFound,
    PresetValidationError,
)
from payroll_consolidation.models import PayrollPreset
from payroll_consolidation.services.audit import record_audit


def _tax_percentage(value: Any) -> Decimal:
    try:
        pct = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise PresetValidationError(f"tax_percentage must be numeric, got {value!r}") from e
    if not pct.is_finite() or pct < 0 or pct > 100:
        raise PresetValidationError(f"tax_percentage must be between 0 and 100, got {value}")
    return pct


class PresetService:
    """Named tax/vacation shortcuts per employer.

    A preset only pre-fills the payslip producer's inputs; it never touches
    stored records.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_preset(
        self,
        employer_id: UUID,
        preset_name: str,
        tax_percentage: Any,
        apply_vacation_pay: bool,
    ) -> PayrollPreset:
        name = (preset_name or "").strip()
        if not name:
            raise PresetValidationError("preset_name must not be empty")
        pct = _tax_percentage(tax_percentage)

        existing = await self.session.scalar(
            select(PayrollPreset.payroll_preset_id).where(
                PayrollPreset.employer_id == employer_id,
                PayrollPreset.preset_name == name,
            )
        )
        if existing is not None:
            raise DuplicatePresetName(employer_id, name)

        preset = PayrollPreset(
            employer_id=employer_id,
            preset_name=name,
            tax_percentage=pct,
            apply_vacation_pay=bool(apply_vacation_pay),
        )
        self.session.add(preset)
        await self.session.flush()
        await record_audit(
            self.session,
            entity_type="payroll_preset",
            entity_id=preset.payroll_preset_id,
            action="created",
            actor_id=employer_id,
            after={
                "preset_name": name,
                "tax_percentage": str(pct),
                "apply_vacation_pay": preset.apply_vacation_pay,
            },
        )
        return preset

    async def list_presets(self, employer_id: UUID) -> list[PayrollPreset]:
        result = await self.session.execute(
            select(PayrollPreset)
            .where(PayrollPreset.employer_id == employer_id)
            .order_by(PayrollPreset.preset_name)
        )
        return list(result.scalars().all())

    async def get_preset(self, preset_id: UUID, employer_id: UUID | None = None) -> PayrollPreset:
        """Load a preset; when ``employer_id`` is given it must own the preset."""
        preset = await self.session.get(PayrollPreset, preset_id)
        if preset is None or (employer_id is not None and preset.employer_id != employer_id):
            raise PresetNotFound(preset_id)
        return preset

    async def delete_preset(self, preset_id: UUID, employer_id: UUID) -> None:
        preset = await self.get_preset(preset_id, employer_id)
        await self.session.delete(preset)
        await record_audit(
            self.session,
            entity_type="payroll_preset",
            entity_id=preset_id,
            action="deleted",
            actor_id=employer_id,
            before={"preset_name": preset.preset_name},
        )
        await self.session.flush()

    async def resolve_config(
        self,
        *,
        employee_id: UUID,
        employer_id: UUID | None = None,
        directory: EmployeeDirectory | None = None,
        preset_id: UUID | None = None,
        tax_percentage: Any = None,
        apply_vacation_pay: bool | None = None,
    ) -> PayslipConfig:
        """Build the producer configuration for one processing call.

        Precedence: explicit values, then the preset, then defaults. The
        vacation default follows the employment relationship reported by
        the directory.
        """
        settings = get_settings()
        pct = settings.default_tax_percentage
        vacation = False
        if directory is not None:
            vacation = vacation_pay_default(
                directory.get_employment_relationship(employee_id, employer_id)
            )

        if preset_id is not None:
            preset = await self.get_preset(preset_id, employer_id)
            pct = preset.tax_percentage
            vacation = preset.apply_vacation_pay

        if tax_percentage is not None:
            try:
                pct = Decimal(str(tax_percentage))
            except (InvalidOperation, ValueError) as e:
                raise ConfigValidationError(
                    f"tax_percentage must be numeric, got {tax_percentage!r}"
                ) from e
        if apply_vacation_pay is not None:
            vacation = apply_vacation_pay

        return PayslipConfig(
            tax_percentage=Decimal(pct),
            apply_vacation_pay=vacation,
            vacation_rate=settings.vacation_rate,
        )
