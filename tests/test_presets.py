"""Tests for payroll presets and payslip configuration resolution."""

from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_consolidation.collaborators import EmploymentType
from payroll_consolidation.config import get_settings
from payroll_consolidation.errors import (
    ConfigValidationError,
    DuplicatePresetName,
    PresetNotFound,
    PresetValidationError,
)
from payroll_consolidation.services.preset_service import PresetService


class TestPresets:
    """Create, list and delete per-employer presets."""

    async def test_create_and_list(self, session, employer_id):
        service = PresetService(session)
        await service.create_preset(employer_id, "Standard", Decimal("32"), True)
        await service.create_preset(employer_id, "Contractor", "0", False)
        await service.create_preset(uuid4(), "Other employer", "25", False)

        presets = await service.list_presets(employer_id)

        assert [p.preset_name for p in presets] == ["Contractor", "Standard"]
        assert presets[1].tax_percentage == Decimal("32")
        assert presets[1].apply_vacation_pay is True

    async def test_duplicate_name_rejected(self, session, employer_id):
        service = PresetService(session)
        await service.create_preset(employer_id, "Standard", "32", True)

        with pytest.raises(DuplicatePresetName):
            await service.create_preset(employer_id, "  Standard ", "30", False)

    async def test_same_name_for_another_employer(self, session, employer_id):
        service = PresetService(session)
        await service.create_preset(employer_id, "Standard", "32", True)

        preset = await service.create_preset(uuid4(), "Standard", "30", False)

        assert preset.preset_name == "Standard"

    @pytest.mark.parametrize("pct", ["-1", "100.5", "abc"])
    async def test_tax_percentage_validated(self, session, employer_id, pct):
        with pytest.raises(PresetValidationError):
            await PresetService(session).create_preset(employer_id, "Bad", pct, False)

    async def test_empty_name_rejected(self, session, employer_id):
        with pytest.raises(PresetValidationError):
            await PresetService(session).create_preset(employer_id, "  ", "30", False)

    async def test_delete(self, session, employer_id):
        service = PresetService(session)
        preset = await service.create_preset(employer_id, "Standard", "32", True)

        await service.delete_preset(preset.id, employer_id)

        assert await service.list_presets(employer_id) == []

    async def test_other_employers_preset_is_not_found(self, session, employer_id):
        service = PresetService(session)
        preset = await service.create_preset(employer_id, "Standard", "32", True)

        with pytest.raises(PresetNotFound):
            await service.delete_preset(preset.id, uuid4())


class TestResolveConfig:
    """Explicit values, then preset, then defaults."""

    async def test_defaults(self, session, employee_id):
        config = await PresetService(session).resolve_config(employee_id=employee_id)

        settings = get_settings()
        assert config.tax_percentage == settings.default_tax_percentage
        assert config.vacation_rate == settings.vacation_rate
        assert config.apply_vacation_pay is False

    async def test_hourly_relationship_enables_vacation(
        self, session, employee_id, employer_id, directory
    ):
        directory.register_relationship(employee_id, EmploymentType.HOURLY, employer_id)

        config = await PresetService(session).resolve_config(
            employee_id=employee_id, employer_id=employer_id, directory=directory
        )

        assert config.apply_vacation_pay is True

    async def test_consultant_relationship_has_no_vacation(
        self, session, employee_id, employer_id, directory
    ):
        directory.register_relationship(employee_id, "consultant")

        config = await PresetService(session).resolve_config(
            employee_id=employee_id, employer_id=employer_id, directory=directory
        )

        assert config.apply_vacation_pay is False

    async def test_preset_overrides_defaults(self, session, employee_id, employer_id, directory):
        directory.register_relationship(employee_id, EmploymentType.HOURLY)
        service = PresetService(session)
        preset = await service.create_preset(employer_id, "No vacation", "25", False)

        config = await service.resolve_config(
            employee_id=employee_id,
            employer_id=employer_id,
            directory=directory,
            preset_id=preset.id,
        )

        assert config.tax_percentage == Decimal("25")
        assert config.apply_vacation_pay is False

    async def test_explicit_values_override_preset(self, session, employee_id, employer_id):
        service = PresetService(session)
        preset = await service.create_preset(employer_id, "Standard", "32", False)

        config = await service.resolve_config(
            employee_id=employee_id,
            employer_id=employer_id,
            preset_id=preset.id,
            tax_percentage="30",
            apply_vacation_pay=True,
        )

        assert config.tax_percentage == Decimal("30")
        assert config.apply_vacation_pay is True

    async def test_non_numeric_tax(self, session, employee_id):
        with pytest.raises(ConfigValidationError):
            await PresetService(session).resolve_config(
                employee_id=employee_id, tax_percentage="thirty"
            )
