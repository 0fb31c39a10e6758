"""Tests for bulk status transitions and payslip production."""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from payroll_consolidation.calculators.types import PayslipConfig
from payroll_consolidation.errors import (
    ConfigValidationError,
    EmptySelection,
    InvalidTransitionError,
    MixedEmployeeSelection,
    MixedPeriodSelection,
    NonHomogeneousSelection,
    PartialPayslipSelection,
    PayslipImmutableError,
    RecordNotFound,
    StaleSelectionError,
)
from payroll_consolidation.models import Payslip
from payroll_consolidation.services.adjustment_ledger import AdjustmentInput, AdjustmentLedger
from payroll_consolidation.services.audit import list_audit_events
from payroll_consolidation.services.status_lifecycle import StatusLifecycleManager

THIRTY_WITH_VACATION = PayslipConfig(tax_percentage=Decimal("30"), apply_vacation_pay=True)


async def payslip_count(session) -> int:
    return await session.scalar(select(func.count()).select_from(Payslip))


@pytest.fixture
async def may_records(session, make_shift, make_engagement, employee_id, employer_id):
    """A 2200 shift, an 1800 engagement and a -200 period adjustment."""
    ledger = AdjustmentLedger(session)
    shift = await make_shift()
    await ledger.replace_record_adjustments(
        shift.id, [AdjustmentInput("Travel bonus", "500"), AdjustmentInput("Late arrival", "-50")]
    )
    engagement = await make_engagement()
    await ledger.upsert_period_level_adjustments(
        employee_id, "2024-05", [AdjustmentInput("Advance repayment", "-200")], employer_id
    )
    return shift, engagement


class TestProcessBulk:
    """pending → processed with payslip production."""

    async def test_process_produces_reconciled_payslip(self, session, may_records, employee_id):
        shift, engagement = may_records

        payslip = await StatusLifecycleManager(session).process_bulk(
            [shift.id, engagement.id], employee_id, THIRTY_WITH_VACATION
        )

        assert payslip.gross_pay == Decimal("3800")
        assert payslip.vacation_pay_added == Decimal("456")
        assert payslip.tax_deducted == Decimal("1276.80")
        assert payslip.net_pay == Decimal("2979.20")
        assert payslip.net_pay == payslip.gross_pay + payslip.vacation_pay_added - payslip.tax_deducted
        assert payslip.status == "processed"
        assert payslip.source_ids == {shift.id, engagement.id}

        for record in (shift, engagement):
            assert record.status == "processed"
            assert record.processed_at is not None
            assert record.payslip_id == payslip.id

    async def test_processes_exactly_the_selection(
        self, session, may_records, make_shift, employee_id
    ):
        shift, engagement = may_records
        left_out = await make_shift()

        payslip = await StatusLifecycleManager(session).process_bulk(
            [shift.id, engagement.id], employee_id, THIRTY_WITH_VACATION
        )

        assert left_out.id not in payslip.source_ids
        assert left_out.status == "pending"
        assert payslip.gross_pay == Decimal("3800")

    async def test_mixed_employees_mutate_nothing(
        self, session, make_shift, employee_id
    ):
        mine = await make_shift()
        theirs = await make_shift(employee_id=uuid4())

        with pytest.raises(MixedEmployeeSelection):
            await StatusLifecycleManager(session).process_bulk(
                [mine.id, theirs.id], employee_id, THIRTY_WITH_VACATION
            )

        assert mine.status == theirs.status == "pending"
        assert await payslip_count(session) == 0

    async def test_foreign_employee_only(self, session, make_shift, employee_id):
        theirs = await make_shift(employee_id=uuid4())

        with pytest.raises(MixedEmployeeSelection):
            await StatusLifecycleManager(session).process_bulk(
                [theirs.id], employee_id, THIRTY_WITH_VACATION
            )

    async def test_mixed_periods_rejected(self, session, make_shift, employee_id):
        may = await make_shift()
        june = await make_shift(pay_period="2024-06")

        with pytest.raises(MixedPeriodSelection) as exc_info:
            await StatusLifecycleManager(session).process_bulk(
                [may.id, june.id], employee_id, THIRTY_WITH_VACATION
            )

        assert exc_info.value.pay_periods == ["2024-05", "2024-06"]
        assert await payslip_count(session) == 0

    async def test_non_pending_record_rejected(self, session, may_records, make_shift, employee_id):
        shift, engagement = may_records
        manager = StatusLifecycleManager(session)
        await manager.process_bulk([shift.id], employee_id, THIRTY_WITH_VACATION)
        fresh = await make_shift(pay_period="2024-05")

        with pytest.raises(NonHomogeneousSelection):
            await manager.process_bulk([shift.id, fresh.id], employee_id, THIRTY_WITH_VACATION)

        assert fresh.status == "pending"

    async def test_empty_selection(self, session, employee_id):
        with pytest.raises(EmptySelection):
            await StatusLifecycleManager(session).process_bulk(
                [], employee_id, THIRTY_WITH_VACATION
            )

    async def test_unknown_record(self, session, make_shift, employee_id):
        record = await make_shift()
        missing = uuid4()

        with pytest.raises(RecordNotFound) as exc_info:
            await StatusLifecycleManager(session).process_bulk(
                [record.id, missing], employee_id, THIRTY_WITH_VACATION
            )

        assert exc_info.value.record_ids == [str(missing)]
        assert record.status == "pending"

    async def test_duplicate_ids_collapse(self, session, make_shift, employee_id):
        record = await make_shift()

        payslip = await StatusLifecycleManager(session).process_bulk(
            [record.id, record.id], employee_id, THIRTY_WITH_VACATION
        )

        assert payslip.source_record_ids == [str(record.id)]
        assert payslip.gross_pay == Decimal("1750")

    async def test_invalid_config_changes_nothing(self, session, make_shift, employee_id):
        record = await make_shift()

        with pytest.raises(ConfigValidationError):
            await StatusLifecycleManager(session).process_bulk(
                [record.id],
                employee_id,
                PayslipConfig(tax_percentage=Decimal("120"), apply_vacation_pay=False),
            )

        assert record.status == "pending"
        assert await payslip_count(session) == 0

    async def test_processing_is_audited(self, session, make_shift, employee_id, employer_id):
        record = await make_shift()

        payslip = await StatusLifecycleManager(session).process_bulk(
            [record.id], employee_id, THIRTY_WITH_VACATION, actor_employer_id=employer_id
        )

        record_events = await list_audit_events(session, "earning_record", record.id)
        assert "status_change:pending:processed" in {e.action for e in record_events}
        (created,) = await list_audit_events(session, "payslip", payslip.id)
        assert created.action == "created"
        assert created.actor_id == employer_id
        assert created.after_json["source_record_ids"] == [str(record.id)]


class TestPayBulk:
    """processed → paid."""

    async def test_payslip_paid_once_all_records_paid(self, session, may_records, employee_id):
        shift, engagement = may_records
        manager = StatusLifecycleManager(session)
        payslip = await manager.process_bulk(
            [shift.id, engagement.id], employee_id, THIRTY_WITH_VACATION
        )

        result = await manager.pay_bulk([shift.id])
        assert result.to_status == "paid"
        assert result.payslip_ids == [payslip.id]
        assert shift.status == "paid"
        assert shift.paid_at is not None
        assert payslip.status == "processed"

        await manager.pay_bulk([engagement.id])
        assert payslip.status == "paid"
        assert payslip.paid_at is not None

    async def test_pending_cannot_be_paid(self, session, make_shift):
        record = await make_shift()

        with pytest.raises(NonHomogeneousSelection):
            await StatusLifecycleManager(session).pay_bulk([record.id])

        assert record.status == "pending"
        assert record.paid_at is None

    async def test_empty_selection(self, session):
        with pytest.raises(EmptySelection):
            await StatusLifecycleManager(session).pay_bulk([])


class TestRevertBulk:
    """paid → processed and processed → pending."""

    async def test_revert_paid_reopens_payslip(self, session, make_shift, employee_id):
        record = await make_shift()
        manager = StatusLifecycleManager(session)
        payslip = await manager.process_bulk([record.id], employee_id, THIRTY_WITH_VACATION)
        await manager.pay_bulk([record.id])

        result = await manager.revert_bulk([record.id], "paid")

        assert result.from_status == "paid"
        assert result.to_status == "processed"
        assert record.status == "processed"
        assert record.paid_at is None
        assert payslip.status == "processed"
        assert payslip.paid_at is None

    async def test_revert_and_reprocess_with_new_adjustment(
        self, session, may_records, employee_id
    ):
        """Voiding and reprocessing with an extra +100 gives gross 3900."""
        shift, engagement = may_records
        manager = StatusLifecycleManager(session)
        first = await manager.process_bulk(
            [shift.id, engagement.id], employee_id, THIRTY_WITH_VACATION
        )

        await manager.revert_bulk([shift.id, engagement.id], "processed")

        assert first.status == "void"
        assert first.voided_at is not None
        assert first.gross_pay == Decimal("3800")
        for record in (shift, engagement):
            assert record.status == "pending"
            assert record.processed_at is None
            assert record.payslip_id is None

        await AdjustmentLedger(session).add_or_update_record_adjustment(
            shift.id, AdjustmentInput("Extra hour", "100")
        )
        second = await manager.process_bulk(
            [shift.id, engagement.id], employee_id, THIRTY_WITH_VACATION
        )

        assert second.id != first.id
        assert second.gross_pay == Decimal("3900")
        assert second.vacation_pay_added == Decimal("468")
        assert second.tax_deducted == Decimal("1310.40")
        assert second.net_pay == Decimal("3057.60")

    async def test_partial_revert_rejected(self, session, may_records, employee_id):
        shift, engagement = may_records
        manager = StatusLifecycleManager(session)
        payslip = await manager.process_bulk(
            [shift.id, engagement.id], employee_id, THIRTY_WITH_VACATION
        )

        with pytest.raises(PartialPayslipSelection) as exc_info:
            await manager.revert_bulk([shift.id], "processed")

        assert exc_info.value.missing_record_ids == [str(engagement.id)]
        assert shift.status == "processed"
        assert payslip.status == "processed"

    async def test_declared_status_must_match(self, session, make_shift, employee_id):
        record = await make_shift()
        manager = StatusLifecycleManager(session)
        await manager.process_bulk([record.id], employee_id, THIRTY_WITH_VACATION)
        await manager.pay_bulk([record.id])

        with pytest.raises(NonHomogeneousSelection):
            await manager.revert_bulk([record.id], "processed")

        assert record.status == "paid"

    async def test_pending_cannot_be_reverted(self, session, make_shift):
        record = await make_shift()

        with pytest.raises(InvalidTransitionError):
            await StatusLifecycleManager(session).revert_bulk([record.id], "pending")


class TestLateRecords:
    """Several payslips in one period, with period adjustments counted once."""

    async def test_late_record_after_paid_payslip(
        self, session, may_records, make_shift, employee_id
    ):
        shift, _ = may_records
        manager = StatusLifecycleManager(session)
        first = await manager.process_bulk([shift.id], employee_id, THIRTY_WITH_VACATION)
        await manager.pay_bulk([shift.id])
        assert first.gross_pay == Decimal("2000")
        assert first.net_pay == Decimal("1568")

        late = await make_shift()
        second = await manager.process_bulk([late.id], employee_id, THIRTY_WITH_VACATION)

        assert second.id != first.id
        assert second.gross_pay == Decimal("1750")
        assert second.period_adjustment_ids == []
        assert late.status == "processed"
        assert late.payslip_id == second.id
        assert first.status == "paid"
        assert shift.status == "paid"

    async def test_new_period_adjustment_goes_on_next_payslip(
        self, session, may_records, employee_id, employer_id
    ):
        shift, engagement = may_records
        manager = StatusLifecycleManager(session)
        ledger = AdjustmentLedger(session)
        first = await manager.process_bulk([shift.id], employee_id, THIRTY_WITH_VACATION)
        (advance,) = await ledger.list_period_level_adjustments(employee_id, "2024-05")
        assert first.period_adjustment_ids == [str(advance.id)]

        saved = await ledger.upsert_period_level_adjustments(
            employee_id,
            "2024-05",
            [
                AdjustmentInput("Advance repayment", "-200", id=advance.id),
                AdjustmentInput("Referral bonus", "100"),
            ],
            employer_id,
        )
        bonus = next(a for a in saved if a.reason == "Referral bonus")
        second = await manager.process_bulk([engagement.id], employee_id, THIRTY_WITH_VACATION)

        assert second.gross_pay == Decimal("1900")
        assert second.period_adjustment_ids == [str(bonus.id)]

    async def test_voided_payslip_releases_period_adjustments(
        self, session, may_records, employee_id
    ):
        shift, engagement = may_records
        manager = StatusLifecycleManager(session)
        await manager.process_bulk([shift.id], employee_id, THIRTY_WITH_VACATION)
        await manager.revert_bulk([shift.id], "processed")

        payslip = await manager.process_bulk(
            [shift.id, engagement.id], employee_id, THIRTY_WITH_VACATION
        )

        assert payslip.gross_pay == Decimal("3800")
        assert len(payslip.period_adjustment_ids) == 1


class TestAtomicWrites:
    """Conditional writes and payslip immutability."""

    async def test_conditional_update_detects_stale_selection(self, session, make_shift):
        record = await make_shift()
        manager = StatusLifecycleManager(session)

        with pytest.raises(StaleSelectionError) as exc_info:
            await manager._conditional_update([record.id], "processed", status="paid")

        assert exc_info.value.expected == 1
        assert exc_info.value.updated == 0

    async def test_payslip_financial_fields_are_write_once(
        self, session, make_shift, employee_id
    ):
        record = await make_shift()
        payslip = await StatusLifecycleManager(session).process_bulk(
            [record.id], employee_id, THIRTY_WITH_VACATION
        )

        payslip.gross_pay = Decimal("9999")
        with pytest.raises(PayslipImmutableError) as exc_info:
            await session.flush()

        assert exc_info.value.fields == ["gross_pay"]
