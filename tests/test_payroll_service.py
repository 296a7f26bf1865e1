"""
Paywise Payroll Engine - Payroll Service Tests

Preview and confirmation against a SQLite database.
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select, func

from app.database import async_session_maker
from app.models.activity_log import ActivityLog, ActivityStatus
from app.models.compensation import (
    AdvanceSalary, Allowance, Bonus, Deduction, LoanRequest, SalaryBreakup,
)
from app.models.employee import Employee, EmployeeStatus
from app.models.enums import ApprovalStatus, PaymentMethod, RecordStatus
from app.models.payroll import Payroll, PayrollDetail, PayrollStatus
from app.models.statutory import EOBIRecord, ProvidentFund, TaxSlab
from app.services.activity_log_service import ActivityLogService
from app.services.payroll_service import PayrollService
from app.utils.error_handling import (
    ErrorCode,
    ImmutableRecordException,
    InvalidPeriodException,
    PayrollAlreadyProcessedException,
    PayrollNotFoundException,
    PayrollProcessingException,
    ValidationException,
)
from tests.fixtures.payroll_data import month_attendance


# ===========================================
# PREVIEW
# ===========================================

class TestPayrollPreview:
    """Test payroll preview computation."""

    @pytest.mark.asyncio
    async def test_full_attendance_net_equals_gross(
        self, db_session, service_session, test_employee, basic_salary_breakup, zero_rate_slab, payroll_period,
    ):
        db_session.add_all(month_attendance(test_employee.id, payroll_period))
        await db_session.commit()

        results = await PayrollService(service_session).preview_payroll(1, 2024)

        assert len(results) == 1
        result = results[0]
        assert result.employee_code == "EMP-001"
        assert result.gross_salary == Decimal("60000.00")
        assert result.attendance_deduction == Decimal("0.00")
        assert result.tax_deduction == Decimal("0.00")
        assert result.net_salary == result.gross_salary
        assert result.salary_breakup[0]["name"] == "Basic Salary"
        assert result.bank_info["iban"] == "PK36MEZN0001010101010101"
        assert result.working_hours_policy == "Standard 9-5"

    @pytest.mark.asyncio
    async def test_two_absences_deduct_4000(
        self, db_session, service_session, test_employee, basic_salary_breakup, zero_rate_slab, payroll_period,
    ):
        db_session.add_all(month_attendance(test_employee.id, payroll_period, absent_days=(8, 9)))
        await db_session.commit()

        results = await PayrollService(service_session).preview_payroll(1, 2024)

        result = results[0]
        assert result.attendance_breakup["absent"]["count"] == 2
        assert result.attendance_deduction == Decimal("4000.00")
        assert result.net_salary == Decimal("56000.00")

    @pytest.mark.asyncio
    async def test_net_is_gross_minus_every_deduction(
        self, db_session, service_session, test_employee, basic_salary_breakup, payroll_period,
    ):
        """Ad-hoc items, statutory contributions, tax and recoveries together."""
        employee_id = test_employee.id
        test_employee.eobi = True
        test_employee.provident_fund = True
        db_session.add_all(month_attendance(employee_id, payroll_period))
        db_session.add_all([
            TaxSlab(name="Flat 10%", min_amount=Decimal("0"), max_amount=Decimal("999999999"),
                    rate=Decimal("10"), fixed_amount=Decimal("0")),
            EOBIRecord(name="EOBI Jan", amount=Decimal("370"), employee_contribution=Decimal("370"),
                       employer_contribution=Decimal("1850"), year_month="January 2024"),
            ProvidentFund(name="Staff PF", percentage=Decimal("5")),
            Allowance(employee_id=employee_id, month=1, year=2024, amount=Decimal("5000")),
            Bonus(employee_id=employee_id, month=1, year=2024, amount=Decimal("2000"),
                  payment_method=PaymentMethod.SEPARATELY),
            Deduction(employee_id=employee_id, month=1, year=2024, amount=Decimal("750")),
            LoanRequest(employee_id=employee_id, loan_type="Personal", amount=Decimal("12000"),
                        number_of_installments=6, repayment_start_month_year="2024-01",
                        status=ApprovalStatus.APPROVED),
            AdvanceSalary(employee_id=employee_id, amount=Decimal("5000"), deduction_month="01",
                          deduction_year="2024", status=ApprovalStatus.APPROVED),
            # Not approved: ignored
            AdvanceSalary(employee_id=employee_id, amount=Decimal("9000"), deduction_month_year="2024-01"),
        ])
        await db_session.commit()

        result = (await PayrollService(service_session).preview_payroll(1, 2024))[0]

        assert result.gross_salary == Decimal("65000.00")
        assert result.bonus_amount == Decimal("0.00")
        assert len(result.bonus_breakup) == 1
        assert result.total_deductions == Decimal("750.00")
        assert result.loan_deduction == Decimal("2000.00")
        assert result.advance_salary_deduction == Decimal("5000.00")
        assert result.eobi_deduction == Decimal("370.00")
        assert result.provident_fund_deduction == Decimal("3250.00")
        # 60,000 x 12 x 10% / 12
        assert result.tax_deduction == Decimal("6000.00")
        assert result.net_salary == result.gross_salary - result.all_deductions
        assert result.net_salary == Decimal("47630.00")

    @pytest.mark.asyncio
    async def test_without_breakup_gross_uses_package(
        self, db_session, service_session, test_employee, payroll_period,
    ):
        db_session.add_all(month_attendance(test_employee.id, payroll_period))
        await db_session.commit()

        result = (await PayrollService(service_session).preview_payroll(1, 2024))[0]

        assert result.salary_breakup == []
        assert result.gross_salary == Decimal("60000.00")
        assert result.basic_salary == Decimal("60000.00")
        assert "No social security institution" in result.warnings

    @pytest.mark.asyncio
    async def test_basic_salary_is_breakup_component(
        self, db_session, service_session, test_employee, zero_rate_slab, payroll_period,
    ):
        db_session.add_all(month_attendance(test_employee.id, payroll_period))
        db_session.add_all([
            SalaryBreakup(name="Basic Salary", percentage=Decimal("60"), details={"isTaxable": True},
                          sort_order=1, status=RecordStatus.ACTIVE),
            SalaryBreakup(name="House Rent", percentage=Decimal("40"), details={"isTaxable": False},
                          sort_order=2, status=RecordStatus.ACTIVE),
        ])
        await db_session.commit()

        result = (await PayrollService(service_session).preview_payroll(1, 2024))[0]

        assert result.basic_salary == Decimal("36000.00")
        assert result.gross_salary == Decimal("60000.00")
        assert result.net_salary == Decimal("60000.00")

    @pytest.mark.asyncio
    async def test_no_active_employees_rejected(self, db_session, service_session, test_employee):
        test_employee.status = EmployeeStatus.TERMINATED
        await db_session.commit()

        with pytest.raises(ValidationException) as exc_info:
            await PayrollService(service_session).preview_payroll(1, 2024)

        assert exc_info.value.code == ErrorCode.NO_EMPLOYEES

    @pytest.mark.asyncio
    async def test_invalid_period_rejected(self, service_session):
        with pytest.raises(InvalidPeriodException):
            await PayrollService(service_session).preview_payroll(13, 2024)

    @pytest.mark.asyncio
    async def test_worker_pool_keeps_employee_order(
        self, db_session, service_session, test_employee, basic_salary_breakup, zero_rate_slab, payroll_period,
    ):
        db_session.add_all(month_attendance(test_employee.id, payroll_period))
        for index, salary in ((2, "30000"), (3, "90000")):
            employee = Employee(
                id=uuid4(),
                employee_code=f"EMP-00{index}",
                employee_name=f"Employee {index}",
                status=EmployeeStatus.ACTIVE,
                employee_salary=Decimal(salary),
                overtime_applicable=False,
                eobi=False,
                provident_fund=False,
            )
            db_session.add(employee)
            db_session.add_all(month_attendance(employee.id, payroll_period))
        await db_session.commit()

        service = PayrollService(
            service_session, session_factory=async_session_maker, max_workers=2, chunk_size=2,
        )
        chunks = [chunk async for chunk in service.iter_preview(1, 2024)]

        assert [len(chunk) for chunk in chunks] == [2, 1]
        results = [result for chunk in chunks for result in chunk]
        assert [r.employee_code for r in results] == ["EMP-001", "EMP-002", "EMP-003"]
        assert [r.net_salary for r in results] == [
            Decimal("60000.00"), Decimal("30000.00"), Decimal("90000.00"),
        ]

    @pytest.mark.asyncio
    async def test_preview_writes_nothing(
        self, db_session, service_session, test_employee, payroll_period,
    ):
        db_session.add_all(month_attendance(test_employee.id, payroll_period))
        await db_session.commit()

        await PayrollService(service_session).preview_payroll(1, 2024)

        assert await db_session.scalar(select(func.count()).select_from(Payroll)) == 0
        assert await db_session.scalar(select(func.count()).select_from(ActivityLog)) == 0


# ===========================================
# CONFIRMATION
# ===========================================

class TestPayrollConfirmation:
    """Test payroll confirmation."""

    async def _preview_details(self, db_session, service, employee_id, period):
        db_session.add_all(month_attendance(employee_id, period))
        await db_session.commit()
        results = await service.preview_payroll(period.month, period.year)
        return [result.to_detail_input() for result in results]

    @pytest.mark.asyncio
    async def test_confirm_persists_snapshot(
        self, db_session, service_session, test_employee, basic_salary_breakup, zero_rate_slab, payroll_period,
    ):
        service = PayrollService(service_session)
        details = await self._preview_details(db_session, service, test_employee.id, payroll_period)
        submitted_by = uuid4()

        payroll = await service.confirm_payroll(1, 2024, submitted_by, details)

        assert payroll.status == PayrollStatus.CONFIRMED
        assert payroll.total_amount == Decimal("60000.00")
        assert payroll.generated_by_id == submitted_by
        assert len(payroll.details) == 1
        detail = payroll.details[0]
        assert detail.employee_code == "EMP-001"
        assert detail.net_salary == Decimal("60000.00")
        assert detail.bank_info["bank_name"] == "Meezan Bank"
        assert detail.salary_breakup[0]["amount"] == "60000"

        logs = await ActivityLogService(db_session).list_for_module("payroll")
        assert len(logs) == 1
        assert logs[0].status == ActivityStatus.SUCCESS
        assert logs[0].action == "generate"
        assert logs[0].entity_id == str(payroll.id)
        assert logs[0].description == "Confirmed payroll for 1/2024"

    @pytest.mark.asyncio
    async def test_confirm_twice_replaces_details(
        self, db_session, service_session, test_employee, basic_salary_breakup, zero_rate_slab, payroll_period,
    ):
        service = PayrollService(service_session)
        details = await self._preview_details(db_session, service, test_employee.id, payroll_period)

        first = await service.confirm_payroll(1, 2024, None, details)

        edited = details[0].model_copy(update={
            "total_deductions": Decimal("1000.00"),
            "net_salary": Decimal("59000.00"),
        })
        second = await service.confirm_payroll(1, 2024, None, [edited])

        assert second.id == first.id
        assert second.total_amount == Decimal("59000.00")
        assert [d.net_salary for d in second.details] == [Decimal("59000.00")]

        detail_count = await db_session.scalar(
            select(func.count()).select_from(PayrollDetail).where(PayrollDetail.payroll_id == first.id)
        )
        assert detail_count == 1
        header_count = await db_session.scalar(select(func.count()).select_from(Payroll))
        assert header_count == 1

    @pytest.mark.asyncio
    async def test_closed_period_rejected_and_logged(
        self, db_session, service_session, test_employee, payroll_period,
    ):
        employee_id = test_employee.id
        db_session.add(Payroll(month=1, year=2024, status=PayrollStatus.PAID, total_amount=Decimal("1.00")))
        await db_session.commit()
        service = PayrollService(service_session)
        details = await self._preview_details(db_session, service, employee_id, payroll_period)

        with pytest.raises(PayrollAlreadyProcessedException) as exc_info:
            await service.confirm_payroll(1, 2024, None, details)

        assert exc_info.value.code == ErrorCode.ALREADY_PROCESSED
        assert exc_info.value.message == "Payroll for this month is already processed/approved."

        logs = (await db_session.execute(select(ActivityLog))).scalars().all()
        assert len(logs) == 1
        assert logs[0].status == ActivityStatus.FAILURE
        assert logs[0].error_message == "Payroll for this month is already processed/approved."

        detail_count = await db_session.scalar(select(func.count()).select_from(PayrollDetail))
        assert detail_count == 0

    @pytest.mark.asyncio
    async def test_unknown_employee_rejected(self, db_session, service_session, test_employee, payroll_period):
        service = PayrollService(service_session)
        details = await self._preview_details(db_session, service, test_employee.id, payroll_period)
        stranger = details[0].model_copy(update={"employee_id": uuid4()})

        with pytest.raises(ValidationException):
            await service.confirm_payroll(1, 2024, None, [stranger])

        assert await db_session.scalar(select(func.count()).select_from(Payroll)) == 0

    @pytest.mark.asyncio
    async def test_confirm_without_details_rejected_and_logged(self, db_session, service_session):
        with pytest.raises(ValidationException):
            await PayrollService(service_session).confirm_payroll(1, 2024, None, [])

        logs = (await db_session.execute(select(ActivityLog))).scalars().all()
        assert [(log.status, log.error_message) for log in logs] == [
            (ActivityStatus.FAILURE, "No payroll details submitted."),
        ]

    @pytest.mark.asyncio
    async def test_confirm_invalid_period_rejected_and_logged(self, db_session, service_session):
        with pytest.raises(InvalidPeriodException):
            await PayrollService(service_session).confirm_payroll(13, 2024, None, [])

        logs = (await db_session.execute(select(ActivityLog))).scalars().all()
        assert len(logs) == 1
        assert logs[0].status == ActivityStatus.FAILURE
        assert logs[0].module == "payroll"
        assert logs[0].action == "generate"
        assert logs[0].error_message == "Invalid payroll period: 13/2024. Month must be 1-12."

    @pytest.mark.asyncio
    async def test_unexpected_failure_rolls_back_and_is_logged(
        self, db_session, service_session, test_employee, payroll_period, monkeypatch,
    ):
        service = PayrollService(service_session)
        details = await self._preview_details(db_session, service, test_employee.id, payroll_period)

        def failing_build_detail(payroll_id, detail, bank_info):
            raise RuntimeError("disk full")

        monkeypatch.setattr(PayrollService, "_build_detail", staticmethod(failing_build_detail))

        with pytest.raises(PayrollProcessingException) as exc_info:
            await service.confirm_payroll(1, 2024, None, details)

        assert exc_info.value.code == ErrorCode.PAYROLL_PROCESSING_ERROR
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert await db_session.scalar(select(func.count()).select_from(Payroll)) == 0
        assert await db_session.scalar(select(func.count()).select_from(PayrollDetail)) == 0

        logs = (await db_session.execute(select(ActivityLog))).scalars().all()
        assert [(log.status, log.error_message) for log in logs] == [(ActivityStatus.FAILURE, "disk full")]

    @pytest.mark.asyncio
    async def test_concurrently_created_header_is_reused(
        self, db_session, service_session, test_employee, payroll_period, monkeypatch,
    ):
        """Another confirmation inserts the header between our lookup and our insert."""
        service = PayrollService(service_session)
        details = await self._preview_details(db_session, service, test_employee.id, payroll_period)
        select_header = service._select_header
        calls = []

        async def racing_select_header(month, year):
            calls.append((month, year))
            if len(calls) == 1:
                async with async_session_maker() as other:
                    other.add(Payroll(month=month, year=year, status=PayrollStatus.DRAFT,
                                      total_amount=Decimal("0.00")))
                    await other.commit()
                return None
            return await select_header(month, year)

        monkeypatch.setattr(service, "_select_header", racing_select_header)

        payroll = await service.confirm_payroll(1, 2024, None, details)

        assert calls == [(1, 2024), (1, 2024)]
        assert payroll.status == PayrollStatus.CONFIRMED
        assert payroll.total_amount == Decimal("60000.00")
        assert await db_session.scalar(select(func.count()).select_from(Payroll)) == 1

        logs = (await db_session.execute(select(ActivityLog))).scalars().all()
        assert [log.status for log in logs] == [ActivityStatus.SUCCESS]

    @pytest.mark.asyncio
    async def test_stored_details_are_immutable(
        self, db_session, service_session, test_employee, payroll_period,
    ):
        service = PayrollService(service_session)
        details = await self._preview_details(db_session, service, test_employee.id, payroll_period)
        await service.confirm_payroll(1, 2024, None, details)

        detail = (await db_session.execute(select(PayrollDetail))).scalar_one()
        detail.net_salary = Decimal("1.00")

        with pytest.raises(ImmutableRecordException):
            await db_session.flush()
        await db_session.rollback()


# ===========================================
# RETRIEVAL
# ===========================================

class TestPayrollRetrieval:
    """Test payroll lookups."""

    @pytest.mark.asyncio
    async def test_missing_payroll_raises(self, service_session):
        with pytest.raises(PayrollNotFoundException):
            await PayrollService(service_session).get_payroll(uuid4())

    @pytest.mark.asyncio
    async def test_list_most_recent_first(self, db_session, service_session):
        db_session.add_all([
            Payroll(month=11, year=2023, status=PayrollStatus.PAID, total_amount=Decimal("0")),
            Payroll(month=2, year=2024, status=PayrollStatus.DRAFT, total_amount=Decimal("0")),
            Payroll(month=1, year=2024, status=PayrollStatus.CONFIRMED, total_amount=Decimal("0")),
        ])
        await db_session.commit()
        service = PayrollService(service_session)

        payrolls = await service.list_payrolls()
        assert [(p.year, p.month) for p in payrolls] == [(2024, 2), (2024, 1), (2023, 11)]

        payrolls_2023 = await service.list_payrolls(year=2023)
        assert [(p.year, p.month) for p in payrolls_2023] == [(2023, 11)]
