"""
Paywise Payroll Engine - Payroll Service

Payroll orchestrator: runs the calculators for every employee of a
period (preview) and persists the confirmed snapshot.

Per employee, in order:
1. Effective package (mid-month increments prorated by days)
2. Salary breakup (whole-unit components, taxability)
3. Attendance deductions (absent / late / half day / short day)
4. Overtime (requests + holiday / weekly-off work)
5. Ad-hoc allowances, bonuses, leave encashments and deductions
6. Statutory contributions (EOBI, provident fund, social security)
7. Withholding tax (annual slabs, rebates)
8. Loan installments and salary advances

gross = breakup + allowances + overtime + bonuses + leave encashments
net   = gross - (attendance + loans + advances + EOBI + PF + tax + ad-hoc deductions)
Social security is reported only.
"""

import asyncio
import logging
import uuid
from decimal import Decimal
from typing import AsyncIterator, Dict, List, Optional, Sequence

from sqlalchemy import select, delete, func, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from app.config import settings
from app.models.activity_log import ActivityStatus
from app.models.employee import Employee, EmployeeBankAccount
from app.models.payroll import Payroll, PayrollDetail, PayrollStatus, PaymentStatus
from app.schemas.payroll import EmployeePayrollResult, PayrollDetailInput
from app.services.activity_log_service import ActivityLogService
from app.services.payroll_data_service import (
    PayrollDataService, PayrollPeriod, MasterData, EmployeePeriodInputs
)
from app.services.payroll_calculators import (
    calculate_effective_package,
    allocate_breakup,
    calculate_attendance_deduction,
    calculate_overtime,
    collect_adhoc,
    calculate_statutory,
    calculate_tax,
    calculate_recoveries,
)
from app.utils.error_handling import (
    AppException,
    ErrorCode,
    ValidationException,
    PayrollAlreadyProcessedException,
    PayrollNotFoundException,
    PayrollProcessingException,
)
from app.utils.money import round_money, round_whole


logger = logging.getLogger(__name__)

AMOUNT_FIELDS = (
    "basic_salary",
    "total_allowances",
    "overtime_amount",
    "bonus_amount",
    "leave_encashment_amount",
    "gross_salary",
    "total_deductions",
    "attendance_deduction",
    "loan_deduction",
    "advance_salary_deduction",
    "eobi_deduction",
    "provident_fund_deduction",
    "tax_deduction",
    "social_security_contribution",
    "net_salary",
)

BREAKUP_FIELDS = (
    "salary_breakup",
    "increment_breakup",
    "allowance_breakup",
    "bonus_breakup",
    "leave_encashment_breakup",
    "deduction_breakup",
    "attendance_breakup",
    "overtime_breakup",
    "loan_breakup",
    "advance_salary_breakup",
    "tax_breakup",
)


def bank_snapshot(accounts: Sequence[EmployeeBankAccount]) -> Optional[Dict[str, Optional[str]]]:
    """Primary active account, else the first active one."""
    active = [account for account in accounts if account.is_active]
    if not active:
        return None
    account = next((a for a in active if a.is_primary), active[0])
    return {
        "bank_name": account.bank_name,
        "branch_code": account.branch_code,
        "account_number": account.account_number,
        "account_title": account.account_title,
        "iban": account.iban,
    }


class PayrollService:
    """
    Payroll service for previewing and confirming monthly payroll.

    ``session_factory`` enables concurrent per-employee input loading
    (one session per worker) when ``max_workers`` > 1.
    """

    def __init__(
        self,
        db: AsyncSession,
        session_factory: Optional[async_sessionmaker] = None,
        max_workers: Optional[int] = None,
        chunk_size: Optional[int] = None,
    ):
        self.db = db
        self.session_factory = session_factory
        self.max_workers = max_workers or settings.payroll_max_workers
        self.chunk_size = chunk_size or settings.payroll_chunk_size
        self.data = PayrollDataService(db)
        self.activity_log = ActivityLogService(db)

    # ===========================================
    # PREVIEW
    # ===========================================

    async def preview_payroll(
        self,
        month: int,
        year: int,
        employee_ids: Optional[Sequence[uuid.UUID]] = None,
    ) -> List[EmployeePayrollResult]:
        """Compute payroll for all active (or the given) employees. Writes nothing."""
        results: List[EmployeePayrollResult] = []
        async for chunk in self.iter_preview(month, year, employee_ids):
            results.extend(chunk)
        return results

    async def iter_preview(
        self,
        month: int,
        year: int,
        employee_ids: Optional[Sequence[uuid.UUID]] = None,
    ) -> AsyncIterator[List[EmployeePayrollResult]]:
        """Yield preview records in chunks of ``chunk_size`` employees."""
        period = PayrollPeriod(month, year)

        employees = await self.data.get_active_employees(employee_ids)
        if not employees:
            raise ValidationException(
                "No active employees found to generate payroll for.",
                code=ErrorCode.NO_EMPLOYEES,
                details={"month": month, "year": year},
            )

        master = await self.data.load_master_data(period)
        logger.info(f"Previewing payroll {period.label} for {len(employees)} employees")

        for start in range(0, len(employees), self.chunk_size):
            chunk = employees[start:start + self.chunk_size]
            inputs = await self._load_inputs(chunk, period)
            yield [
                self.compute_employee(employee, employee_inputs, period, master)
                for employee, employee_inputs in zip(chunk, inputs)
            ]

    async def _load_inputs(
        self,
        employees: Sequence[Employee],
        period: PayrollPeriod,
    ) -> List[EmployeePeriodInputs]:
        if self.session_factory is None or self.max_workers <= 1:
            return [await self.data.load_employee_inputs(e.id, period) for e in employees]

        semaphore = asyncio.Semaphore(self.max_workers)

        async def load(employee: Employee) -> EmployeePeriodInputs:
            async with semaphore:
                async with self.session_factory() as session:
                    return await PayrollDataService(session).load_employee_inputs(employee.id, period)

        # gather keeps employee order
        return list(await asyncio.gather(*(load(e) for e in employees)))

    def compute_employee(
        self,
        employee: Employee,
        inputs: EmployeePeriodInputs,
        period: PayrollPeriod,
        master: MasterData,
    ) -> EmployeePayrollResult:
        """Run every calculator for one employee and build the preview record."""
        policy = employee.working_hours_policy
        warnings: List[str] = []
        if policy is None:
            warnings.append("No working hours policy; policy-based penalties and overtime skipped")

        package = calculate_effective_package(employee.employee_salary, employee.increments, period)
        effective = package.effective_package

        breakup = allocate_breakup(
            effective,
            master.salary_breakups,
            basic_component=settings.payroll_basic_component,
            take_home_component=settings.payroll_take_home_component,
        )
        attendance = calculate_attendance_deduction(
            effective,
            period,
            inputs.attendances,
            inputs.leave_applications,
            policy,
            days_divisor=settings.payroll_days_divisor,
        )
        overtime = calculate_overtime(
            breakup.basic_salary,
            employee.overtime_applicable,
            policy,
            inputs.overtime_requests,
            inputs.attendances,
            master.holidays,
            days_divisor=settings.payroll_days_divisor,
            hours_per_day=settings.payroll_hours_per_day,
        )
        adhoc = collect_adhoc(
            allowances=inputs.allowances,
            bonuses=inputs.bonuses,
            leave_encashments=inputs.leave_encashments,
            deductions=inputs.deductions,
        )

        breakup_total = breakup.total if breakup.lines else round_whole(effective)
        allowances = round_money(adhoc.allowances.total)
        overtime_amount = round_money(overtime.total)
        bonuses = round_money(adhoc.bonuses.total)
        encashments = round_money(adhoc.leave_encashments.total)
        gross = round_money(breakup_total) + allowances + overtime_amount + bonuses + encashments

        statutory = calculate_statutory(
            employee, gross, period, master.eobi_records, master.provident_fund,
        )
        tax = calculate_tax(breakup.lines, inputs.rebates, master.tax_slabs)
        recoveries = calculate_recoveries(inputs.loans, inputs.advances, period)

        warnings.extend(statutory.warnings)
        warnings.extend(recoveries.warnings)
        for message in warnings:
            logger.warning(f"[{employee.employee_code}] {period.label}: {message}")

        result = EmployeePayrollResult(
            employee_id=employee.id,
            employee_code=employee.employee_code,
            employee_name=employee.employee_name,
            department=employee.department,
            designation=employee.designation,
            month=period.month,
            year=period.year,
            base_package=round_money(package.base_package),
            basic_salary=round_money(breakup.basic_salary),
            total_allowances=allowances,
            overtime_amount=overtime_amount,
            bonus_amount=bonuses,
            leave_encashment_amount=encashments,
            gross_salary=gross,
            total_deductions=round_money(adhoc.deductions.total),
            attendance_deduction=round_money(attendance.total),
            loan_deduction=round_money(recoveries.loan_total),
            advance_salary_deduction=round_money(recoveries.advance_total),
            eobi_deduction=round_money(statutory.eobi),
            provident_fund_deduction=round_money(statutory.provident_fund),
            tax_deduction=round_money(tax.monthly_tax),
            social_security_contribution=round_money(statutory.social_security),
            salary_breakup=breakup.to_list(),
            increment_breakup=package.to_list(),
            allowance_breakup=adhoc.allowances.to_list(),
            bonus_breakup=adhoc.bonuses.to_list(),
            leave_encashment_breakup=adhoc.leave_encashments.to_list(),
            deduction_breakup=adhoc.deductions.to_list(),
            attendance_breakup=attendance.to_dict(),
            overtime_breakup=overtime.to_list(),
            loan_breakup=recoveries.loans,
            advance_salary_breakup=recoveries.advances,
            tax_breakup=tax.to_dict(),
            statutory_breakup=statutory.to_dict(),
            working_hours_policy=policy.name if policy is not None else None,
            leaves_policy=employee.leaves_policy.name if employee.leaves_policy is not None else None,
            bank_info=bank_snapshot(employee.bank_accounts),
            warnings=warnings,
        )
        result.net_salary = result.gross_salary - result.all_deductions
        return result

    # ===========================================
    # CONFIRMATION
    # ===========================================

    async def confirm_payroll(
        self,
        month: int,
        year: int,
        submitted_by: Optional[uuid.UUID],
        details: Sequence[PayrollDetailInput],
    ) -> Payroll:
        """
        Persist the period's payroll in one transaction.

        Existing details of the submitted employees are replaced and the
        header total is recomputed from the stored rows.
        """
        try:
            period = PayrollPeriod(month, year)
            if not details:
                raise ValidationException("No payroll details submitted.", field="details")

            employee_ids = [detail.employee_id for detail in details]
            bank_info = await self._bank_snapshots(employee_ids)

            payroll = await self._lock_header(month, year, submitted_by)
            if not payroll.is_open:
                raise PayrollAlreadyProcessedException(month, year, payroll.status.value)

            await self.db.execute(
                delete(PayrollDetail)
                .where(and_(
                    PayrollDetail.payroll_id == payroll.id,
                    PayrollDetail.employee_id.in_(employee_ids),
                ))
                .execution_options(synchronize_session=False)
            )

            self.db.add_all([
                self._build_detail(payroll.id, detail, bank_info.get(detail.employee_id))
                for detail in details
            ])
            await self.db.flush()

            total = await self.db.scalar(
                select(func.coalesce(func.sum(PayrollDetail.net_salary), 0))
                .where(PayrollDetail.payroll_id == payroll.id)
            )
            payroll.total_amount = round_money(total)
            payroll.status = PayrollStatus.CONFIRMED
            payroll.generated_by_id = submitted_by or payroll.generated_by_id
            payroll.updated_by_id = submitted_by

            await self.activity_log.log_action(
                module="payroll",
                action="generate",
                entity="Payroll",
                entity_id=str(payroll.id),
                description=f"Confirmed payroll for {month}/{year}",
                user_id=submitted_by,
            )
            await self.db.commit()
            payroll_id = payroll.id

        except Exception as exc:
            await self.db.rollback()
            logger.error(f"Failed to confirm payroll for {month}/{year}: {exc}")
            await self._log_failure(month, year, submitted_by, exc)
            if isinstance(exc, AppException):
                raise
            raise PayrollProcessingException(
                f"Failed to confirm payroll for {month}/{year}", original_error=exc,
            ) from exc

        logger.info(f"Confirmed payroll {period.label}: {len(details)} employees")
        return await self.get_payroll(payroll_id)

    async def _select_header(self, month: int, year: int) -> Optional[Payroll]:
        result = await self.db.execute(
            select(Payroll)
            .where(and_(Payroll.month == month, Payroll.year == year))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _lock_header(
        self,
        month: int,
        year: int,
        submitted_by: Optional[uuid.UUID],
    ) -> Payroll:
        """
        Locked header of the period, created when missing.

        Must be the first write of the confirmation transaction: losing the
        insert race to a concurrent confirmation rolls back and re-selects
        the header that confirmation created.
        """
        payroll = await self._select_header(month, year)
        if payroll is not None:
            return payroll

        payroll = Payroll(
            month=month,
            year=year,
            status=PayrollStatus.DRAFT,
            total_amount=Decimal("0.00"),
            generated_by_id=submitted_by,
            created_by_id=submitted_by,
        )
        self.db.add(payroll)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            logger.info(f"Payroll header for {month}/{year} created concurrently; re-selecting")
            payroll = await self._select_header(month, year)
            if payroll is None:
                raise
        return payroll

    async def _bank_snapshots(self, employee_ids: List[uuid.UUID]) -> Dict[uuid.UUID, Optional[dict]]:
        result = await self.db.execute(
            select(Employee)
            .where(Employee.id.in_(employee_ids))
            .options(selectinload(Employee.bank_accounts))
        )
        employees = {employee.id: employee for employee in result.scalars().all()}

        missing = [str(employee_id) for employee_id in employee_ids if employee_id not in employees]
        if missing:
            raise ValidationException(
                "Payroll details reference unknown employees.",
                field="details",
                details={"employee_ids": missing},
            )
        return {employee_id: bank_snapshot(e.bank_accounts) for employee_id, e in employees.items()}

    @staticmethod
    def _build_detail(
        payroll_id: uuid.UUID,
        detail: PayrollDetailInput,
        bank_info: Optional[dict],
    ) -> PayrollDetail:
        amounts = {name: round_money(getattr(detail, name)) for name in AMOUNT_FIELDS}
        breakups = detail.model_dump(mode="json", include=set(BREAKUP_FIELDS))
        return PayrollDetail(
            payroll_id=payroll_id,
            employee_id=detail.employee_id,
            payment_status=PaymentStatus.PENDING,
            payment_method=detail.payment_method,
            bank_info=bank_info,
            **amounts,
            **breakups,
        )

    async def _log_failure(
        self,
        month: int,
        year: int,
        submitted_by: Optional[uuid.UUID],
        exc: Exception,
    ) -> None:
        message = exc.message if isinstance(exc, AppException) else str(exc)
        try:
            await self.activity_log.log_action(
                module="payroll",
                action="generate",
                entity="Payroll",
                description=f"Failed to confirm payroll for {month}/{year}: {message}",
                user_id=submitted_by,
                status=ActivityStatus.FAILURE,
                error_message=message,
            )
            await self.db.commit()
        except Exception:
            # The original error is re-raised by the caller
            logger.exception("Could not record payroll failure in the activity log")
            await self.db.rollback()

    # ===========================================
    # RETRIEVAL
    # ===========================================

    async def get_payroll(self, payroll_id: uuid.UUID) -> Payroll:
        """Payroll header with details and their employees."""
        result = await self.db.execute(
            select(Payroll)
            .where(Payroll.id == payroll_id)
            .options(selectinload(Payroll.details).selectinload(PayrollDetail.employee))
            .execution_options(populate_existing=True)
        )
        payroll = result.scalar_one_or_none()
        if payroll is None:
            raise PayrollNotFoundException(payroll_id)
        return payroll

    async def list_payrolls(self, year: Optional[int] = None) -> List[Payroll]:
        """Payroll headers, most recent period first."""
        query = select(Payroll)
        if year is not None:
            query = query.where(Payroll.year == year)
        query = query.order_by(Payroll.year.desc(), Payroll.month.desc())

        result = await self.db.execute(query)
        return list(result.scalars().all())
