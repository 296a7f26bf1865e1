"""
Paywise Payroll Engine - Period & Policy Resolver

Builds the payroll period and loads everything the calculators read:
- active employees with their policies, increments, bank accounts and
  social-security references
- period-wide master data (salary breakup, tax slabs, holidays, EOBI, PF)
- per-employee period inputs (attendance, overtime, leave, ad-hoc items,
  loans, advances, rebates)

Nothing here writes to the database.
"""

import calendar
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterator, List, Optional, Sequence

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.enums import ApprovalStatus, RecordStatus
from app.models.employee import Employee, EmployeeStatus, SocialSecurityRegistration
from app.models.attendance import Attendance, OvertimeRequest, LeaveApplication, Holiday
from app.models.compensation import (
    SalaryBreakup, Allowance, Deduction, Bonus, LeaveEncashment, LoanRequest, AdvanceSalary
)
from app.models.statutory import TaxSlab, Rebate, EOBIRecord, ProvidentFund
from app.utils.error_handling import InvalidPeriodException
from app.utils.money import period_label


logger = logging.getLogger(__name__)


# ===========================================
# PERIOD
# ===========================================

@dataclass(frozen=True)
class PayrollPeriod:
    """A calendar month being paid."""
    month: int
    year: int

    def __post_init__(self):
        if not isinstance(self.month, int) or not 1 <= self.month <= 12:
            raise InvalidPeriodException(self.month, self.year)
        if not isinstance(self.year, int) or not 1900 <= self.year <= 9999:
            raise InvalidPeriodException(self.month, self.year)

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def days(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    @property
    def end(self) -> date:
        return date(self.year, self.month, self.days)

    @property
    def label(self) -> str:
        """YYYY-MM"""
        return period_label(self.year, self.month)

    @property
    def month_name(self) -> str:
        return calendar.month_name[self.month]

    def dates(self) -> Iterator[date]:
        day = self.start
        while day <= self.end:
            yield day
            day += timedelta(days=1)


# ===========================================
# LOADED DATA
# ===========================================

@dataclass
class MasterData:
    """Period-wide master data, loaded once per preview."""
    salary_breakups: List[SalaryBreakup] = field(default_factory=list)
    tax_slabs: List[TaxSlab] = field(default_factory=list)
    holidays: List[Holiday] = field(default_factory=list)
    eobi_records: List[EOBIRecord] = field(default_factory=list)
    provident_fund: Optional[ProvidentFund] = None


@dataclass
class EmployeePeriodInputs:
    """Per-employee records that fall in (or apply to) the period."""
    attendances: List[Attendance] = field(default_factory=list)
    overtime_requests: List[OvertimeRequest] = field(default_factory=list)
    leave_applications: List[LeaveApplication] = field(default_factory=list)
    allowances: List[Allowance] = field(default_factory=list)
    deductions: List[Deduction] = field(default_factory=list)
    bonuses: List[Bonus] = field(default_factory=list)
    leave_encashments: List[LeaveEncashment] = field(default_factory=list)
    loans: List[LoanRequest] = field(default_factory=list)
    advances: List[AdvanceSalary] = field(default_factory=list)
    rebates: List[Rebate] = field(default_factory=list)


class PayrollDataService:
    """Read-only loader for payroll inputs."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ===========================================
    # EMPLOYEES
    # ===========================================

    async def get_active_employees(
        self,
        employee_ids: Optional[Sequence[uuid.UUID]] = None,
    ) -> List[Employee]:
        """Active employees (optionally filtered), ordered by employee code."""
        conditions = [Employee.status == EmployeeStatus.ACTIVE]
        if employee_ids:
            conditions.append(Employee.id.in_(list(employee_ids)))

        query = (
            select(Employee)
            .where(and_(*conditions))
            .options(
                selectinload(Employee.working_hours_policy),
                selectinload(Employee.leaves_policy),
                selectinload(Employee.increments),
                selectinload(Employee.bank_accounts),
                selectinload(Employee.social_security_institution),
                selectinload(Employee.social_security_registrations)
                .joinedload(SocialSecurityRegistration.institution),
            )
            .order_by(Employee.employee_code)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    # ===========================================
    # MASTER DATA
    # ===========================================

    async def load_master_data(self, period: PayrollPeriod) -> MasterData:
        breakups = await self.db.execute(
            select(SalaryBreakup)
            .where(SalaryBreakup.status == RecordStatus.ACTIVE)
            .order_by(SalaryBreakup.sort_order, SalaryBreakup.created_at, SalaryBreakup.name)
        )
        slabs = await self.db.execute(
            select(TaxSlab)
            .where(TaxSlab.status == RecordStatus.ACTIVE)
            .order_by(TaxSlab.min_amount.desc())
        )
        holidays = await self.db.execute(
            select(Holiday).where(Holiday.status == RecordStatus.ACTIVE)
        )
        eobi = await self.db.execute(
            select(EOBIRecord)
            .where(EOBIRecord.status == RecordStatus.ACTIVE)
            .order_by(EOBIRecord.created_at)
        )
        provident_fund = await self.db.execute(
            select(ProvidentFund)
            .where(ProvidentFund.status == RecordStatus.ACTIVE)
            .order_by(ProvidentFund.created_at)
            .limit(1)
        )

        master = MasterData(
            salary_breakups=list(breakups.scalars().all()),
            tax_slabs=list(slabs.scalars().all()),
            holidays=list(holidays.scalars().all()),
            eobi_records=list(eobi.scalars().all()),
            provident_fund=provident_fund.scalars().first(),
        )
        if not master.salary_breakups:
            logger.warning(f"No active salary breakup configured for {period.label}; gross uses the package")
        return master

    # ===========================================
    # PER-EMPLOYEE INPUTS
    # ===========================================

    async def load_employee_inputs(
        self,
        employee_id: uuid.UUID,
        period: PayrollPeriod,
    ) -> EmployeePeriodInputs:
        start, end = period.start, period.end

        attendances = await self._all(
            select(Attendance)
            .where(and_(
                Attendance.employee_id == employee_id,
                Attendance.date >= start,
                Attendance.date <= end,
            ))
            .order_by(Attendance.date)
        )
        overtime_requests = await self._all(
            select(OvertimeRequest)
            .where(and_(
                OvertimeRequest.employee_id == employee_id,
                OvertimeRequest.status == ApprovalStatus.APPROVED,
                OvertimeRequest.date >= start,
                OvertimeRequest.date <= end,
            ))
            .order_by(OvertimeRequest.date)
        )
        leave_applications = await self._all(
            select(LeaveApplication)
            .where(and_(
                LeaveApplication.employee_id == employee_id,
                LeaveApplication.status == ApprovalStatus.APPROVED,
                LeaveApplication.from_date <= end,
                LeaveApplication.to_date >= start,
            ))
        )
        allowances = await self._all(
            select(Allowance)
            .where(and_(
                Allowance.employee_id == employee_id,
                Allowance.status == RecordStatus.ACTIVE,
                Allowance.month == period.month,
                Allowance.year == period.year,
            ))
            .order_by(Allowance.created_at)
        )
        deductions = await self._all(
            select(Deduction)
            .where(and_(
                Deduction.employee_id == employee_id,
                Deduction.status == RecordStatus.ACTIVE,
                Deduction.month == period.month,
                Deduction.year == period.year,
            ))
            .order_by(Deduction.created_at)
        )
        bonuses = await self._all(
            select(Bonus)
            .where(and_(
                Bonus.employee_id == employee_id,
                Bonus.status == RecordStatus.ACTIVE,
                Bonus.month == period.month,
                Bonus.year == period.year,
            ))
            .order_by(Bonus.created_at)
        )
        leave_encashments = await self._all(
            select(LeaveEncashment)
            .where(and_(
                LeaveEncashment.employee_id == employee_id,
                LeaveEncashment.status == ApprovalStatus.APPROVED,
                LeaveEncashment.month == period.month,
                LeaveEncashment.year == period.year,
            ))
            .order_by(LeaveEncashment.created_at)
        )
        loans = await self._all(
            select(LoanRequest)
            .where(and_(
                LoanRequest.employee_id == employee_id,
                LoanRequest.status == ApprovalStatus.APPROVED,
            ))
            .order_by(LoanRequest.created_at)
        )
        # Month labels vary in format, so period matching happens in the amortizer
        advances = await self._all(
            select(AdvanceSalary)
            .where(and_(
                AdvanceSalary.employee_id == employee_id,
                AdvanceSalary.status == ApprovalStatus.APPROVED,
            ))
            .order_by(AdvanceSalary.created_at)
        )
        rebates = await self._all(
            select(Rebate)
            .where(and_(
                Rebate.employee_id == employee_id,
                Rebate.status == ApprovalStatus.APPROVED,
                Rebate.month_year == period.label,
            ))
            .order_by(Rebate.created_at)
        )

        return EmployeePeriodInputs(
            attendances=attendances,
            overtime_requests=overtime_requests,
            leave_applications=leave_applications,
            allowances=allowances,
            deductions=deductions,
            bonuses=bonuses,
            leave_encashments=leave_encashments,
            loans=loans,
            advances=advances,
            rebates=rebates,
        )

    async def _all(self, query) -> list:
        result = await self.db.execute(query)
        return list(result.scalars().all())
