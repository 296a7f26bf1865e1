"""
Paywise Payroll Engine - Payroll Models

Persisted output of the payroll engine:
- Payroll: one header per (month, year) carrying the period total and status
- PayrollDetail: immutable per-employee snapshot of every computed amount

Lifecycle of a period:
    none -> draft -> confirmed -> approved -> paid
A confirmed period may be re-confirmed, which replaces the submitted
employees' details. Approved, paid and cancelled periods are closed.
"""

import uuid
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, List

from sqlalchemy import (
    ForeignKey, Integer, Numeric, String, Uuid,
    Enum as SQLEnum, JSON, UniqueConstraint, CheckConstraint, event
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, AuditMixin
from app.utils.error_handling import ImmutableRecordException

if TYPE_CHECKING:
    from app.models.employee import Employee


# ===========================================
# ENUMS
# ===========================================

class PayrollStatus(str, Enum):
    """Payroll processing status."""
    DRAFT = "draft"
    CONFIRMED = "confirmed"
    APPROVED = "approved"
    PAID = "paid"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Salary payment status of a single detail row."""
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


# Statuses that still accept (re-)confirmation
OPEN_PAYROLL_STATUSES = frozenset({PayrollStatus.DRAFT, PayrollStatus.CONFIRMED})


def _money_column(comment: Optional[str] = None):
    return mapped_column(
        Numeric(precision=15, scale=2),
        default=Decimal("0.00"),
        nullable=False,
        comment=comment,
    )


# ===========================================
# PAYROLL HEADER
# ===========================================

class Payroll(BaseModel, AuditMixin):
    """
    Payroll header for a single month.

    ``total_amount`` is always recomputed from the stored details.
    """

    __tablename__ = "payrolls"

    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2),
        default=Decimal("0.00"),
        nullable=False,
        comment="Sum of detail net salaries",
    )

    status: Mapped[PayrollStatus] = mapped_column(
        SQLEnum(PayrollStatus),
        default=PayrollStatus.DRAFT,
        nullable=False,
    )

    generated_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        nullable=True,
    )

    # Relationships
    details: Mapped[List["PayrollDetail"]] = relationship(
        "PayrollDetail",
        back_populates="payroll",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint('month', 'year', name='uq_payroll_month_year'),
        CheckConstraint('month >= 1 AND month <= 12', name='valid_month'),
    )

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_PAYROLL_STATUSES

    def __repr__(self) -> str:
        return f"<Payroll(id={self.id}, period={self.month}/{self.year}, status={self.status})>"


# ===========================================
# PAYROLL DETAIL
# ===========================================

class PayrollDetail(BaseModel):
    """
    Per-employee payroll snapshot.

    Rows are written once on confirmation; a later confirmation of the
    same period deletes and re-inserts them.
    """

    __tablename__ = "payroll_details"

    payroll_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("payrolls.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Earnings
    basic_salary: Mapped[Decimal] = _money_column("Basic Salary breakup component")
    total_allowances: Mapped[Decimal] = _money_column()
    overtime_amount: Mapped[Decimal] = _money_column()
    bonus_amount: Mapped[Decimal] = _money_column()
    leave_encashment_amount: Mapped[Decimal] = _money_column()
    gross_salary: Mapped[Decimal] = _money_column()

    # Deductions
    total_deductions: Mapped[Decimal] = _money_column("Ad-hoc deductions")
    attendance_deduction: Mapped[Decimal] = _money_column()
    loan_deduction: Mapped[Decimal] = _money_column()
    advance_salary_deduction: Mapped[Decimal] = _money_column()
    eobi_deduction: Mapped[Decimal] = _money_column()
    provident_fund_deduction: Mapped[Decimal] = _money_column()
    tax_deduction: Mapped[Decimal] = _money_column()

    # Reported only, not part of net
    social_security_contribution: Mapped[Decimal] = _money_column()

    net_salary: Mapped[Decimal] = _money_column()

    payment_status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus),
        default=PaymentStatus.PENDING,
        nullable=False,
    )
    payment_method: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Snapshot of the employee's primary bank account at confirmation time
    bank_info: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    # Itemized breakdowns (audit trail)
    salary_breakup: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    increment_breakup: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    allowance_breakup: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    bonus_breakup: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    leave_encashment_breakup: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    deduction_breakup: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    attendance_breakup: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    overtime_breakup: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    loan_breakup: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    advance_salary_breakup: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    tax_breakup: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    # Relationships
    payroll: Mapped["Payroll"] = relationship("Payroll", back_populates="details")
    employee: Mapped["Employee"] = relationship("Employee")

    __table_args__ = (
        UniqueConstraint('payroll_id', 'employee_id', name='uq_payroll_detail_employee'),
    )

    @property
    def employee_code(self) -> Optional[str]:
        return self.employee.employee_code if self.employee is not None else None

    @property
    def employee_name(self) -> Optional[str]:
        return self.employee.employee_name if self.employee is not None else None

    def __repr__(self) -> str:
        return f"<PayrollDetail(payroll_id={self.payroll_id}, employee_id={self.employee_id}, net={self.net_salary})>"


@event.listens_for(PayrollDetail, "before_update", propagate=True)
def _reject_detail_update(mapper, connection, target: PayrollDetail) -> None:
    raise ImmutableRecordException("PayrollDetail", target.id)
