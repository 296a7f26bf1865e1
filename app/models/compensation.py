"""
Paywise Payroll Engine - Compensation Models

Salary structure and ad-hoc pay items consumed by the payroll engine:
- SalaryBreakup: percentage split of the package into named components
- AllowanceHead / Allowance: period-scoped additional allowances
- DeductionHead / Deduction: period-scoped ad-hoc deductions
- BonusType / Bonus: period-scoped bonuses
- LeaveEncashment: period-scoped leave encashment payouts
- LoanRequest: installment-amortized loans
- AdvanceSalary: salary advance recovered in a single period
"""

import uuid
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import (
    Boolean, ForeignKey, Integer, Numeric, String, Text, Uuid,
    Enum as SQLEnum, JSON
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, AuditMixin
from app.models.enums import ApprovalStatus, PaymentMethod, RecordStatus


# ===========================================
# SALARY STRUCTURE
# ===========================================

class SalaryBreakup(BaseModel, AuditMixin):
    """
    Salary breakup component master.

    ``details`` carries taxability metadata, either as an object
    ``{"isTaxable": bool}`` or a list of ``{"typeName": str, "isTaxable": bool}``.
    Older rows store it as a JSON-encoded string.
    """

    __tablename__ = "salary_breakups"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    percentage: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=7, scale=4), nullable=True,
        comment="Share of the package, in percent",
    )
    details: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[RecordStatus] = mapped_column(
        SQLEnum(RecordStatus), default=RecordStatus.ACTIVE, nullable=False,
    )


# ===========================================
# AD-HOC ADDITIONS
# ===========================================

class AllowanceHead(BaseModel):
    """Allowance head (display name for allowances)."""

    __tablename__ = "allowance_heads"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)


class Allowance(BaseModel, AuditMixin):
    """Additional allowance for one employee in one period."""

    __tablename__ = "allowances"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    allowance_head_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("allowance_heads.id", ondelete="SET NULL"),
        nullable=True,
    )
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    is_taxable: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SQLEnum(PaymentMethod), default=PaymentMethod.WITH_SALARY, nullable=False,
    )
    status: Mapped[RecordStatus] = mapped_column(
        SQLEnum(RecordStatus), default=RecordStatus.ACTIVE, nullable=False,
    )

    allowance_head: Mapped[Optional["AllowanceHead"]] = relationship("AllowanceHead", lazy="joined")


class BonusType(BaseModel):
    """Bonus type (display name for bonuses)."""

    __tablename__ = "bonus_types"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)


class Bonus(BaseModel, AuditMixin):
    """Bonus for one employee in one period."""

    __tablename__ = "bonuses"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    bonus_type_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("bonus_types.id", ondelete="SET NULL"),
        nullable=True,
    )
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    calculation_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    percentage: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=7, scale=4), nullable=True)
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SQLEnum(PaymentMethod), default=PaymentMethod.WITH_SALARY, nullable=False,
    )
    status: Mapped[RecordStatus] = mapped_column(
        SQLEnum(RecordStatus), default=RecordStatus.ACTIVE, nullable=False,
    )

    bonus_type: Mapped[Optional["BonusType"]] = relationship("BonusType", lazy="joined")


class LeaveEncashment(BaseModel, AuditMixin):
    """Leave encashment paid with one period's salary."""

    __tablename__ = "leave_encashments"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    days: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=6, scale=2), nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    is_taxable: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    status: Mapped[ApprovalStatus] = mapped_column(
        SQLEnum(ApprovalStatus), default=ApprovalStatus.PENDING, nullable=False,
    )


# ===========================================
# AD-HOC DEDUCTIONS
# ===========================================

class DeductionHead(BaseModel):
    """Deduction head (display name for deductions)."""

    __tablename__ = "deduction_heads"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)


class Deduction(BaseModel, AuditMixin):
    """Ad-hoc deduction for one employee in one period."""

    __tablename__ = "deductions"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    deduction_head_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("deduction_heads.id", ondelete="SET NULL"),
        nullable=True,
    )
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    is_taxable: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    status: Mapped[RecordStatus] = mapped_column(
        SQLEnum(RecordStatus), default=RecordStatus.ACTIVE, nullable=False,
    )

    deduction_head: Mapped[Optional["DeductionHead"]] = relationship("DeductionHead", lazy="joined")


# ===========================================
# LOANS & ADVANCES
# ===========================================

class LoanRequest(BaseModel, AuditMixin):
    """Loan repaid in equal monthly installments."""

    __tablename__ = "loan_requests"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    loan_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    number_of_installments: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    repayment_start_month_year: Mapped[Optional[str]] = mapped_column(
        String(7), nullable=True,
        comment="First repayment period as YYYY-MM",
    )
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[ApprovalStatus] = mapped_column(
        SQLEnum(ApprovalStatus), default=ApprovalStatus.PENDING, nullable=False,
    )


class AdvanceSalary(BaseModel, AuditMixin):
    """Salary advance deducted in full in one period."""

    __tablename__ = "advance_salaries"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    deduction_month: Mapped[Optional[str]] = mapped_column(
        String(20), nullable=True,
        comment="Month as '1', '01' or a month name",
    )
    deduction_year: Mapped[Optional[str]] = mapped_column(String(4), nullable=True)
    deduction_month_year: Mapped[Optional[str]] = mapped_column(
        String(7), nullable=True,
        comment="Combined YYYY-MM label",
    )
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[ApprovalStatus] = mapped_column(
        SQLEnum(ApprovalStatus), default=ApprovalStatus.PENDING, nullable=False,
    )
