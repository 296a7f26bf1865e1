"""
Paywise Payroll Engine - Tax & Statutory Models

Master data for withholding tax and statutory contributions:
- TaxSlab: progressive bands over annual taxable income
- RebateNature / Rebate: approved reductions of annual taxable income
- EOBIRecord: monthly EOBI contribution amounts
- ProvidentFund: provident fund contribution percentage
"""

import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    ForeignKey, Numeric, String, Uuid,
    Enum as SQLEnum, CheckConstraint
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, AuditMixin
from app.models.enums import ApprovalStatus, RecordStatus


class TaxSlab(BaseModel, AuditMixin):
    """
    Tax slab over annual taxable income.

    Annual tax = fixed_amount + (income - min_amount) * rate / 100
    """

    __tablename__ = "tax_slabs"

    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    min_amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    max_amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    rate: Mapped[Decimal] = mapped_column(
        Numeric(precision=7, scale=4), nullable=False, default=Decimal("0"),
        comment="Marginal rate on the excess over min_amount, in percent",
    )
    fixed_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2), nullable=False, default=Decimal("0"),
    )
    status: Mapped[RecordStatus] = mapped_column(
        SQLEnum(RecordStatus), default=RecordStatus.ACTIVE, nullable=False,
    )

    __table_args__ = (
        CheckConstraint('max_amount >= min_amount', name='slab_range'),
    )


class RebateNature(BaseModel):
    """Nature of a tax rebate (display name)."""

    __tablename__ = "rebate_natures"

    name: Mapped[str] = mapped_column(String(150), nullable=False, unique=True)


class Rebate(BaseModel, AuditMixin):
    """Approved rebate reducing an employee's annual taxable income."""

    __tablename__ = "rebates"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rebate_nature_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("rebate_natures.id", ondelete="SET NULL"),
        nullable=True,
    )
    month_year: Mapped[str] = mapped_column(
        String(7), nullable=False,
        comment="Payroll period as YYYY-MM",
    )
    rebate_amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    status: Mapped[ApprovalStatus] = mapped_column(
        SQLEnum(ApprovalStatus), default=ApprovalStatus.PENDING, nullable=False,
    )

    rebate_nature: Mapped[Optional["RebateNature"]] = relationship("RebateNature", lazy="joined")


class EOBIRecord(BaseModel, AuditMixin):
    """EOBI contribution amounts for one month."""

    __tablename__ = "eobi_records"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    employer_contribution: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=15, scale=2), nullable=True,
    )
    employee_contribution: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=15, scale=2), nullable=True,
    )
    year_month: Mapped[str] = mapped_column(
        String(30), nullable=False,
        comment="'January 2024' or '2024-01'",
    )
    status: Mapped[RecordStatus] = mapped_column(
        SQLEnum(RecordStatus), default=RecordStatus.ACTIVE, nullable=False,
    )


class ProvidentFund(BaseModel, AuditMixin):
    """Provident fund contribution rate (percentage of gross)."""

    __tablename__ = "provident_funds"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    percentage: Mapped[Decimal] = mapped_column(Numeric(precision=7, scale=4), nullable=False)
    status: Mapped[RecordStatus] = mapped_column(
        SQLEnum(RecordStatus), default=RecordStatus.ACTIVE, nullable=False,
    )
