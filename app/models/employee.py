"""
Paywise Payroll Engine - Employee Models

Employee master data consumed (read-only) by the payroll engine:
- Employee: identity, base package, eligibility flags and policy references
- EmployeeBankAccount: salary account, copied into payroll details on confirmation
- Increment: package increase/decrease history used for mid-month proration
- SocialSecurityInstitution / SocialSecurityRegistration: contribution rates
"""

import uuid
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional, List

from sqlalchemy import (
    Boolean, Date, ForeignKey, Numeric, String, Text, Uuid,
    Enum as SQLEnum
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, AuditMixin
from app.models.enums import RecordStatus

if TYPE_CHECKING:
    from app.models.attendance import WorkingHoursPolicy, LeavesPolicy


# ===========================================
# ENUMS
# ===========================================

class EmployeeStatus(str, Enum):
    """Employment status."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    TERMINATED = "terminated"
    RESIGNED = "resigned"
    SUSPENDED = "suspended"


class IncrementKind(str, Enum):
    """Direction of a package change."""
    INCREMENT = "increment"
    DECREMENT = "decrement"


class IncrementMethod(str, Enum):
    """How the package change was expressed."""
    AMOUNT = "amount"
    PERCENTAGE = "percentage"


# ===========================================
# SOCIAL SECURITY
# ===========================================

class SocialSecurityInstitution(BaseModel):
    """Social security institution with its contribution rate (% of gross)."""

    __tablename__ = "social_security_institutions"

    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    province: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    contribution_rate: Mapped[Decimal] = mapped_column(
        Numeric(precision=7, scale=4),
        nullable=False,
        default=Decimal("0"),
        comment="Contribution rate as a percentage of gross salary",
    )
    status: Mapped[RecordStatus] = mapped_column(
        SQLEnum(RecordStatus), default=RecordStatus.ACTIVE, nullable=False,
    )

    def __repr__(self) -> str:
        return f"<SocialSecurityInstitution(code={self.code}, rate={self.contribution_rate})>"


class SocialSecurityRegistration(BaseModel):
    """Registration of an employee with a social security institution."""

    __tablename__ = "social_security_registrations"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    institution_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("social_security_institutions.id", ondelete="RESTRICT"),
        nullable=False,
    )
    registration_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    registration_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[RecordStatus] = mapped_column(
        SQLEnum(RecordStatus), default=RecordStatus.ACTIVE, nullable=False,
    )

    # Relationships
    employee: Mapped["Employee"] = relationship(
        "Employee", back_populates="social_security_registrations",
    )
    institution: Mapped["SocialSecurityInstitution"] = relationship(
        "SocialSecurityInstitution", lazy="joined",
    )


# ===========================================
# EMPLOYEE MODEL
# ===========================================

class Employee(BaseModel, AuditMixin):
    """
    Employee model as seen by the payroll engine.

    The engine never mutates employees; it only reads the package,
    eligibility flags and policy references for a payroll period.
    """

    __tablename__ = "employees"

    # Employee identification
    employee_code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        comment="Internal employee ID/staff number",
    )
    employee_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    department: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    designation: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    joining_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    status: Mapped[EmployeeStatus] = mapped_column(
        SQLEnum(EmployeeStatus),
        default=EmployeeStatus.ACTIVE,
        nullable=False,
        index=True,
    )

    # Base package (monthly), before any increment history is applied
    employee_salary: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2),
        nullable=False,
        default=Decimal("0.00"),
        comment="Monthly base package",
    )

    # Eligibility flags
    overtime_applicable: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    eobi: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False,
        comment="Employee is registered for EOBI contributions",
    )
    provident_fund: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Policy references
    working_hours_policy_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("working_hours_policies.id", ondelete="SET NULL"),
        nullable=True,
    )
    leaves_policy_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("leaves_policies.id", ondelete="SET NULL"),
        nullable=True,
    )
    social_security_institution_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("social_security_institutions.id", ondelete="SET NULL"),
        nullable=True,
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    working_hours_policy: Mapped[Optional["WorkingHoursPolicy"]] = relationship(
        "WorkingHoursPolicy",
    )
    leaves_policy: Mapped[Optional["LeavesPolicy"]] = relationship(
        "LeavesPolicy",
    )
    social_security_institution: Mapped[Optional["SocialSecurityInstitution"]] = relationship(
        "SocialSecurityInstitution",
    )
    social_security_registrations: Mapped[List["SocialSecurityRegistration"]] = relationship(
        "SocialSecurityRegistration",
        back_populates="employee",
        cascade="all, delete-orphan",
    )
    bank_accounts: Mapped[List["EmployeeBankAccount"]] = relationship(
        "EmployeeBankAccount",
        back_populates="employee",
        cascade="all, delete-orphan",
    )
    increments: Mapped[List["Increment"]] = relationship(
        "Increment",
        back_populates="employee",
        cascade="all, delete-orphan",
        order_by="Increment.effective_date",
    )

    def __repr__(self) -> str:
        return f"<Employee(id={self.id}, code={self.employee_code}, name={self.employee_name})>"


# ===========================================
# EMPLOYEE BANK ACCOUNT
# ===========================================

class EmployeeBankAccount(BaseModel):
    """Employee bank account for salary payments."""

    __tablename__ = "employee_bank_accounts"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    bank_name: Mapped[str] = mapped_column(String(150), nullable=False)
    branch_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    account_number: Mapped[str] = mapped_column(String(34), nullable=False)
    account_title: Mapped[str] = mapped_column(String(200), nullable=False)
    iban: Mapped[Optional[str]] = mapped_column(String(34), nullable=True)
    is_primary: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False,
        comment="Primary account for salary payment",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationship
    employee: Mapped["Employee"] = relationship(
        "Employee", back_populates="bank_accounts",
    )

    def __repr__(self) -> str:
        return f"<EmployeeBankAccount(employee_id={self.employee_id}, bank={self.bank_name})>"


# ===========================================
# INCREMENT
# ===========================================

class Increment(BaseModel, AuditMixin):
    """
    Package change effective from a date.

    ``salary`` is the new monthly package from ``effective_date`` onwards.
    """

    __tablename__ = "increments"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    salary: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2),
        nullable=False,
        comment="New monthly package",
    )
    kind: Mapped[IncrementKind] = mapped_column(
        SQLEnum(IncrementKind), default=IncrementKind.INCREMENT, nullable=False,
    )
    method: Mapped[IncrementMethod] = mapped_column(
        SQLEnum(IncrementMethod), default=IncrementMethod.AMOUNT, nullable=False,
    )
    change_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=15, scale=2), nullable=True,
    )
    change_percentage: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=7, scale=4), nullable=True,
    )
    status: Mapped[RecordStatus] = mapped_column(
        SQLEnum(RecordStatus), default=RecordStatus.ACTIVE, nullable=False,
    )

    employee: Mapped["Employee"] = relationship("Employee", back_populates="increments")
