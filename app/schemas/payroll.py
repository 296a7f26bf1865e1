"""
Paywise Payroll Engine - Payroll Schemas

Pydantic schemas for payroll preview, confirmation and retrieval.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict, Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.models.payroll import PayrollStatus, PaymentStatus


# ===========================================
# PREVIEW
# ===========================================

class PayrollPeriodRequest(BaseModel):
    """Month/year of a payroll."""
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1900, le=9999)


class PayrollPreviewRequest(PayrollPeriodRequest):
    """Request payroll preview for all (or selected) active employees."""
    employee_ids: Optional[List[UUID]] = None


class PayrollDetailInput(BaseModel):
    """
    Per-employee payroll amounts submitted for confirmation.

    Usually the preview record, possibly edited by the user.
    """
    employee_id: UUID

    # Earnings
    basic_salary: Decimal = Decimal("0")
    total_allowances: Decimal = Decimal("0")
    overtime_amount: Decimal = Decimal("0")
    bonus_amount: Decimal = Decimal("0")
    leave_encashment_amount: Decimal = Decimal("0")
    gross_salary: Decimal = Decimal("0")

    # Deductions
    total_deductions: Decimal = Decimal("0")
    attendance_deduction: Decimal = Decimal("0")
    loan_deduction: Decimal = Decimal("0")
    advance_salary_deduction: Decimal = Decimal("0")
    eobi_deduction: Decimal = Decimal("0")
    provident_fund_deduction: Decimal = Decimal("0")
    tax_deduction: Decimal = Decimal("0")

    social_security_contribution: Decimal = Decimal("0")
    net_salary: Decimal = Decimal("0")

    payment_method: Optional[str] = None

    # Breakdowns
    salary_breakup: Optional[List[Dict[str, Any]]] = None
    increment_breakup: Optional[List[Dict[str, Any]]] = None
    allowance_breakup: Optional[List[Dict[str, Any]]] = None
    bonus_breakup: Optional[List[Dict[str, Any]]] = None
    leave_encashment_breakup: Optional[List[Dict[str, Any]]] = None
    deduction_breakup: Optional[List[Dict[str, Any]]] = None
    attendance_breakup: Optional[Dict[str, Any]] = None
    overtime_breakup: Optional[List[Dict[str, Any]]] = None
    loan_breakup: Optional[List[Dict[str, Any]]] = None
    advance_salary_breakup: Optional[List[Dict[str, Any]]] = None
    tax_breakup: Optional[Dict[str, Any]] = None

    @property
    def all_deductions(self) -> Decimal:
        """Every deduction that enters the net formula."""
        return (
            self.total_deductions
            + self.attendance_deduction
            + self.loan_deduction
            + self.advance_salary_deduction
            + self.eobi_deduction
            + self.provident_fund_deduction
            + self.tax_deduction
        )


class EmployeePayrollResult(PayrollDetailInput):
    """Computed payroll for one employee (preview record)."""
    employee_code: str
    employee_name: str
    department: Optional[str] = None
    designation: Optional[str] = None
    month: int
    year: int

    base_package: Decimal = Decimal("0")
    statutory_breakup: Optional[Dict[str, Any]] = None

    working_hours_policy: Optional[str] = None
    leaves_policy: Optional[str] = None
    bank_info: Optional[Dict[str, Any]] = None

    warnings: List[str] = Field(default_factory=list)

    def to_detail_input(self) -> PayrollDetailInput:
        return PayrollDetailInput.model_validate(
            self.model_dump(include=set(PayrollDetailInput.model_fields))
        )


class PayrollPreviewResponse(BaseModel):
    """Preview of a period's payroll."""
    month: int
    year: int
    employee_count: int
    total_gross: Decimal
    total_net: Decimal
    results: List[EmployeePayrollResult]


# ===========================================
# CONFIRMATION
# ===========================================

class PayrollConfirmRequest(PayrollPeriodRequest):
    """Confirm (persist) a period's payroll."""
    generated_by: Optional[UUID] = None
    details: List[PayrollDetailInput] = Field(..., min_length=1)

    @field_validator("details")
    @classmethod
    def unique_employees(cls, v: List[PayrollDetailInput]) -> List[PayrollDetailInput]:
        employee_ids = [detail.employee_id for detail in v]
        if len(employee_ids) != len(set(employee_ids)):
            raise ValueError("Each employee may appear only once")
        return v


# ===========================================
# RESPONSES
# ===========================================

class PayrollDetailResponse(BaseModel):
    """Stored per-employee payroll snapshot."""
    id: UUID
    payroll_id: UUID
    employee_id: UUID
    employee_code: Optional[str] = None
    employee_name: Optional[str] = None

    basic_salary: Decimal
    total_allowances: Decimal
    overtime_amount: Decimal
    bonus_amount: Decimal
    leave_encashment_amount: Decimal
    gross_salary: Decimal
    total_deductions: Decimal
    attendance_deduction: Decimal
    loan_deduction: Decimal
    advance_salary_deduction: Decimal
    eobi_deduction: Decimal
    provident_fund_deduction: Decimal
    tax_deduction: Decimal
    social_security_contribution: Decimal
    net_salary: Decimal

    payment_status: PaymentStatus
    payment_method: Optional[str] = None
    bank_info: Optional[Dict[str, Any]] = None

    salary_breakup: Optional[Any] = None
    increment_breakup: Optional[Any] = None
    allowance_breakup: Optional[Any] = None
    bonus_breakup: Optional[Any] = None
    leave_encashment_breakup: Optional[Any] = None
    deduction_breakup: Optional[Any] = None
    attendance_breakup: Optional[Any] = None
    overtime_breakup: Optional[Any] = None
    loan_breakup: Optional[Any] = None
    advance_salary_breakup: Optional[Any] = None
    tax_breakup: Optional[Any] = None

    class Config:
        from_attributes = True


class PayrollSummary(BaseModel):
    """Payroll header."""
    id: UUID
    month: int
    year: int
    total_amount: Decimal
    status: PayrollStatus
    generated_by_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PayrollResponse(PayrollSummary):
    """Payroll header with its details."""
    details: List[PayrollDetailResponse] = []

    class Config:
        from_attributes = True
