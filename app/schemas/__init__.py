"""
Paywise Payroll Engine - Pydantic Schemas Package

Request/response schemas for the API.
"""

from app.schemas.payroll import (
    PayrollPeriodRequest,
    PayrollPreviewRequest,
    PayrollDetailInput,
    EmployeePayrollResult,
    PayrollPreviewResponse,
    PayrollConfirmRequest,
    PayrollDetailResponse,
    PayrollSummary,
    PayrollResponse,
)

__all__ = [
    "PayrollPeriodRequest",
    "PayrollPreviewRequest",
    "PayrollDetailInput",
    "EmployeePayrollResult",
    "PayrollPreviewResponse",
    "PayrollConfirmRequest",
    "PayrollDetailResponse",
    "PayrollSummary",
    "PayrollResponse",
]
