"""
Paywise Payroll Engine - SQLAlchemy Models Package

This package contains all database models for the application.
"""

from app.models.base import BaseModel, TimestampMixin, AuditMixin
from app.models.enums import RecordStatus, ApprovalStatus, PaymentMethod
from app.models.employee import (
    Employee,
    EmployeeStatus,
    EmployeeBankAccount,
    Increment,
    IncrementKind,
    IncrementMethod,
    SocialSecurityInstitution,
    SocialSecurityRegistration,
)
from app.models.attendance import (
    WorkingHoursPolicy,
    LeavesPolicy,
    Attendance,
    AttendanceStatus,
    DeductionType,
    OvertimeRequest,
    LeaveApplication,
    Holiday,
)
from app.models.compensation import (
    SalaryBreakup,
    AllowanceHead,
    Allowance,
    BonusType,
    Bonus,
    LeaveEncashment,
    DeductionHead,
    Deduction,
    LoanRequest,
    AdvanceSalary,
)
from app.models.statutory import (
    TaxSlab,
    RebateNature,
    Rebate,
    EOBIRecord,
    ProvidentFund,
)
from app.models.payroll import (
    Payroll,
    PayrollDetail,
    PayrollStatus,
    PaymentStatus,
)
from app.models.activity_log import ActivityLog, ActivityStatus

__all__ = [
    # Base
    "BaseModel",
    "TimestampMixin",
    "AuditMixin",
    # Shared enums
    "RecordStatus",
    "ApprovalStatus",
    "PaymentMethod",
    # Employee
    "Employee",
    "EmployeeStatus",
    "EmployeeBankAccount",
    "Increment",
    "IncrementKind",
    "IncrementMethod",
    "SocialSecurityInstitution",
    "SocialSecurityRegistration",
    # Attendance & time
    "WorkingHoursPolicy",
    "LeavesPolicy",
    "Attendance",
    "AttendanceStatus",
    "DeductionType",
    "OvertimeRequest",
    "LeaveApplication",
    "Holiday",
    # Compensation
    "SalaryBreakup",
    "AllowanceHead",
    "Allowance",
    "BonusType",
    "Bonus",
    "LeaveEncashment",
    "DeductionHead",
    "Deduction",
    "LoanRequest",
    "AdvanceSalary",
    # Tax & statutory
    "TaxSlab",
    "RebateNature",
    "Rebate",
    "EOBIRecord",
    "ProvidentFund",
    # Payroll
    "Payroll",
    "PayrollDetail",
    "PayrollStatus",
    "PaymentStatus",
    # Activity log
    "ActivityLog",
    "ActivityStatus",
]
