"""
Paywise Payroll Engine - Shared Model Enums

Status vocabularies shared by the source tables the payroll engine reads.
"""

from enum import Enum


class RecordStatus(str, Enum):
    """Lifecycle of master/ad-hoc records."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class ApprovalStatus(str, Enum):
    """Approval state of employee requests (loans, leave, overtime...)."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    """How an allowance or bonus is paid out."""
    WITH_SALARY = "with_salary"
    SEPARATELY = "separately"
