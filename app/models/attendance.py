"""
Paywise Payroll Engine - Attendance & Time Models

Time-keeping sources used for attendance penalties and overtime:
- WorkingHoursPolicy: deduction thresholds/rates, overtime multipliers, weekly offs
- LeavesPolicy: leave policy reference (reported alongside payroll)
- Attendance: one record per employee per calendar day
- OvertimeRequest: pre-approved overtime hours
- LeaveApplication: approved leave windows exempting attendance penalties
- Holiday: recurring (month/day) holiday calendar
"""

import uuid
import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Date, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid,
    Enum as SQLEnum, JSON, UniqueConstraint
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel, AuditMixin
from app.models.enums import ApprovalStatus, RecordStatus


class AttendanceStatus(str, Enum):
    """Daily attendance classification."""
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half-day"
    SHORT_DAY = "short-day"


class DeductionType(str, Enum):
    """How a per-occurrence attendance deduction is expressed."""
    AMOUNT = "amount"
    PERCENTAGE = "percentage"


# ===========================================
# POLICIES
# ===========================================

class WorkingHoursPolicy(BaseModel, AuditMixin):
    """
    Working hours policy.

    ``day_overrides`` maps lower-case weekday names to
    ``{"dayType": "off" | "working", "enabled": bool}``.
    """

    __tablename__ = "working_hours_policies"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    start_working_hours: Mapped[Optional[str]] = mapped_column(String(5), nullable=True)
    end_working_hours: Mapped[Optional[str]] = mapped_column(String(5), nullable=True)

    # Half day
    half_day_deduction_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    half_day_deduction_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=15, scale=2), nullable=True,
        comment="Flat amount or percentage of per-day salary, per deduction type",
    )
    apply_deduction_after_half_days: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Short day
    short_day_deduction_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    short_day_deduction_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=15, scale=2), nullable=True,
    )
    apply_deduction_after_short_days: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Late arrivals (always a percentage of per-day salary)
    late_deduction_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    late_deduction_percent: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=7, scale=4), nullable=True,
    )
    apply_deduction_after_lates: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Overtime multipliers
    overtime_rate: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=7, scale=4), nullable=True,
        comment="Multiplier for regular overtime",
    )
    gazetted_overtime_rate: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=7, scale=4), nullable=True,
        comment="Multiplier for holiday / weekly-off overtime",
    )

    day_overrides: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    status: Mapped[RecordStatus] = mapped_column(
        SQLEnum(RecordStatus), default=RecordStatus.ACTIVE, nullable=False,
    )


class LeavesPolicy(BaseModel, AuditMixin):
    """Leave policy assigned to employees."""

    __tablename__ = "leaves_policies"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[RecordStatus] = mapped_column(
        SQLEnum(RecordStatus), default=RecordStatus.ACTIVE, nullable=False,
    )


# ===========================================
# DAILY RECORDS
# ===========================================

class Attendance(BaseModel):
    """Daily attendance record."""

    __tablename__ = "attendances"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    status: Mapped[AttendanceStatus] = mapped_column(
        SQLEnum(AttendanceStatus, values_callable=lambda e: [m.value for m in e]),
        default=AttendanceStatus.PRESENT,
        nullable=False,
    )
    check_in: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    check_out: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    late_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    working_hours: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=6, scale=2), nullable=True)
    overtime_hours: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=6, scale=2), nullable=True)

    __table_args__ = (
        UniqueConstraint('employee_id', 'date', name='uq_attendance_employee_date'),
    )


class OvertimeRequest(BaseModel, AuditMixin):
    """Overtime hours requested (and approved) for a date."""

    __tablename__ = "overtime_requests"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    overtime_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    weekday_overtime_hours: Mapped[Decimal] = mapped_column(
        Numeric(precision=6, scale=2), default=Decimal("0"), nullable=False,
    )
    holiday_overtime_hours: Mapped[Decimal] = mapped_column(
        Numeric(precision=6, scale=2), default=Decimal("0"), nullable=False,
    )
    status: Mapped[ApprovalStatus] = mapped_column(
        SQLEnum(ApprovalStatus), default=ApprovalStatus.PENDING, nullable=False,
    )


class LeaveApplication(BaseModel, AuditMixin):
    """Leave application; only approved windows exempt attendance penalties."""

    __tablename__ = "leave_applications"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    leave_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    from_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    to_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[ApprovalStatus] = mapped_column(
        SQLEnum(ApprovalStatus), default=ApprovalStatus.PENDING, nullable=False,
    )


class Holiday(BaseModel):
    """
    Holiday calendar entry.

    Only month and day are significant; a holiday recurs every year.
    """

    __tablename__ = "holidays"

    name: Mapped[str] = mapped_column(String(150), nullable=False)
    date_from: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    date_to: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    status: Mapped[RecordStatus] = mapped_column(
        SQLEnum(RecordStatus), default=RecordStatus.ACTIVE, nullable=False,
    )
