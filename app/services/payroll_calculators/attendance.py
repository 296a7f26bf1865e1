"""
Attendance Deduction Calculator

Threshold-based penalties for absences, late arrivals, half days and
short days. Days covered by approved leave are never penalized.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional, Sequence, Set

from app.models.attendance import AttendanceStatus, DeductionType
from app.services.payroll_data_service import PayrollPeriod
from app.utils.money import to_decimal, percent_of


@dataclass
class PenaltyLine:
    count: int = 0
    amount: Decimal = Decimal("0")
    chargeable_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"count": self.count, "amount": str(self.amount)}
        if self.chargeable_count is not None:
            data["chargeable_count"] = self.chargeable_count
        return data


@dataclass
class AttendanceResult:
    per_day_salary: Decimal
    absent: PenaltyLine = field(default_factory=PenaltyLine)
    late: PenaltyLine = field(default_factory=PenaltyLine)
    half_day: PenaltyLine = field(default_factory=PenaltyLine)
    short_day: PenaltyLine = field(default_factory=PenaltyLine)
    leave: PenaltyLine = field(default_factory=PenaltyLine)

    @property
    def total(self) -> Decimal:
        return self.absent.amount + self.late.amount + self.half_day.amount + self.short_day.amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "absent": self.absent.to_dict(),
            "late": self.late.to_dict(),
            "half_day": self.half_day.to_dict(),
            "short_day": self.short_day.to_dict(),
            "leave": self.leave.to_dict(),
        }


def leave_dates(leave_applications: Sequence[Any], period: PayrollPeriod) -> Set[date]:
    """Dates of ``period`` covered by any (approved) leave application."""
    covered = set()
    for leave in leave_applications:
        if leave.from_date is None or leave.to_date is None:
            continue
        for day in period.dates():
            if leave.from_date <= day <= leave.to_date:
                covered.add(day)
    return covered


def chargeable(count: int, threshold: Any) -> int:
    """Occurrences beyond the policy's free allowance."""
    if threshold:
        return max(0, count - int(threshold))
    return count


def _unit_deduction(deduction_type: Any, value: Any, per_day_salary: Decimal) -> Decimal:
    kind = str(getattr(deduction_type, "value", deduction_type) or "").strip().lower()
    if kind == DeductionType.AMOUNT.value:
        return to_decimal(value)
    if kind == DeductionType.PERCENTAGE.value:
        return percent_of(per_day_salary, value)
    return Decimal("0")


def _status(record: Any) -> str:
    return str(getattr(record.status, "value", record.status) or "").lower()


def calculate_attendance_deduction(
    package: Any,
    period: PayrollPeriod,
    attendances: Sequence[Any],
    leave_applications: Sequence[Any],
    policy: Optional[Any],
    days_divisor: int = 30,
) -> AttendanceResult:
    """
    Per-day salary is ``package / days_divisor`` regardless of month length.

    With no attendance at all in the period, every day not covered by
    leave counts as an absence.
    """
    per_day = to_decimal(package) / Decimal(days_divisor)
    result = AttendanceResult(per_day_salary=per_day)
    covered = leave_dates(leave_applications, period)

    if attendances:
        for record in attendances:
            if record.date in covered:
                result.leave.count += 1
                continue

            status = _status(record)
            if status == AttendanceStatus.ABSENT.value:
                result.absent.count += 1
            elif status == AttendanceStatus.LATE.value or (record.late_minutes or 0) > 0:
                result.late.count += 1
            elif status == AttendanceStatus.HALF_DAY.value:
                result.half_day.count += 1
            elif status == AttendanceStatus.SHORT_DAY.value:
                result.short_day.count += 1
    else:
        result.leave.count = len(covered)
        result.absent.count = period.days - len(covered)

    result.absent.amount = per_day * result.absent.count

    if policy is not None:
        half = result.half_day
        half.chargeable_count = chargeable(half.count, policy.apply_deduction_after_half_days)
        if half.chargeable_count and policy.half_day_deduction_amount:
            unit = _unit_deduction(policy.half_day_deduction_type, policy.half_day_deduction_amount, per_day)
            half.amount = unit * half.chargeable_count

        short = result.short_day
        short.chargeable_count = chargeable(short.count, policy.apply_deduction_after_short_days)
        if short.chargeable_count and policy.short_day_deduction_amount:
            unit = _unit_deduction(policy.short_day_deduction_type, policy.short_day_deduction_amount, per_day)
            short.amount = unit * short.chargeable_count

        late = result.late
        late.chargeable_count = chargeable(late.count, policy.apply_deduction_after_lates)
        if late.chargeable_count and policy.late_deduction_percent:
            late.amount = percent_of(per_day, policy.late_deduction_percent) * late.chargeable_count
    else:
        result.late.chargeable_count = result.late.count

    return result
