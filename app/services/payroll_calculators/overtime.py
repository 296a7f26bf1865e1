"""
Overtime Calculator

Combines approved overtime requests with overtime recorded on attendance.

Rules:
- A request "claims" its date; regular attendance overtime on a claimed
  date is skipped.
- Work on a holiday or weekly off is always paid at the holiday
  multiplier, even on a claimed date.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from app.utils.money import to_decimal

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass
class OvertimeLine:
    source_id: str
    title: str
    date: date
    weekday_hours: Decimal
    holiday_hours: Decimal
    amount: Decimal
    type: Optional[str]
    source: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.source_id,
            "title": self.title,
            "date": self.date.isoformat(),
            "weekday_hours": str(self.weekday_hours),
            "holiday_hours": str(self.holiday_hours),
            "amount": str(self.amount),
            "type": self.type,
            "source": self.source,
        }


@dataclass
class OvertimeResult:
    hourly_rate: Decimal = Decimal("0")
    lines: List[OvertimeLine] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((line.amount for line in self.lines), Decimal("0"))

    def to_list(self) -> List[Dict[str, Any]]:
        return [line.to_dict() for line in self.lines]


def is_holiday(day: date, holidays: Sequence[Any]) -> bool:
    """
    Holidays recur yearly: only (month, day) of ``date_from``/``date_to``
    matter. A range whose end precedes its start wraps the year end.
    """
    key = (day.month, day.day)
    for holiday in holidays:
        if holiday.date_from is None or holiday.date_to is None:
            continue
        start = (holiday.date_from.month, holiday.date_from.day)
        end = (holiday.date_to.month, holiday.date_to.day)
        if start <= end:
            if start <= key <= end:
                return True
        elif key >= start or key <= end:
            return True
    return False


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def is_weekly_off(day: date, day_overrides: Optional[dict]) -> bool:
    """Policy overrides first, then Saturday/Sunday."""
    if isinstance(day_overrides, dict):
        config = day_overrides.get(WEEKDAY_NAMES[day.weekday()])
        if isinstance(config, dict):
            if config.get("dayType") == "off":
                return True
            if config.get("enabled") and config.get("dayType") != "off":
                return False
    return is_weekend(day)


def calculate_overtime(
    basic_salary: Any,
    overtime_applicable: bool,
    policy: Optional[Any],
    overtime_requests: Sequence[Any],
    attendances: Sequence[Any],
    holidays: Sequence[Any],
    days_divisor: int = 30,
    hours_per_day: int = 8,
) -> OvertimeResult:
    if not overtime_applicable or policy is None:
        return OvertimeResult()

    hourly_rate = to_decimal(basic_salary) / Decimal(days_divisor) / Decimal(hours_per_day)
    weekday_multiplier = to_decimal(policy.overtime_rate) or Decimal("1")
    holiday_multiplier = to_decimal(policy.gazetted_overtime_rate) or weekday_multiplier

    result = OvertimeResult(hourly_rate=hourly_rate)
    claimed = set()

    for request in overtime_requests:
        weekday_hours = to_decimal(request.weekday_overtime_hours)
        holiday_hours = to_decimal(request.holiday_overtime_hours)
        amount = (
            hourly_rate * weekday_multiplier * weekday_hours
            + hourly_rate * holiday_multiplier * holiday_hours
        )
        claimed.add(request.date)
        if amount > 0:
            result.lines.append(OvertimeLine(
                source_id=str(request.id),
                title=request.title or "Overtime",
                date=request.date,
                weekday_hours=weekday_hours,
                holiday_hours=holiday_hours,
                amount=amount,
                type=request.overtime_type,
                source="overtime_request",
            ))

    for record in attendances:
        if record.check_in is None or record.check_out is None:
            continue

        day = record.date
        holiday = is_holiday(day, holidays)
        off_day = is_weekly_off(day, policy.day_overrides)
        hours = to_decimal(record.overtime_hours)

        if holiday or off_day:
            if not hours:
                hours = to_decimal(record.working_hours)
            if hours > 0:
                result.lines.append(OvertimeLine(
                    source_id=f"attendance-{record.id}",
                    title="Holiday Work" if holiday else "Weekly Off Work",
                    date=day,
                    weekday_hours=Decimal("0"),
                    holiday_hours=hours,
                    amount=hourly_rate * holiday_multiplier * hours,
                    type="holiday" if holiday else "weekly_off",
                    source="attendance",
                ))
        elif hours > 0 and day not in claimed:
            weekend = is_weekend(day)
            result.lines.append(OvertimeLine(
                source_id=f"attendance-{record.id}",
                title="Weekend Overtime" if weekend else "Regular Overtime",
                date=day,
                weekday_hours=hours,
                holiday_hours=Decimal("0"),
                amount=hourly_rate * weekday_multiplier * hours,
                type="weekend" if weekend else "regular",
                source="attendance",
            ))

    return result
