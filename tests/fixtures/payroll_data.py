"""
Payroll test data builders.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, List
from uuid import uuid4

from app.models.attendance import Attendance, AttendanceStatus
from app.services.payroll_data_service import PayrollPeriod


JANUARY_2024 = PayrollPeriod(month=1, year=2024)


def month_attendance(
    employee_id,
    period: PayrollPeriod = JANUARY_2024,
    absent_days: Iterable[int] = (),
) -> List[Attendance]:
    """One attendance row per day of ``period``; ``absent_days`` are day numbers."""
    absent = set(absent_days)
    records = []
    for day in period.dates():
        is_absent = day.day in absent
        records.append(Attendance(
            id=uuid4(),
            employee_id=employee_id,
            date=day,
            status=AttendanceStatus.ABSENT if is_absent else AttendanceStatus.PRESENT,
            check_in=None if is_absent else datetime(day.year, day.month, day.day, 9, tzinfo=timezone.utc),
            check_out=None if is_absent else datetime(day.year, day.month, day.day, 17, tzinfo=timezone.utc),
            working_hours=None if is_absent else Decimal("8"),
        ))
    return records
