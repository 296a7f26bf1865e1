"""
Effective Package Calculator

Prorates the monthly package across increments that take effect inside
the payroll period. An increment applies from its own effective date.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from app.models.enums import RecordStatus
from app.services.payroll_data_service import PayrollPeriod
from app.utils.money import to_decimal


@dataclass
class IncrementSegment:
    """One in-period package change and the days paid at the old package."""
    increment_id: Any
    effective_date: date
    kind: Optional[str]
    method: Optional[str]
    change_amount: Optional[Decimal]
    change_percentage: Optional[Decimal]
    old_package: Decimal
    new_package: Decimal
    days_before: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "increment_id": str(self.increment_id) if self.increment_id else None,
            "date": self.effective_date.isoformat(),
            "kind": self.kind,
            "method": self.method,
            "change_amount": str(self.change_amount) if self.change_amount is not None else None,
            "change_percentage": str(self.change_percentage) if self.change_percentage is not None else None,
            "old_package": str(self.old_package),
            "new_package": str(self.new_package),
            "days_before": self.days_before,
        }


@dataclass
class PackageResult:
    effective_package: Decimal
    base_package: Decimal
    segments: List[IncrementSegment] = field(default_factory=list)

    def to_list(self) -> List[Dict[str, Any]]:
        return [segment.to_dict() for segment in self.segments]


def _enum_value(value: Any) -> Optional[str]:
    return getattr(value, "value", value)


def _is_active(increment: Any) -> bool:
    status = getattr(increment, "status", None)
    return status is None or _enum_value(status) == RecordStatus.ACTIVE.value


def calculate_effective_package(
    base_package: Any,
    increments: Sequence[Any],
    period: PayrollPeriod,
) -> PackageResult:
    """
    Compute the package paid for ``period``.

    ``increments`` need ``effective_date`` and ``salary`` (the new package).
    Same-day increments keep their list order; the last one wins.
    """
    base = to_decimal(base_package)
    total_days = period.days

    applicable = [
        inc for inc in increments
        if _is_active(inc) and inc.effective_date is not None and inc.effective_date <= period.end
    ]
    applicable = sorted(applicable, key=lambda inc: inc.effective_date)

    baseline = base
    in_period = []
    for inc in applicable:
        if inc.effective_date < period.start:
            baseline = to_decimal(inc.salary)
        else:
            in_period.append(inc)

    if not in_period:
        return PackageResult(effective_package=baseline, base_package=base)

    total = Decimal("0")
    current = baseline
    boundary = period.start
    segments = []

    for inc in in_period:
        days = (inc.effective_date - boundary).days
        total += current * days / total_days
        new_package = to_decimal(inc.salary)
        segments.append(IncrementSegment(
            increment_id=inc.id,
            effective_date=inc.effective_date,
            kind=_enum_value(getattr(inc, "kind", None)),
            method=_enum_value(getattr(inc, "method", None)),
            change_amount=getattr(inc, "change_amount", None),
            change_percentage=getattr(inc, "change_percentage", None),
            old_package=current,
            new_package=new_package,
            days_before=days,
        ))
        current = new_package
        boundary = inc.effective_date

    remaining = (period.end - boundary).days + 1
    total += current * remaining / total_days

    return PackageResult(effective_package=total, base_package=base, segments=segments)
