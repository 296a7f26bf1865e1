"""
Salary Breakup Allocator

Splits the effective package into the configured components and decides
which of them are taxable.
"""

import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from app.utils.money import to_decimal, round_whole, percent_of

logger = logging.getLogger(__name__)


@dataclass
class BreakupLine:
    component_id: Any
    name: str
    percentage: Optional[Decimal]
    amount: Decimal
    is_taxable: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.component_id) if self.component_id else None,
            "name": self.name,
            "percentage": str(self.percentage) if self.percentage is not None else None,
            "amount": str(self.amount),
            "is_taxable": self.is_taxable,
        }


@dataclass
class BreakupResult:
    lines: List[BreakupLine] = field(default_factory=list)
    basic_salary: Decimal = Decimal("0")

    @property
    def total(self) -> Decimal:
        return sum((line.amount for line in self.lines), Decimal("0"))

    def to_list(self) -> List[Dict[str, Any]]:
        return [line.to_dict() for line in self.lines]


def _same_name(left: Any, right: Any) -> bool:
    return str(left or "").strip().casefold() == str(right or "").strip().casefold()


def _explicitly_false(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "false"
    return value is False


def is_component_taxable(name: str, details: Any, take_home_component: Optional[str] = None) -> bool:
    """
    Taxability of a breakup component.

    Taxable unless the metadata explicitly says ``isTaxable: false``.
    Unreadable metadata counts as taxable.
    """
    if take_home_component and _same_name(name, take_home_component):
        return True

    if isinstance(details, (str, bytes)):
        try:
            details = json.loads(details)
        except ValueError:
            logger.warning(f"Unreadable taxability metadata on breakup component '{name}'")
            return True

    if isinstance(details, list):
        for entry in details:
            if isinstance(entry, dict) and _same_name(entry.get("typeName"), name):
                return not _explicitly_false(entry.get("isTaxable"))
        return True

    if isinstance(details, dict):
        return not _explicitly_false(details.get("isTaxable"))

    return True


def allocate_breakup(
    package: Any,
    components: Sequence[Any],
    basic_component: Optional[str] = None,
    take_home_component: Optional[str] = None,
) -> BreakupResult:
    """
    Allocate ``package`` over ``components`` (``name``, ``percentage``,
    ``details``). Amounts are whole currency units; any rounding
    difference is absorbed by the last line.
    """
    package = to_decimal(package)
    lines = []

    for component in components:
        percentage = component.percentage
        amount = round_whole(percent_of(package, percentage)) if percentage is not None else Decimal("0")
        lines.append(BreakupLine(
            component_id=component.id,
            name=component.name,
            percentage=to_decimal(percentage) if percentage is not None else None,
            amount=amount,
            is_taxable=is_component_taxable(component.name, component.details, take_home_component),
        ))

    result = BreakupResult(lines=lines)

    target = round_whole(package)
    if lines and result.total != target:
        lines[-1].amount += target - result.total

    basic_line = next(
        (line for line in lines if basic_component and _same_name(line.name, basic_component)),
        None,
    )
    result.basic_salary = basic_line.amount if basic_line else package
    return result
