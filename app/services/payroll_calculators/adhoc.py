"""
Ad-hoc Adder/Subtracter

Period-scoped allowances, bonuses, leave encashments and deductions.
Allowances and bonuses paid separately are listed but do not enter gross.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from app.models.enums import PaymentMethod
from app.utils.money import to_decimal


@dataclass
class AdhocLine:
    item_id: Any
    name: str
    amount: Decimal
    is_taxable: bool = False
    payment_method: Optional[str] = None

    @property
    def with_salary(self) -> bool:
        return self.payment_method in (None, PaymentMethod.WITH_SALARY.value)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": str(self.item_id) if self.item_id else None,
            "name": self.name,
            "amount": str(self.amount),
            "is_taxable": self.is_taxable,
        }
        if self.payment_method is not None:
            data["payment_method"] = self.payment_method
        return data


@dataclass
class AdhocGroup:
    lines: List[AdhocLine] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        """Amount paid (or deducted) with this period's salary."""
        return sum((line.amount for line in self.lines if line.with_salary), Decimal("0"))

    def to_list(self) -> List[Dict[str, Any]]:
        return [line.to_dict() for line in self.lines]


@dataclass
class AdhocResult:
    allowances: AdhocGroup = field(default_factory=AdhocGroup)
    bonuses: AdhocGroup = field(default_factory=AdhocGroup)
    leave_encashments: AdhocGroup = field(default_factory=AdhocGroup)
    deductions: AdhocGroup = field(default_factory=AdhocGroup)

    @property
    def additions(self) -> Decimal:
        return self.allowances.total + self.bonuses.total + self.leave_encashments.total


def _head_name(item: Any, relation: str, default: str) -> str:
    head = getattr(item, relation, None)
    return getattr(head, "name", None) or default


def _payment_method(item: Any) -> str:
    method = getattr(item, "payment_method", None)
    return getattr(method, "value", method) or PaymentMethod.WITH_SALARY.value


def _bool(value: Any, default: bool) -> bool:
    return default if value is None else bool(value)


def collect_adhoc(
    allowances: Sequence[Any] = (),
    bonuses: Sequence[Any] = (),
    leave_encashments: Sequence[Any] = (),
    deductions: Sequence[Any] = (),
) -> AdhocResult:
    result = AdhocResult()

    for item in allowances:
        result.allowances.lines.append(AdhocLine(
            item_id=item.id,
            name=_head_name(item, "allowance_head", "Allowance"),
            amount=to_decimal(item.amount),
            is_taxable=_bool(item.is_taxable, True),
            payment_method=_payment_method(item),
        ))

    for item in bonuses:
        result.bonuses.lines.append(AdhocLine(
            item_id=item.id,
            name=_head_name(item, "bonus_type", "Bonus"),
            amount=to_decimal(item.amount),
            payment_method=_payment_method(item),
        ))

    for item in leave_encashments:
        result.leave_encashments.lines.append(AdhocLine(
            item_id=item.id,
            name="Leave Encashment",
            amount=to_decimal(item.amount),
            is_taxable=_bool(item.is_taxable, True),
        ))

    for item in deductions:
        result.deductions.lines.append(AdhocLine(
            item_id=item.id,
            name=_head_name(item, "deduction_head", "Deduction"),
            amount=to_decimal(item.amount),
            is_taxable=_bool(item.is_taxable, False),
        ))

    return result
