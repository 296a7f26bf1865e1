"""
Tax Calculator

Withholding tax from progressive slabs over annual taxable income.

Annual taxable income = 12 x (taxable breakup components) - rebates, floored at 0.
Annual tax = fixed_amount + (income - min_amount) x rate / 100
Monthly tax = annual tax / 12
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from app.services.payroll_calculators.breakup import BreakupLine
from app.utils.money import to_decimal, percent_of

MONTHS_PER_YEAR = Decimal("12")


@dataclass
class TaxSlabBand:
    """Annual income band."""
    min_amount: Decimal
    max_amount: Decimal
    rate: Decimal
    fixed_amount: Decimal
    slab_id: Any = None
    name: Optional[str] = None

    @classmethod
    def from_record(cls, record: Any) -> "TaxSlabBand":
        return cls(
            min_amount=to_decimal(record.min_amount),
            max_amount=to_decimal(record.max_amount),
            rate=to_decimal(record.rate),
            fixed_amount=to_decimal(record.fixed_amount),
            slab_id=record.id,
            name=getattr(record, "name", None),
        )

    def contains(self, income: Decimal) -> bool:
        return self.min_amount <= income <= self.max_amount

    def excess_tax(self, income: Decimal) -> Decimal:
        return percent_of(income - self.min_amount, self.rate)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.slab_id) if self.slab_id else None,
            "name": self.name,
            "min_amount": str(self.min_amount),
            "max_amount": str(self.max_amount),
            "rate": str(self.rate),
            "fixed_amount": str(self.fixed_amount),
        }


@dataclass
class TaxResult:
    monthly_taxable: Decimal = Decimal("0")
    annual_taxable_components: Decimal = Decimal("0")
    taxable_components: List[Dict[str, Any]] = field(default_factory=list)
    rebates: List[Dict[str, Any]] = field(default_factory=list)
    total_rebate: Decimal = Decimal("0")
    taxable_income: Decimal = Decimal("0")
    slab: Optional[TaxSlabBand] = None
    fixed_tax: Decimal = Decimal("0")
    percentage_tax: Decimal = Decimal("0")
    annual_tax: Decimal = Decimal("0")
    monthly_tax: Decimal = Decimal("0")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "monthly_taxable": str(self.monthly_taxable),
            "annual_taxable_components": str(self.annual_taxable_components),
            "taxable_components": self.taxable_components,
            "rebates": self.rebates,
            "total_rebate": str(self.total_rebate),
            "taxable_income": str(self.taxable_income),
            "tax_slab": self.slab.to_dict() if self.slab else None,
            "fixed_tax": str(self.fixed_tax),
            "percentage_tax": str(self.percentage_tax),
            "annual_tax": str(self.annual_tax),
            "monthly_tax": str(self.monthly_tax),
        }


def find_slab(income: Decimal, slabs: Sequence[TaxSlabBand]) -> Optional[TaxSlabBand]:
    """Slab containing ``income``; the greatest ``min_amount`` wins on overlap."""
    matching = [slab for slab in slabs if slab.contains(income)]
    if not matching:
        return None
    return max(matching, key=lambda slab: slab.min_amount)


def calculate_tax(
    breakup_lines: Sequence[BreakupLine],
    rebates: Sequence[Any],
    slabs: Sequence[Any],
) -> TaxResult:
    """``slabs`` may be TaxSlab records or TaxSlabBand instances."""
    result = TaxResult()

    for line in breakup_lines:
        if line.is_taxable and line.amount > 0:
            result.monthly_taxable += line.amount
            result.taxable_components.append({"name": line.name, "amount": str(line.amount)})

    result.annual_taxable_components = result.monthly_taxable * MONTHS_PER_YEAR

    for rebate in rebates:
        amount = to_decimal(rebate.rebate_amount)
        result.total_rebate += amount
        nature = getattr(rebate, "rebate_nature", None)
        result.rebates.append({
            "id": str(rebate.id) if rebate.id else None,
            "nature": getattr(nature, "name", None),
            "amount": str(amount),
        })

    result.taxable_income = max(Decimal("0"), result.annual_taxable_components - result.total_rebate)

    if result.taxable_income > 0:
        bands = [s if isinstance(s, TaxSlabBand) else TaxSlabBand.from_record(s) for s in slabs]
        slab = find_slab(result.taxable_income, bands)
        if slab is not None:
            result.slab = slab
            result.fixed_tax = slab.fixed_amount
            result.percentage_tax = slab.excess_tax(result.taxable_income)
            result.annual_tax = result.fixed_tax + result.percentage_tax
            result.monthly_tax = result.annual_tax / MONTHS_PER_YEAR

    return result
