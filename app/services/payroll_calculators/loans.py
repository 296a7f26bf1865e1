"""
Loan/Advance Amortizer

Loans are repaid in equal installments starting at
``repayment_start_month_year``; advances are recovered in full in their
deduction month.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Sequence

from app.services.payroll_data_service import PayrollPeriod
from app.utils.money import to_decimal, parse_month, parse_year, parse_period_label

logger = logging.getLogger(__name__)


@dataclass
class RecoveryResult:
    loan_total: Decimal = Decimal("0")
    advance_total: Decimal = Decimal("0")
    loans: List[Dict[str, Any]] = field(default_factory=list)
    advances: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def months_elapsed(period: PayrollPeriod, start_year: int, start_month: int) -> int:
    return (period.year - start_year) * 12 + (period.month - start_month)


def advance_matches(advance: Any, period: PayrollPeriod) -> bool:
    """Match on (deduction_month, deduction_year) or the combined YYYY-MM label."""
    month = parse_month(advance.deduction_month)
    year = parse_year(advance.deduction_year)
    if (year, month) == (period.year, period.month):
        return True
    return parse_period_label(advance.deduction_month_year) == (period.year, period.month)


def calculate_recoveries(
    loans: Sequence[Any],
    advances: Sequence[Any],
    period: PayrollPeriod,
) -> RecoveryResult:
    result = RecoveryResult()

    for loan in loans:
        label = loan.repayment_start_month_year
        start = parse_period_label(label) if label and "-" in str(label) else None
        installments = loan.number_of_installments or 0
        if start is None or installments <= 0:
            message = f"Loan {loan.id} skipped: repayment start '{label}', installments {loan.number_of_installments}"
            logger.warning(message)
            result.warnings.append(message)
            continue

        elapsed = months_elapsed(period, *start)
        if 0 <= elapsed < installments:
            installment = to_decimal(loan.amount) / Decimal(installments)
            result.loan_total += installment
            result.loans.append({
                "id": str(loan.id),
                "loan_type": loan.loan_type,
                "amount": str(to_decimal(loan.amount)),
                "installment": str(installment),
                "installment_number": elapsed + 1,
                "total_installments": installments,
            })

    for advance in advances:
        if advance_matches(advance, period):
            amount = to_decimal(advance.amount)
            result.advance_total += amount
            result.advances.append({
                "id": str(advance.id),
                "amount": str(amount),
                "reason": advance.reason,
            })

    return result
