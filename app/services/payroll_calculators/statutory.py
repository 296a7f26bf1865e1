"""
Statutory Calculator

EOBI, provident fund and social-security contributions. Missing master
data never fails a payroll: the amount is zero and a warning is returned.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from app.models.enums import RecordStatus
from app.services.payroll_data_service import PayrollPeriod
from app.utils.money import to_decimal, percent_of, parse_period_label


@dataclass
class StatutoryResult:
    eobi: Decimal = Decimal("0")
    eobi_employer: Decimal = Decimal("0")
    provident_fund: Decimal = Decimal("0")
    social_security: Decimal = Decimal("0")
    social_security_rate: Decimal = Decimal("0")
    social_security_institution: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "eobi": str(self.eobi),
            "eobi_employer": str(self.eobi_employer),
            "provident_fund": str(self.provident_fund),
            "social_security": str(self.social_security),
            "social_security_rate": str(self.social_security_rate),
            "social_security_institution": self.social_security_institution,
        }


def find_eobi_record(records: Sequence[Any], period: PayrollPeriod) -> Optional[Any]:
    """First record whose ``year_month`` names the period ("January 2024" or "2024-01")."""
    for record in records:
        if parse_period_label(record.year_month) == (period.year, period.month):
            return record
    return None


def _is_active(record: Any) -> bool:
    status = getattr(record, "status", None)
    return status is None or getattr(status, "value", status) == RecordStatus.ACTIVE.value


def resolve_social_security_institution(employee: Any) -> Optional[Any]:
    """Direct institution reference, else the most recent active registration's."""
    institution = getattr(employee, "social_security_institution", None)
    if institution is not None:
        return institution

    registrations = [
        reg for reg in (getattr(employee, "social_security_registrations", None) or [])
        if _is_active(reg) and reg.institution is not None
    ]
    if not registrations:
        return None
    latest = max(registrations, key=lambda reg: reg.registration_date)
    return latest.institution


def calculate_statutory(
    employee: Any,
    gross_salary: Any,
    period: PayrollPeriod,
    eobi_records: Sequence[Any],
    provident_fund: Optional[Any],
) -> StatutoryResult:
    gross = to_decimal(gross_salary)
    result = StatutoryResult()

    if employee.eobi:
        record = find_eobi_record(eobi_records, period)
        if record is None:
            result.warnings.append(f"No EOBI record for {period.month_name} {period.year}")
        else:
            contribution = record.employee_contribution
            result.eobi = to_decimal(contribution if contribution is not None else record.amount)
            result.eobi_employer = to_decimal(record.employer_contribution)

    if employee.provident_fund:
        if provident_fund is None:
            result.warnings.append("No active provident fund configured")
        else:
            result.provident_fund = percent_of(gross, provident_fund.percentage)

    institution = resolve_social_security_institution(employee)
    if institution is None:
        result.warnings.append("No social security institution")
    else:
        result.social_security_rate = to_decimal(institution.contribution_rate)
        result.social_security_institution = institution.name
        result.social_security = percent_of(gross, result.social_security_rate)

    return result
