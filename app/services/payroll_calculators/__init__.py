"""
Paywise Payroll Engine - Payroll Calculators Package

Pure calculation steps, applied per employee by the payroll orchestrator.

Modules:
- package: effective (prorated) package across mid-month increments
- breakup: salary breakup allocation and component taxability
- attendance: absence / late / half-day / short-day penalties
- overtime: overtime requests plus holiday / weekly-off attendance work
- adhoc: allowances, bonuses, leave encashments, ad-hoc deductions
- statutory: EOBI, provident fund, social security
- tax: slab-based withholding tax with rebates
- loans: loan installments and salary advance recovery
"""

from app.services.payroll_calculators.package import calculate_effective_package, PackageResult
from app.services.payroll_calculators.breakup import allocate_breakup, is_component_taxable, BreakupResult
from app.services.payroll_calculators.attendance import calculate_attendance_deduction, AttendanceResult
from app.services.payroll_calculators.overtime import calculate_overtime, is_holiday, is_weekly_off, OvertimeResult
from app.services.payroll_calculators.adhoc import collect_adhoc, AdhocResult
from app.services.payroll_calculators.statutory import calculate_statutory, StatutoryResult
from app.services.payroll_calculators.tax import calculate_tax, TaxSlabBand, TaxResult
from app.services.payroll_calculators.loans import calculate_recoveries, RecoveryResult

__all__ = [
    "calculate_effective_package",
    "PackageResult",
    "allocate_breakup",
    "is_component_taxable",
    "BreakupResult",
    "calculate_attendance_deduction",
    "AttendanceResult",
    "calculate_overtime",
    "is_holiday",
    "is_weekly_off",
    "OvertimeResult",
    "collect_adhoc",
    "AdhocResult",
    "calculate_statutory",
    "StatutoryResult",
    "calculate_tax",
    "TaxSlabBand",
    "TaxResult",
    "calculate_recoveries",
    "RecoveryResult",
]
