"""Payroll arithmetic."""

from hr_system.calculators.pay_calculator import (
    InvalidMonthError,
    PayCalculator,
    month_bounds,
)
from hr_system.calculators.types import (
    AdvanceInstallment,
    CompensationItem,
    EmployeePay,
    PayrollSummary,
)

__all__ = [
    "AdvanceInstallment",
    "CompensationItem",
    "EmployeePay",
    "InvalidMonthError",
    "PayCalculator",
    "PayrollSummary",
    "month_bounds",
]
