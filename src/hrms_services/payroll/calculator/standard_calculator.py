from __future__ import annotations

from .base import PayrollCalculator


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: base salary minus deductions, missing values count as 0."""

    def net_salary(self, base_salary: float, deductions: float) -> float:
        return float(base_salary or 0) - float(deductions or 0)
