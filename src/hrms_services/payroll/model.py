from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from ..common.datetime_utils import parse_timestamp
from ..core.enums import PayrollStatus, parse_stored


def _money(value: Any) -> float:
    return float(value or 0)


@dataclass(frozen=True)
class Payroll:
    """Domain entity: one employee's payroll for a month."""

    id: str
    user_id: str
    company_id: str
    month: int
    year: int
    working_days: int
    present_days: int
    paid_leave_days: int
    unpaid_leave_days: int
    base_salary: float
    deductions: float
    net_salary: float
    status: PayrollStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Payroll":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            company_id=str(row["company_id"]),
            month=int(row["month"]),
            year=int(row["year"]),
            working_days=int(row.get("working_days") or 0),
            present_days=int(row.get("present_days") or 0),
            paid_leave_days=int(row.get("paid_leave_days") or 0),
            unpaid_leave_days=int(row.get("unpaid_leave_days") or 0),
            base_salary=_money(row.get("base_salary")),
            deductions=_money(row.get("deductions")),
            net_salary=_money(row.get("net_salary")),
            status=parse_stored(PayrollStatus, row["status"]),
            created_at=parse_timestamp(row.get("created_at")),
            updated_at=parse_timestamp(row.get("updated_at")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "company_id": self.company_id,
            "month": self.month,
            "year": self.year,
            "working_days": self.working_days,
            "present_days": self.present_days,
            "paid_leave_days": self.paid_leave_days,
            "unpaid_leave_days": self.unpaid_leave_days,
            "base_salary": self.base_salary,
            "deductions": self.deductions,
            "net_salary": self.net_salary,
            "status": self.status.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class PayrollCalculation:
    """Result of the `calculate_payroll` procedure."""

    base_salary: float
    deductions: float
    net_salary: float

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "PayrollCalculation":
        return cls(
            base_salary=_money(row.get("base_salary")),
            deductions=_money(row.get("deductions")),
            net_salary=_money(row.get("net_salary")),
        )
