from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from ..common.base_service import BaseService
from ..common.cache import cache_key
from ..common.datetime_utils import now_utc
from ..common.pagination import Page, PaginationParams, build_page, offset_range
from ..common.validators import require_month, require_non_empty, require_positive
from ..core.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_PAGE_SIZE,
    PAYROLL_TABLE,
    PLACEHOLDER_PAID_LEAVE_DAYS,
    PLACEHOLDER_PRESENT_DAYS,
    PLACEHOLDER_UNPAID_LEAVE_DAYS,
    PLACEHOLDER_WORKING_DAYS,
)
from ..core.enums import PayrollStatus
from ..core.exceptions import NotFoundError
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import Payroll, PayrollCalculation

logger = logging.getLogger(__name__)

_PAYROLL_PREFIX = "payroll:"


class PayrollService(BaseService):
    """Monthly payroll rows: draft creation, status changes and cached reads.

    Attendance figures on new rows are fixed placeholders; the remote
    `calculate_payroll` procedure owns the real computation.
    """

    def __init__(
        self,
        client,
        *,
        calculator: Optional[PayrollCalculator] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        **kwargs,
    ):
        super().__init__(client, **kwargs)
        self._calculator = calculator or StandardPayrollCalculator()
        self._batch_size = int(batch_size)

    # -- reads ----------------------------------------------------------

    def get_payroll(self, params: Optional[PaginationParams] = None) -> Page[Payroll]:
        return self._fetch_paginated(
            PAYROLL_TABLE,
            params or PaginationParams(),
            convert=Payroll.from_row,
            cache_prefix="payroll:list:",
        )

    def get_payroll_by_company(self, company_id: str, *, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Page[Payroll]:
        company_id = require_non_empty(company_id, "Company ID")
        start, end = offset_range(page, page_size)

        def load() -> Page[Payroll]:
            result = (
                self._client.table(PAYROLL_TABLE)
                .select("*", count=True)
                .eq("company_id", company_id)
                .range(start, end)
                .execute()
            )
            return build_page([Payroll.from_row(r) for r in result.data], result.count or 0, page, page_size)

        key = cache_key("payroll", "company", company_id, page, page_size)
        return self._cached(key, load, "Get payroll by company")

    def get_payroll_by_user_and_month(self, user_id: str, month: int, year: int) -> Optional[Payroll]:
        user_id = require_non_empty(user_id, "User ID")
        month = require_month(month)

        def load() -> Optional[Payroll]:
            row = (
                self._client.table(PAYROLL_TABLE)
                .select("*")
                .eq("user_id", user_id)
                .eq("month", month)
                .eq("year", int(year))
                .maybe_single()
            )
            return Payroll.from_row(row) if row else None

        key = cache_key("payroll", "user", user_id, month, year)
        return self._cached(key, load, f"Get payroll {user_id}:{month}:{year}", keep=lambda p: p is not None)

    # -- writes ---------------------------------------------------------

    def process_payroll(
        self,
        *,
        company_id: str,
        month: int,
        year: int,
        employee_ids: Sequence[str],
        base_salary: Optional[float] = None,
        deductions: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> List[Payroll]:
        """Create one draft row per employee for the period in a single insert."""
        company_id = require_non_empty(company_id, "Company ID")
        month = require_month(month)
        if not employee_ids:
            return []
        now = now or now_utc()

        base = float(base_salary or 0)
        deducted = float(deductions or 0)
        net = self._calculator.net_salary(base, deducted)
        rows = [self._draft_row(user_id, company_id, month, year, base, deducted, net, now) for user_id in employee_ids]

        def op() -> List[Payroll]:
            inserted = self._client.table(PAYROLL_TABLE).insert(rows).execute().data
            return [Payroll.from_row(r) for r in inserted]

        payrolls = self._with_retry(op, "Process payroll")
        logger.info("processed %d payroll row(s) company=%s period=%02d/%d", len(payrolls), company_id, month, year)
        self._clear_cache(_PAYROLL_PREFIX)
        return payrolls

    def bulk_process_payroll(
        self,
        company_id: str,
        employee_ids: Sequence[str],
        month: int,
        year: int,
        *,
        now: Optional[datetime] = None,
    ) -> List[Payroll]:
        """Like `process_payroll` with zero salary figures, inserted in batches."""
        company_id = require_non_empty(company_id, "Company ID")
        month = require_month(month)
        now = now or now_utc()

        def insert_batch(batch: List[str]) -> List[Payroll]:
            rows = [self._draft_row(user_id, company_id, month, year, 0.0, 0.0, 0.0, now) for user_id in batch]
            inserted = self._client.table(PAYROLL_TABLE).insert(rows).execute().data
            return [Payroll.from_row(r) for r in inserted]

        payrolls = self._batch_operation(list(employee_ids), insert_batch, self._batch_size, "Bulk process payroll")
        if payrolls:
            logger.info("bulk processed %d payroll row(s) company=%s", len(payrolls), company_id)
            self._clear_cache(_PAYROLL_PREFIX)
        return payrolls

    def update_payroll_status(self, payroll_id: str, status: PayrollStatus, *, now: Optional[datetime] = None) -> Payroll:
        """Set the status. No transition check: any status may follow any other."""
        payroll_id = require_non_empty(payroll_id, "Payroll ID")
        status = PayrollStatus(status)
        now = now or now_utc()

        def op() -> Payroll:
            row = (
                self._client.table(PAYROLL_TABLE)
                .update({"status": status.value, "updated_at": now})
                .eq("id", payroll_id)
                .single()
            )
            return Payroll.from_row(row)

        payroll = self._with_retry(op, f"Update payroll {payroll_id}")
        logger.info("payroll %s -> %s", payroll_id, status.value)
        self._clear_cache(_PAYROLL_PREFIX)
        return payroll

    def calculate_payroll(self, user_id: str, month: int, year: int) -> PayrollCalculation:
        user_id = require_non_empty(user_id, "User ID")
        month = require_month(month)
        year = require_positive(year, "year")

        def op() -> PayrollCalculation:
            rows = self._client.rpc("calculate_payroll", {"user_id": user_id, "month": month, "year": year})
            if not rows:
                raise NotFoundError(f"No payroll calculation for {user_id} in {month}/{year}")
            return PayrollCalculation.from_row(rows[0])

        return self._with_retry(op, f"Calculate payroll {user_id}:{month}:{year}")

    # -- helpers --------------------------------------------------------

    @staticmethod
    def _draft_row(
        user_id: str,
        company_id: str,
        month: int,
        year: int,
        base_salary: float,
        deductions: float,
        net_salary: float,
        now: datetime,
    ) -> Dict[str, Any]:
        return {
            "user_id": user_id,
            "company_id": company_id,
            "month": month,
            "year": int(year),
            "working_days": PLACEHOLDER_WORKING_DAYS,
            "present_days": PLACEHOLDER_PRESENT_DAYS,
            "paid_leave_days": PLACEHOLDER_PAID_LEAVE_DAYS,
            "unpaid_leave_days": PLACEHOLDER_UNPAID_LEAVE_DAYS,
            "base_salary": base_salary,
            "deductions": deductions,
            "net_salary": net_salary,
            "status": PayrollStatus.DRAFT.value,
            "created_at": now,
            "updated_at": now,
        }
