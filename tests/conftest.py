from __future__ import annotations

from datetime import datetime, timezone

import pytest

from hrms_services.attendance.service import AttendanceService
from hrms_services.common.retry import RetryPolicy
from hrms_services.core.exceptions import TransientRemoteError
from hrms_services.database.memory import InMemoryDataClient
from hrms_services.payroll.service import PayrollService


class FlakyClient(InMemoryDataClient):
    """Fails the first `failures` calls with a transient error."""

    def __init__(self, *args, failures: int = 1, **kwargs):
        super().__init__(*args, **kwargs)
        self.failures = failures

    def run(self, query):
        if self.failures > 0:
            self.failures -= 1
            self.history.append(("failed", query.table))
            raise TransientRemoteError("connection reset")
        return super().run(query)


PROFILES = [
    {"id": "u1", "company_id": "c1"},
    {"id": "u2", "company_id": "c1"},
    {"id": "u3", "company_id": None},
]


@pytest.fixture
def fixed_now():
    return datetime(2026, 2, 2, 8, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def retry_policy():
    return RetryPolicy(max_attempts=3, delay_seconds=0.0)


@pytest.fixture
def client():
    return InMemoryDataClient({"profiles": PROFILES})


@pytest.fixture
def flaky_client():
    return FlakyClient({"profiles": PROFILES}, failures=1)


@pytest.fixture
def attendance(client, retry_policy):
    return AttendanceService(client, retry_policy=retry_policy)


@pytest.fixture
def payroll(client, retry_policy):
    return PayrollService(client, retry_policy=retry_policy)
