from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.presenter import AttendanceActions
from .attendance.service import AttendanceService
from .common.retry import RetryPolicy
from .core.constants import DEFAULT_BATCH_SIZE
from .core.exceptions import ValidationError
from .database.connection import DBConfig, DatabaseConnection
from .database.memory import InMemoryDataClient
from .database.mysql_client import MySQLDataClient
from .database.query import DataClient
from .payroll.service import PayrollService
from .profiles.lookup import ProfileLookup


@dataclass(frozen=True)
class Container:
    client: DataClient
    profiles: ProfileLookup

    attendance_service: AttendanceService
    payroll_service: PayrollService
    attendance_actions: AttendanceActions


def build_client(*, db_backend: str, db_config: Optional[dict] = None) -> DataClient:
    backend = (db_backend or "mysql").lower()
    if backend == "memory":
        return InMemoryDataClient()
    if backend == "mysql":
        if not db_config:
            raise ValidationError("DB_CONFIG is required for the mysql backend")
        return MySQLDataClient(DatabaseConnection.get_instance(DBConfig.from_dict(db_config)))
    raise ValidationError(f"Unknown DB_BACKEND: {db_backend}")


def build_container(
    *,
    db_config: Optional[dict] = None,
    db_backend: str = "mysql",
    retry_policy: Optional[RetryPolicy] = None,
    payroll_batch_size: int = DEFAULT_BATCH_SIZE,
    client: Optional[DataClient] = None,
) -> Container:
    client = client or build_client(db_backend=db_backend, db_config=db_config)
    retry_policy = retry_policy or RetryPolicy()

    profiles = ProfileLookup(client)
    attendance_service = AttendanceService(client, profiles=profiles, retry_policy=retry_policy)
    payroll_service = PayrollService(client, retry_policy=retry_policy, batch_size=payroll_batch_size)
    attendance_actions = AttendanceActions(attendance_service)

    return Container(
        client=client,
        profiles=profiles,
        attendance_service=attendance_service,
        payroll_service=payroll_service,
        attendance_actions=attendance_actions,
    )
