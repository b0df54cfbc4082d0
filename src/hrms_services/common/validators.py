from __future__ import annotations

from ..core.exceptions import ValidationError


def require_non_empty(value, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_month(month: int) -> int:
    if not 1 <= int(month) <= 12:
        raise ValidationError(f"Month must be between 1 and 12, got {month}")
    return int(month)


def require_positive(value: int, field_name: str) -> int:
    if value is None or int(value) < 1:
        raise ValidationError(f"{field_name} must be a positive integer")
    return int(value)
