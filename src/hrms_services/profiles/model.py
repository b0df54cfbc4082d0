from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class Profile:
    """Read-only view of a user profile: just enough to resolve the tenant."""

    id: str
    company_id: Optional[str]

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Profile":
        company_id = row.get("company_id")
        return cls(id=str(row["id"]), company_id=str(company_id) if company_id else None)
