from __future__ import annotations

from ..core.constants import PROFILES_TABLE
from ..core.exceptions import NotFoundError, ValidationError
from ..database.query import DataClient
from .model import Profile


class ProfileLookup:
    """Resolves the company a user belongs to before attendance/payroll writes."""

    def __init__(self, client: DataClient):
        self._client = client

    def get_profile(self, user_id: str) -> Profile:
        rows = self._client.table(PROFILES_TABLE).select("id,company_id").eq("id", user_id).execute().data
        if not rows:
            raise NotFoundError("User profile not found")
        return Profile.from_row(rows[0])

    def company_for_user(self, user_id: str) -> str:
        profile = self.get_profile(user_id)
        if not profile.company_id:
            raise ValidationError("User is not assigned to any company")
        return profile.company_id
