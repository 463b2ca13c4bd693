"""Account access repository protocol."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from domain.entities.account import AccountAccess
from domain.entities.invitation import Role
from domain.results import GrantResult


class IAccessRepository(Protocol):
    """Repository interface for AccountAccess grants."""

    async def grant(
        self,
        account_id: UUID,
        user_id: UUID,
        role: Role,
        granted_at: datetime | None = None,
    ) -> GrantResult:
        """Create the access record, or return the existing one as AlreadyGranted."""
        ...

    async def find_by_account_and_user(
        self, account_id: UUID, user_id: UUID
    ) -> AccountAccess | None:
        """Get a user's access record for an account."""
        ...
