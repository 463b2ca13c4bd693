"""Account reader protocol. Accounts are owned outside this service."""

from typing import Protocol
from uuid import UUID

from domain.entities.account import AccountSummary


class IAccountReader(Protocol):
    """Read-only access to accounts."""

    async def exists(self, account_id: UUID) -> bool:
        """Check whether the account exists."""
        ...

    async def get(self, account_id: UUID) -> AccountSummary | None:
        """Get an account summary by ID."""
        ...
