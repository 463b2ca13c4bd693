"""User reader protocol. Users are owned outside this service."""

from typing import Protocol
from uuid import UUID


class IUserReader(Protocol):
    """Read-only access to users."""

    async def has_access(self, account_id: UUID, email: str) -> bool:
        """Check whether a user with this email already has access to the account."""
        ...

    async def exists(self, user_id: UUID) -> bool:
        """Check whether the user exists."""
        ...
