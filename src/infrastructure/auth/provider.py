"""Identity of the caller, as carried by a bearer token."""

from dataclasses import dataclass
from typing import Optional, Protocol
from uuid import UUID


@dataclass
class TokenUser:
    """The authenticated caller.

    ``id`` is the token subject and is also the key used for account access
    records; ``email`` is what invitations are addressed to.
    """

    id: UUID
    email: str
    display_name: Optional[str] = None


class IAuthProvider(Protocol):
    """Verifies bearer tokens and, for local use and tests, issues them."""

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """Return the caller for a valid token, None for anything else."""
        ...

    def create_token(self, user: TokenUser) -> str:
        ...
