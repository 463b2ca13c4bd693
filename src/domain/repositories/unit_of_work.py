"""Unit of Work protocol."""

from typing import Protocol

from domain.repositories.access_repository import IAccessRepository
from domain.repositories.account_repository import IAccountReader
from domain.repositories.invitation_repository import IInvitationRepository
from domain.repositories.user_repository import IUserReader


class IUnitOfWork(Protocol):
    """Unit of Work interface for managing transactions."""

    invitations: IInvitationRepository
    access: IAccessRepository
    accounts: IAccountReader
    users: IUserReader

    async def commit(self) -> None:
        """Commit the current transaction."""
        ...

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        ...

    async def __aenter__(self) -> "IUnitOfWork":
        """Enter the context manager."""
        ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore
        """Exit the context manager."""
        ...
