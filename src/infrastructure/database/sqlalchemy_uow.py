"""SQLAlchemy Unit of Work implementation."""

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from infrastructure.database.errors import translate_db_errors
from infrastructure.database.repositories.sqlalchemy_access_repo import SQLAlchemyAccessRepository
from infrastructure.database.repositories.sqlalchemy_account_repo import SQLAlchemyAccountReader
from infrastructure.database.repositories.sqlalchemy_invitation_repo import SQLAlchemyInvitationRepository
from infrastructure.database.repositories.sqlalchemy_user_repo import SQLAlchemyUserReader


class SQLAlchemyUnitOfWork:
    """Unit of Work implementation using SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._session: Optional[AsyncSession] = None

    def _require_session(self) -> AsyncSession:
        if not self._session:
            raise RuntimeError("UnitOfWork not initialized. Use as context manager.")
        return self._session

    @property
    def invitations(self) -> SQLAlchemyInvitationRepository:
        """Get invitation repository."""
        return SQLAlchemyInvitationRepository(self._require_session())

    @property
    def access(self) -> SQLAlchemyAccessRepository:
        """Get account access repository."""
        return SQLAlchemyAccessRepository(self._require_session())

    @property
    def accounts(self) -> SQLAlchemyAccountReader:
        """Get account reader."""
        return SQLAlchemyAccountReader(self._require_session())

    @property
    def users(self) -> SQLAlchemyUserReader:
        """Get user reader."""
        return SQLAlchemyUserReader(self._require_session())

    @translate_db_errors
    async def commit(self) -> None:
        """Commit the current transaction."""
        if self._session:
            await self._session.commit()

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        if self._session:
            await self._session.rollback()

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        """Enter the context manager and create session."""
        self._session = self._session_factory()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[Exception],
        exc_tb: Any,
    ) -> None:
        """Exit the context manager and cleanup."""
        if self._session:
            if exc_type:
                await self.rollback()
            await self._session.close()
            self._session = None
