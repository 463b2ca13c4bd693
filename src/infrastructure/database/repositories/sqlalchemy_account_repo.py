"""SQLAlchemy implementation of the Account reader."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.account import AccountSummary
from infrastructure.database.errors import translate_db_errors
from infrastructure.database.models import AccountModel


class SQLAlchemyAccountReader:
    """SQLAlchemy implementation of IAccountReader."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @translate_db_errors
    async def exists(self, account_id: UUID) -> bool:
        """Check whether the account exists."""
        stmt = select(AccountModel.id).where(AccountModel.id == account_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @translate_db_errors
    async def get(self, account_id: UUID) -> AccountSummary | None:
        """Get an account summary by ID."""
        stmt = select(AccountModel).where(AccountModel.id == account_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if not model:
            return None
        return AccountSummary(id=model.id, name=model.name, short_name=model.short_name)
