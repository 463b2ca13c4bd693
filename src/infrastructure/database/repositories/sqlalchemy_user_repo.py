"""SQLAlchemy implementation of the User reader."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.errors import translate_db_errors
from infrastructure.database.models import AccountAccessModel, UserModel


class SQLAlchemyUserReader:
    """SQLAlchemy implementation of IUserReader."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @translate_db_errors
    async def exists(self, user_id: UUID) -> bool:
        """Check whether the user exists."""
        stmt = select(UserModel.id).where(UserModel.id == user_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @translate_db_errors
    async def has_access(self, account_id: UUID, email: str) -> bool:
        """Check for an access record held by the user with this email."""
        stmt = (
            select(AccountAccessModel.id)
            .join(UserModel, UserModel.id == AccountAccessModel.user_id)
            .where(
                AccountAccessModel.account_id == account_id,
                UserModel.email == email,
            )
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None
