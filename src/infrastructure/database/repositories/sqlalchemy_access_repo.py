"""SQLAlchemy implementation of the AccountAccess repository."""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.account import AccountAccess
from domain.entities.invitation import Role
from domain.results import AlreadyGranted, Granted, GrantResult
from infrastructure.database.errors import translate_db_errors
from infrastructure.database.models import AccountAccessModel


class SQLAlchemyAccessRepository:
    """SQLAlchemy implementation of IAccessRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @translate_db_errors
    async def grant(
        self,
        account_id: UUID,
        user_id: UUID,
        role: Role,
        granted_at: datetime | None = None,
    ) -> GrantResult:
        """Insert the access record; the unique constraint settles concurrent grants."""
        model = AccountAccessModel(
            account_id=account_id,
            user_id=user_id,
            role=role.value,
            created_at=granted_at or datetime.now(timezone.utc).replace(tzinfo=None),
        )
        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError:
            await self._session.rollback()
            existing = await self.find_by_account_and_user(account_id, user_id)
            if existing is None:
                # Not a uniqueness failure (e.g. unknown user or account)
                raise
            return AlreadyGranted(access=existing)
        return Granted(access=self._to_entity(model))

    @translate_db_errors
    async def find_by_account_and_user(
        self, account_id: UUID, user_id: UUID
    ) -> AccountAccess | None:
        """Get a user's access record for an account."""
        stmt = select(AccountAccessModel).where(
            AccountAccessModel.account_id == account_id,
            AccountAccessModel.user_id == user_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    def _to_entity(self, model: AccountAccessModel) -> AccountAccess:
        """Convert ORM model to domain entity."""
        return AccountAccess(
            id=model.id,
            account_id=model.account_id,
            user_id=model.user_id,
            role=Role(model.role),
            created_at=model.created_at,
        )
