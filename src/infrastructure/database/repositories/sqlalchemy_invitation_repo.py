"""SQLAlchemy implementation of Invitation repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.invitation import Invitation, Role, TransitionField
from domain.results import (
    AlreadyResolved,
    InsertConflict,
    InsertResult,
    NotFound,
    Transitioned,
    TransitionResult,
)
from infrastructure.database.errors import translate_db_errors
from infrastructure.database.models import AccountInvitationModel

_OPEN = (
    AccountInvitationModel.accepted_at.is_(None),
    AccountInvitationModel.declined_at.is_(None),
    AccountInvitationModel.revoked_at.is_(None),
    AccountInvitationModel.superseded_at.is_(None),
)


class SQLAlchemyInvitationRepository:
    """SQLAlchemy implementation of IInvitationRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @translate_db_errors
    async def insert(self, invitation: Invitation) -> InsertResult:
        """Insert an invitation, relying on the open-row unique index for races."""
        model = self._to_model(invitation)
        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError:
            # The insert is the only write in flight; nothing else to keep
            await self._session.rollback()
            return InsertConflict(account_id=invitation.account_id, email=invitation.email)
        return self._to_entity(model)

    @translate_db_errors
    async def get_by_id(self, id: UUID) -> Invitation | None:
        """Get an invitation by its primary key."""
        model = await self._get_model(id)
        return self._to_entity(model) if model else None

    @translate_db_errors
    async def find_active_by_account_and_email(
        self, account_id: UUID, email: str
    ) -> Invitation | None:
        """Get the open invitation for an account and email, if any."""
        stmt = select(AccountInvitationModel).where(
            AccountInvitationModel.account_id == account_id,
            AccountInvitationModel.email == email,
            *_OPEN,
        )
        result = await self._session.execute(stmt.execution_options(populate_existing=True))
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    @translate_db_errors
    async def list_by_account(self, account_id: UUID) -> list[Invitation]:
        """Get all invitations for an account, newest first."""
        stmt = (
            select(AccountInvitationModel)
            .where(AccountInvitationModel.account_id == account_id)
            .order_by(AccountInvitationModel.sent_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    @translate_db_errors
    async def transition_if_pending(
        self, id: UUID, field: TransitionField, timestamp: datetime
    ) -> TransitionResult:
        """Compare-and-set a terminal timestamp on an open invitation.

        The WHERE clause carries the "still open" predicate, so of two callers
        racing on the same row exactly one sees a row count of 1.
        """
        stmt = (
            update(AccountInvitationModel)
            .where(AccountInvitationModel.id == id, *_OPEN)
            .values({field.value: timestamp})
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        affected = result.rowcount  # type: ignore[attr-defined]

        model = await self._get_model(id, refresh=True)
        if model is None:
            return NotFound(resource="invitation", resource_id=id)
        if affected == 0:
            return AlreadyResolved(invitation=self._to_entity(model))
        return Transitioned(invitation=self._to_entity(model))

    @translate_db_errors
    async def supersede_if_expired(self, id: UUID, now: datetime) -> bool:
        """Retire an open invitation whose expiry has passed."""
        stmt = (
            update(AccountInvitationModel)
            .where(
                AccountInvitationModel.id == id,
                AccountInvitationModel.expires_at <= now,
                *_OPEN,
            )
            .values(superseded_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0  # type: ignore[attr-defined, no-any-return]

    @translate_db_errors
    async def list_expired_unresolved(self, now: datetime) -> list[Invitation]:
        """Get open invitations past their expiry, oldest expiry first."""
        stmt = (
            select(AccountInvitationModel)
            .where(AccountInvitationModel.expires_at < now, *_OPEN)
            .order_by(AccountInvitationModel.expires_at.asc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def _get_model(self, id: UUID, refresh: bool = False) -> AccountInvitationModel | None:
        stmt = select(AccountInvitationModel).where(AccountInvitationModel.id == id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _to_entity(self, model: AccountInvitationModel) -> Invitation:
        """Convert ORM model to domain entity."""
        return Invitation(
            id=model.id,
            account_id=model.account_id,
            email=model.email,
            role=Role(model.role),
            invited_by_user_id=model.invited_by_user_id,
            sent_at=model.sent_at,
            expires_at=model.expires_at,
            accepted_at=model.accepted_at,
            declined_at=model.declined_at,
            revoked_at=model.revoked_at,
            superseded_at=model.superseded_at,
        )

    def _to_model(self, entity: Invitation) -> AccountInvitationModel:
        """Convert domain entity to ORM model."""
        return AccountInvitationModel(
            id=entity.id,
            account_id=entity.account_id,
            email=entity.email,
            role=entity.role.value,
            invited_by_user_id=entity.invited_by_user_id,
            sent_at=entity.sent_at,
            expires_at=entity.expires_at,
            accepted_at=entity.accepted_at,
            declined_at=entity.declined_at,
            revoked_at=entity.revoked_at,
            superseded_at=entity.superseded_at,
        )
