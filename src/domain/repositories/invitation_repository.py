"""Invitation repository protocol."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from domain.entities.invitation import Invitation, TransitionField
from domain.results import InsertResult, TransitionResult


class IInvitationRepository(Protocol):
    """Repository interface for Invitation entities."""

    async def insert(self, invitation: Invitation) -> InsertResult:
        """Insert an invitation; InsertConflict if an open one exists for the pair."""
        ...

    async def get_by_id(self, id: UUID) -> Invitation | None:
        """Get an invitation by its primary key."""
        ...

    async def find_active_by_account_and_email(
        self, account_id: UUID, email: str
    ) -> Invitation | None:
        """Get the open (unresolved, not superseded) invitation for the pair."""
        ...

    async def list_by_account(self, account_id: UUID) -> list[Invitation]:
        """Get all invitations for an account, newest first."""
        ...

    async def transition_if_pending(
        self, id: UUID, field: TransitionField, timestamp: datetime
    ) -> TransitionResult:
        """Set a terminal timestamp only if none is set yet."""
        ...

    async def supersede_if_expired(self, id: UUID, now: datetime) -> bool:
        """Retire an expired, unresolved invitation. Returns True if a row changed."""
        ...

    async def list_expired_unresolved(self, now: datetime) -> list[Invitation]:
        """Get open invitations whose expiry has passed."""
        ...
