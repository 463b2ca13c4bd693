"""Invitation notification events."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from domain.entities.invitation import Invitation

# Format: {entity_type}.{action}


class InvitationEventType(StrEnum):
    """Notification type names for invitation state changes."""

    SENT = "invitation.sent"
    ACCEPTED = "invitation.accepted"
    DECLINED = "invitation.declined"
    REVOKED = "invitation.revoked"


@dataclass(frozen=True)
class InvitationEvent:
    """A state change worth telling the inviter or invitee about."""

    type: InvitationEventType
    invitation: Invitation
    occurred_at: datetime
    actor_id: UUID | None = None
    account_name: str | None = None

    @property
    def recipient(self) -> str | UUID:
        """Invitee email for sent/revoked, inviter user id for the rest."""
        if self.type in (InvitationEventType.SENT, InvitationEventType.REVOKED):
            return self.invitation.email
        return self.invitation.invited_by_user_id
