"""Account access domain entities."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4

from domain.entities.invitation import Role

# Roles allowed to send, list and revoke invitations
INVITATION_MANAGER_ROLES = frozenset({Role.OWNER, Role.ADMIN})


def can_manage_invitations(role: Role | None) -> bool:
    """Only owners and admins manage an account's invitations."""
    return role in INVITATION_MANAGER_ROLES


def can_assign_role(current_role: Role | None, target_role: Role) -> bool:
    """Owners can hand out any role; admins anything but owner."""
    if current_role == Role.OWNER:
        return True
    return current_role == Role.ADMIN and target_role != Role.OWNER


@dataclass
class AccountAccess:
    """Domain entity for a user's membership in an account."""

    account_id: UUID
    user_id: UUID
    role: Role
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc).replace(tzinfo=None)
    )


@dataclass(frozen=True)
class AccountSummary:
    """Read-only view of an account, owned elsewhere."""

    id: UUID
    name: str
    short_name: str
