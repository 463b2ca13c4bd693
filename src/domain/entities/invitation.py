"""Invitation domain entity and status resolution."""

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from uuid import UUID, uuid4


class Role(StrEnum):
    """Roles an invitation (and the resulting account access) can carry."""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    BUYER = "buyer"
    VIEWER = "viewer"


class InvitationStatus(StrEnum):
    """Lifecycle status of an invitation. Derived, never stored."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    REVOKED = "revoked"
    EXPIRED = "expired"


class TransitionField(StrEnum):
    """Terminal timestamp columns a pending invitation can be moved into."""

    ACCEPTED = "accepted_at"
    DECLINED = "declined_at"
    REVOKED = "revoked_at"


# Default invitation expiry: 14 days
INVITATION_EXPIRY_DAYS = 14

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(email: str) -> str:
    """Trim and lower-case an email address."""
    return email.strip().lower()


def is_valid_email(email: str) -> bool:
    """Check the ``local@domain.tld`` shape, rejecting whitespace."""
    return bool(_EMAIL_RE.match(email))


def parse_role(value: str) -> Role | None:
    """Return the matching role, or None if it is not one of ours."""
    try:
        return Role(value)
    except ValueError:
        return None


@dataclass
class Invitation:
    """Domain entity for an account invitation.

    At most one of ``accepted_at``, ``declined_at`` and ``revoked_at`` is ever
    set. ``superseded_at`` marks an expired invitation that was retired so the
    same address could be invited again; it has no effect on the status.
    """

    account_id: UUID
    email: str
    role: Role
    invited_by_user_id: UUID
    sent_at: datetime
    expires_at: datetime
    id: UUID = field(default_factory=uuid4)
    accepted_at: datetime | None = None
    declined_at: datetime | None = None
    revoked_at: datetime | None = None
    superseded_at: datetime | None = None

    @classmethod
    def issue(
        cls,
        account_id: UUID,
        email: str,
        role: Role,
        invited_by_user_id: UUID,
        now: datetime,
        expiry_days: int = INVITATION_EXPIRY_DAYS,
    ) -> "Invitation":
        """Build a fresh invitation sent at ``now``."""
        return cls(
            account_id=account_id,
            email=email,
            role=role,
            invited_by_user_id=invited_by_user_id,
            sent_at=now,
            expires_at=now + timedelta(days=expiry_days),
        )

    def status_at(self, now: datetime) -> InvitationStatus:
        """Resolve the status of this invitation at ``now``."""
        return resolve_status(self, now)


def resolve_status(invitation: Invitation, now: datetime) -> InvitationStatus:
    """Derive the lifecycle status from the invitation's timestamps.

    Precedence is revoked, declined, accepted, expired, pending: the first
    match wins, so the result is deterministic even if more than one terminal
    timestamp were ever set.
    """
    if invitation.revoked_at is not None:
        return InvitationStatus.REVOKED
    if invitation.declined_at is not None:
        return InvitationStatus.DECLINED
    if invitation.accepted_at is not None:
        return InvitationStatus.ACCEPTED
    if now > invitation.expires_at:
        return InvitationStatus.EXPIRED
    return InvitationStatus.PENDING


@dataclass(frozen=True)
class InvitationView:
    """An invitation paired with its status at read time."""

    invitation: Invitation
    status: InvitationStatus
