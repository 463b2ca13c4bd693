"""Result variants returned by the invitation lifecycle.

Every expected outcome is a value, never an exception. Callers branch on the
variant type (``isinstance``) or on ``ok``. The store-level variants
(``InsertConflict``, ``Transitioned``, ``AlreadyResolved``, ``Granted``,
``AlreadyGranted``) are absorbed by the service and never returned to its
callers.
"""

from dataclasses import dataclass
from typing import ClassVar
from uuid import UUID

from domain.entities.account import AccountAccess, AccountSummary
from domain.entities.invitation import Invitation, InvitationStatus, InvitationView, Role


# --- Success ---


@dataclass(frozen=True)
class Created:
    """A new invitation row was written."""

    invitation: Invitation
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Idempotent:
    """A pending invitation already existed; nothing was written."""

    invitation: Invitation
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Accepted:
    """The invitee now holds access to the account."""

    account: AccountSummary
    role: Role
    access: AccountAccess
    newly_granted: bool
    invitation: Invitation
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Declined:
    invitation: Invitation
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Revoked:
    invitation: Invitation
    ok: ClassVar[bool] = True


# --- Failure ---


@dataclass(frozen=True)
class ValidationFailed:
    """Malformed caller input; not retryable as-is."""

    field: str
    message: str
    ok: ClassVar[bool] = False


@dataclass(frozen=True)
class AlreadyMember:
    account_id: UUID
    email: str
    ok: ClassVar[bool] = False


@dataclass(frozen=True)
class NotFound:
    resource: str
    resource_id: UUID
    ok: ClassVar[bool] = False


@dataclass(frozen=True)
class NotPending:
    """The invitation is in a terminal state.

    ``access_granted`` is set when an accept granted membership but lost the
    race to mark the invitation, so the access record exists even though the
    invitation ended up declined or revoked.
    """

    status: InvitationStatus
    access_granted: bool = False
    ok: ClassVar[bool] = False


@dataclass(frozen=True)
class Forbidden:
    reason: str
    ok: ClassVar[bool] = False


@dataclass(frozen=True)
class Unavailable:
    """The store timed out or dropped the connection; safe to retry."""

    reason: str
    ok: ClassVar[bool] = False


# --- Store-level outcomes ---


@dataclass(frozen=True)
class InsertConflict:
    """An open invitation for the same account and email already exists."""

    account_id: UUID
    email: str


@dataclass(frozen=True)
class Transitioned:
    invitation: Invitation


@dataclass(frozen=True)
class AlreadyResolved:
    """The conditional update matched no open row; carries the current state."""

    invitation: Invitation


@dataclass(frozen=True)
class Granted:
    access: AccountAccess


@dataclass(frozen=True)
class AlreadyGranted:
    access: AccountAccess


CreateResult = Created | Idempotent | ValidationFailed | NotFound | AlreadyMember | Unavailable
AcceptResult = Accepted | NotFound | NotPending | Unavailable
DeclineResult = Declined | NotFound | NotPending | Unavailable
RevokeResult = Revoked | NotFound | Forbidden | NotPending | Unavailable
ListResult = list[InvitationView] | Unavailable

InsertResult = Invitation | InsertConflict
TransitionResult = Transitioned | AlreadyResolved | NotFound
GrantResult = Granted | AlreadyGranted
