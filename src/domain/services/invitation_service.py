"""Invitation service layer with the invitation lifecycle rules."""

import asyncio
import dataclasses
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import TypeVar
from uuid import UUID

import structlog

from core.clock import Clock, SystemClock
from core.config import settings
from core.exceptions import StoreUnavailableError
from domain.entities.invitation import (
    Invitation,
    InvitationStatus,
    InvitationView,
    Role,
    TransitionField,
    is_valid_email,
    normalize_email,
    parse_role,
)
from domain.entities.notification import InvitationEvent, InvitationEventType
from domain.repositories.unit_of_work import IUnitOfWork
from domain.results import (
    AcceptResult,
    Accepted,
    AlreadyMember,
    AlreadyResolved,
    CreateResult,
    Created,
    Declined,
    DeclineResult,
    Forbidden,
    Granted,
    Idempotent,
    InsertConflict,
    ListResult,
    NotFound,
    NotPending,
    Revoked,
    RevokeResult,
    Transitioned,
    Unavailable,
    ValidationFailed,
)
from domain.services.notifier import INotifier

logger = structlog.get_logger()

T = TypeVar("T")


class InvitationService:
    """Service layer for the account invitation lifecycle.

    The service holds no locks. Each mutation is a single conditional write
    (or a constrained insert) committed on its own, so concurrent callers
    racing on the same invitation resolve to exactly one winner. Every store
    call is bounded by ``store_timeout``; a timeout or lost connection comes
    back as ``Unavailable`` and is safe to retry.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        clock: Clock | None = None,
        notifier: INotifier | None = None,
        store_timeout: float | None = settings.store_timeout_seconds,
        expiry_days: int = settings.invitation_expiry_days,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock or SystemClock()
        self._notifier = notifier
        self._store_timeout = store_timeout
        self._expiry_days = expiry_days

    async def create_invitation(
        self,
        account_id: UUID,
        email: str,
        role: str,
        invited_by_user_id: UUID,
        timeout: float | None = None,
    ) -> CreateResult:
        """Invite an email address to join an account.

        Args:
            account_id: The account the invitation grants access to.
            email: The invitee's address; trimmed and lower-cased.
            role: One of the ``Role`` values.
            invited_by_user_id: The user issuing the invitation.
            timeout: Per store call bound, overriding the service default.

        Returns:
            ``Created`` for a new invitation, ``Idempotent`` carrying the
            existing one when a pending invitation for the address is already
            open (including one created by a concurrent caller), or
            ``ValidationFailed`` / ``NotFound`` / ``AlreadyMember`` /
            ``Unavailable``.
        """
        normalized = normalize_email(email)
        if not is_valid_email(normalized):
            return ValidationFailed(field="email", message="Invalid email address")

        parsed_role = parse_role(role)
        if parsed_role is None:
            return ValidationFailed(field="role", message="Invalid role")

        result = await self._guard(
            "create",
            self._create(
                account_id, normalized, parsed_role, invited_by_user_id, self._timeout_for(timeout)
            ),
        )
        if isinstance(result, Created):
            await self._notify(
                InvitationEventType.SENT, result.invitation, actor_id=invited_by_user_id
            )
        return result

    async def accept_invitation(
        self,
        invitation_id: UUID,
        accepting_user_id: UUID,
        timeout: float | None = None,
    ) -> AcceptResult:
        """Accept a pending invitation and grant account access.

        Access is granted before the invitation is marked accepted. If a
        concurrent decline or revoke wins in between, the grant is kept and
        the caller gets ``NotPending(status, access_granted=True)``.
        """
        result = await self._guard(
            "accept",
            self._accept(invitation_id, accepting_user_id, self._timeout_for(timeout)),
        )
        if isinstance(result, Accepted):
            await self._notify(
                InvitationEventType.ACCEPTED,
                result.invitation,
                actor_id=accepting_user_id,
                account_name=result.account.name,
            )
        return result

    async def decline_invitation(
        self,
        invitation_id: UUID,
        timeout: float | None = None,
    ) -> DeclineResult:
        """Decline a pending invitation."""
        result = await self._guard(
            "decline", self._decline(invitation_id, self._timeout_for(timeout))
        )
        if isinstance(result, Declined):
            await self._notify(InvitationEventType.DECLINED, result.invitation)
        return result

    async def revoke_invitation(
        self,
        invitation_id: UUID,
        requesting_account_id: UUID,
        timeout: float | None = None,
    ) -> RevokeResult:
        """Revoke a pending invitation on behalf of the account that sent it."""
        result = await self._guard(
            "revoke",
            self._revoke(invitation_id, requesting_account_id, self._timeout_for(timeout)),
        )
        if isinstance(result, Revoked):
            await self._notify(InvitationEventType.REVOKED, result.invitation)
        return result

    async def list_invitations(
        self,
        account_id: UUID,
        timeout: float | None = None,
    ) -> ListResult:
        """Get all invitations for an account, newest first, with their status."""
        return await self._guard("list", self._list(account_id, self._timeout_for(timeout)))

    async def get_member_role(self, account_id: UUID, user_id: UUID) -> Role | None:
        """Get the user's role in the account, or None without access.

        Raises:
            StoreUnavailableError: If the store cannot be reached in time.
        """
        try:
            async with self._uow_factory() as uow:
                access = await self._bounded(
                    uow.access.find_by_account_and_user(account_id, user_id),
                    self._store_timeout,
                )
        except TimeoutError as exc:
            raise StoreUnavailableError("access lookup timed out") from exc
        return access.role if access else None

    async def report_expired_invitations(
        self,
        timeout: float | None = None,
    ) -> ListResult:
        """Log invitations that expired while still unresolved.

        Read-only: expiry is derived from ``expires_at``, so nothing is
        written.
        """
        result = await self._guard(
            "report_expired", self._expired(self._timeout_for(timeout))
        )
        if isinstance(result, Unavailable):
            return result

        now = self._clock.now()
        for view in result:
            invitation = view.invitation
            logger.info(
                "invitation_expired_unresolved",
                invitation_id=str(invitation.id),
                account_id=str(invitation.account_id),
                email=invitation.email,
                sent_at=invitation.sent_at.isoformat(),
                days_expired=(now - invitation.expires_at).days,
            )
        logger.info("expired_invitation_report_completed", expired_count=len(result))
        return result

    # --- Operations (run inside _guard) ---

    async def _create(
        self,
        account_id: UUID,
        email: str,
        role: Role,
        invited_by_user_id: UUID,
        timeout: float | None,
    ) -> CreateResult:
        async with self._uow_factory() as uow:
            if not await self._bounded(uow.accounts.exists(account_id), timeout):
                return NotFound(resource="account", resource_id=account_id)
            if not await self._bounded(uow.users.exists(invited_by_user_id), timeout):
                return NotFound(resource="user", resource_id=invited_by_user_id)

            if await self._bounded(uow.users.has_access(account_id, email), timeout):
                logger.info("invitation_rejected_already_member", account_id=str(account_id))
                return AlreadyMember(account_id=account_id, email=email)

            now = self._clock.now()
            existing = await self._bounded(
                uow.invitations.find_active_by_account_and_email(account_id, email), timeout
            )
            if existing is not None:
                if existing.status_at(now) == InvitationStatus.PENDING:
                    logger.info(
                        "invitation_create_idempotent",
                        invitation_id=str(existing.id),
                        account_id=str(account_id),
                    )
                    return Idempotent(invitation=existing)

                # Expired, yet still holding the open slot for this address
                await self._bounded(uow.invitations.supersede_if_expired(existing.id, now), timeout)
                await self._bounded(uow.commit(), timeout)
                logger.info("invitation_superseded", invitation_id=str(existing.id))

            invitation = Invitation.issue(
                account_id=account_id,
                email=email,
                role=role,
                invited_by_user_id=invited_by_user_id,
                now=now,
                expiry_days=self._expiry_days,
            )
            inserted = await self._bounded(uow.invitations.insert(invitation), timeout)

            if isinstance(inserted, InsertConflict):
                winner = await self._bounded(
                    uow.invitations.find_active_by_account_and_email(account_id, email), timeout
                )
                if winner is None:
                    return Unavailable(reason="concurrent invitation could not be read back")
                logger.info(
                    "invitation_create_lost_race",
                    invitation_id=str(winner.id),
                    account_id=str(account_id),
                )
                return Idempotent(invitation=winner)

            await self._bounded(uow.commit(), timeout)
            logger.info(
                "invitation_created",
                invitation_id=str(inserted.id),
                account_id=str(account_id),
                role=role.value,
                expires_at=inserted.expires_at.isoformat(),
            )
            return Created(invitation=inserted)

    async def _accept(
        self,
        invitation_id: UUID,
        accepting_user_id: UUID,
        timeout: float | None,
    ) -> AcceptResult:
        async with self._uow_factory() as uow:
            invitation = await self._bounded(uow.invitations.get_by_id(invitation_id), timeout)
            if invitation is None:
                return NotFound(resource="invitation", resource_id=invitation_id)

            now = self._clock.now()
            status = invitation.status_at(now)
            if status != InvitationStatus.PENDING:
                return NotPending(status=status)

            account = await self._bounded(uow.accounts.get(invitation.account_id), timeout)
            if account is None:
                return NotFound(resource="account", resource_id=invitation.account_id)
            if not await self._bounded(uow.users.exists(accepting_user_id), timeout):
                return NotFound(resource="user", resource_id=accepting_user_id)

            grant = await self._bounded(
                uow.access.grant(invitation.account_id, accepting_user_id, invitation.role, now),
                timeout,
            )
            await self._bounded(uow.commit(), timeout)

            outcome = await self._transition(uow, invitation.id, TransitionField.ACCEPTED, now, timeout)
            if isinstance(outcome, NotPending):
                logger.warning(
                    "invitation_accept_lost_race",
                    invitation_id=str(invitation.id),
                    status=outcome.status.value,
                    access_id=str(grant.access.id),
                )
                return dataclasses.replace(outcome, access_granted=True)
            if isinstance(outcome, NotFound):
                return outcome

            logger.info(
                "invitation_accepted",
                invitation_id=str(invitation.id),
                account_id=str(invitation.account_id),
                user_id=str(accepting_user_id),
                newly_granted=isinstance(grant, Granted),
            )
            return Accepted(
                account=account,
                role=invitation.role,
                access=grant.access,
                newly_granted=isinstance(grant, Granted),
                invitation=outcome.invitation,
            )

    async def _decline(self, invitation_id: UUID, timeout: float | None) -> DeclineResult:
        async with self._uow_factory() as uow:
            invitation = await self._bounded(uow.invitations.get_by_id(invitation_id), timeout)
            if invitation is None:
                return NotFound(resource="invitation", resource_id=invitation_id)

            now = self._clock.now()
            status = invitation.status_at(now)
            if status != InvitationStatus.PENDING:
                return NotPending(status=status)

            outcome = await self._transition(uow, invitation.id, TransitionField.DECLINED, now, timeout)
            if isinstance(outcome, Transitioned):
                logger.info("invitation_declined", invitation_id=str(invitation.id))
                return Declined(invitation=outcome.invitation)
            return outcome

    async def _revoke(
        self,
        invitation_id: UUID,
        requesting_account_id: UUID,
        timeout: float | None,
    ) -> RevokeResult:
        async with self._uow_factory() as uow:
            invitation = await self._bounded(uow.invitations.get_by_id(invitation_id), timeout)
            if invitation is None:
                return NotFound(resource="invitation", resource_id=invitation_id)

            if invitation.account_id != requesting_account_id:
                logger.warning(
                    "invitation_revoke_forbidden",
                    invitation_id=str(invitation.id),
                    requesting_account_id=str(requesting_account_id),
                )
                return Forbidden(reason="Invitation belongs to a different account")

            now = self._clock.now()
            status = invitation.status_at(now)
            if status != InvitationStatus.PENDING:
                return NotPending(status=status)

            outcome = await self._transition(uow, invitation.id, TransitionField.REVOKED, now, timeout)
            if isinstance(outcome, Transitioned):
                logger.info(
                    "invitation_revoked",
                    invitation_id=str(invitation.id),
                    account_id=str(requesting_account_id),
                )
                return Revoked(invitation=outcome.invitation)
            return outcome

    async def _list(self, account_id: UUID, timeout: float | None) -> list[InvitationView]:
        async with self._uow_factory() as uow:
            invitations = await self._bounded(uow.invitations.list_by_account(account_id), timeout)
        now = self._clock.now()
        return [InvitationView(invitation=inv, status=inv.status_at(now)) for inv in invitations]

    async def _expired(self, timeout: float | None) -> list[InvitationView]:
        now = self._clock.now()
        async with self._uow_factory() as uow:
            invitations = await self._bounded(uow.invitations.list_expired_unresolved(now), timeout)
        return [InvitationView(invitation=inv, status=InvitationStatus.EXPIRED) for inv in invitations]

    # --- Internal helpers ---

    async def _transition(
        self,
        uow: IUnitOfWork,
        invitation_id: UUID,
        field: TransitionField,
        now: datetime,
        timeout: float | None,
    ) -> Transitioned | NotFound | NotPending:
        """Run the conditional update; a lost race becomes NotPending."""
        outcome = await self._bounded(
            uow.invitations.transition_if_pending(invitation_id, field, now), timeout
        )
        if isinstance(outcome, AlreadyResolved):
            return NotPending(status=outcome.invitation.status_at(now))
        if isinstance(outcome, Transitioned):
            await self._bounded(uow.commit(), timeout)
        return outcome

    async def _guard(self, operation: str, work: Awaitable[T]) -> T | Unavailable:
        """Turn store outages and timeouts into an Unavailable result."""
        try:
            return await work
        except (StoreUnavailableError, TimeoutError) as exc:
            logger.warning(
                "invitation_store_unavailable",
                operation=operation,
                error=str(exc) or type(exc).__name__,
            )
            return Unavailable(reason=f"{operation} could not reach the invitation store")

    @staticmethod
    async def _bounded(work: Awaitable[T], timeout: float | None) -> T:
        async with asyncio.timeout(timeout):
            return await work

    def _timeout_for(self, timeout: float | None) -> float | None:
        return self._store_timeout if timeout is None else timeout

    async def _notify(
        self,
        event_type: InvitationEventType,
        invitation: Invitation,
        actor_id: UUID | None = None,
        account_name: str | None = None,
    ) -> None:
        """Best-effort notification; failures are logged and never surfaced."""
        if self._notifier is None:
            return

        event = InvitationEvent(
            type=event_type,
            invitation=invitation,
            occurred_at=self._clock.now(),
            actor_id=actor_id,
            account_name=account_name,
        )
        try:
            async with asyncio.timeout(self._store_timeout):
                await self._notifier.notify(event)
        except Exception:
            logger.exception(
                "invitation_notify_failed",
                event_type=event_type.value,
                invitation_id=str(invitation.id),
            )
