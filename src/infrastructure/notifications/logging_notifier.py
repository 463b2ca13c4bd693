"""Notifier that records invitation events in the structured log.

Email delivery lives with the mailer; this adapter is what the API wires in
so every state change is at least visible in the log stream.
"""

import structlog

from domain.entities.notification import InvitationEvent

logger = structlog.get_logger()


class LoggingNotifier:
    """INotifier implementation backed by structlog."""

    async def notify(self, event: InvitationEvent) -> None:
        invitation = event.invitation
        logger.info(
            "invitation_notification",
            event_type=event.type.value,
            recipient=str(event.recipient),
            invitation_id=str(invitation.id),
            account_id=str(invitation.account_id),
            role=invitation.role.value,
            account_name=event.account_name,
            actor_id=str(event.actor_id) if event.actor_id else None,
            occurred_at=event.occurred_at.isoformat(),
        )
