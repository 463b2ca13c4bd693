"""Notifier protocol for invitation state changes."""

from typing import Protocol

from domain.entities.notification import InvitationEvent


class INotifier(Protocol):
    """Tells inviters and invitees about invitation state changes.

    Delivery is best effort: the lifecycle never waits on or fails because of
    a notification.
    """

    async def notify(self, event: InvitationEvent) -> None:
        """Deliver a notification for ``event``."""
        ...
