"""Dependency injection factories for API v1."""

from functools import lru_cache
from typing import Callable

from core.config import settings
from domain.services.invitation_service import InvitationService
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
from infrastructure.notifications.logging_notifier import LoggingNotifier


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@lru_cache
def get_notifier() -> LoggingNotifier:
    """Get the invitation notifier."""
    return LoggingNotifier()


@lru_cache
def get_invitation_service() -> InvitationService:
    """Get Invitation service instance."""
    return InvitationService(
        get_uow_factory(),
        notifier=get_notifier(),
        store_timeout=settings.store_timeout_seconds,
        expiry_days=settings.invitation_expiry_days,
    )
