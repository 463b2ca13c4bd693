"""Shared fixtures for unit tests."""

from collections.abc import Callable
from datetime import datetime
from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from domain.entities.invitation import Invitation, Role


class FakeUnitOfWork:
    """Fake Unit of Work with repository mocks for unit testing."""

    def __init__(self) -> None:
        self.invitations = AsyncMock()
        self.access = AsyncMock()
        self.accounts = AsyncMock()
        self.users = AsyncMock()
        self.commits = 0
        self.rolled_back = False

    @property
    def committed(self) -> bool:
        return self.commits > 0

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork()


@pytest.fixture
def account_id() -> UUID:
    """A random account ID."""
    return uuid4()


@pytest.fixture
def user_id() -> UUID:
    """A random user ID."""
    return uuid4()


@pytest.fixture
def inviter_id() -> UUID:
    """A random inviter ID (distinct from user_id)."""
    return uuid4()


@pytest.fixture
def make_invitation(account_id: UUID, inviter_id: UUID) -> Callable[..., Invitation]:
    """Issue invitations for the test account, optionally with terminal fields set."""

    def build(
        now: datetime,
        email: str = "invitee@example.com",
        role: Role = Role.MEMBER,
        **fields: Any,
    ) -> Invitation:
        invitation = Invitation.issue(
            account_id=account_id,
            email=email,
            role=role,
            invited_by_user_id=inviter_id,
            now=now,
        )
        for name, value in fields.items():
            setattr(invitation, name, value)
        return invitation

    return build
