"""Pytest configuration and fixtures."""

import os
import sys
from collections.abc import AsyncGenerator, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from uuid import UUID, uuid4

# Disable rate limiting and point the app at SQLite before settings load
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["EXPIRED_INVITATION_REPORT_INTERVAL_SECONDS"] = "0"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from domain.entities.invitation import Role
from domain.services.invitation_service import InvitationService
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser
from infrastructure.database.models import (
    AccountAccessModel,
    AccountModel,
    Base,
    UserModel,
)
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork

T0 = datetime(2026, 3, 2, 9, 30, 0)


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = T0) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now

    def advance(self, **kwargs: float) -> datetime:
        self._now = self._now + timedelta(**kwargs)
        return self._now


@dataclass
class Seed:
    """Rows every integration test starts with."""

    account_id: UUID
    other_account_id: UUID
    owner: TokenUser
    admin: TokenUser
    viewer: TokenUser
    invitee: TokenUser


@pytest.fixture
def clock() -> FixedClock:
    """A clock frozen at T0."""
    return FixedClock()


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a file-backed SQLite engine per test.

    A file (not ``:memory:``) lets every session get its own connection,
    which the race tests rely on.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
def uow_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], SQLAlchemyUnitOfWork]:
    """Unit of Work factory bound to the test database."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory)

    return factory


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def seed(session_factory: async_sessionmaker[AsyncSession]) -> Seed:
    """Insert two accounts, their managers and a user without access."""
    seed = Seed(
        account_id=uuid4(),
        other_account_id=uuid4(),
        owner=TokenUser(id=uuid4(), email="owner@acme.test", display_name="Olivia Owner"),
        admin=TokenUser(id=uuid4(), email="admin@acme.test", display_name="Adam Admin"),
        viewer=TokenUser(id=uuid4(), email="viewer@acme.test", display_name="Vera Viewer"),
        invitee=TokenUser(id=uuid4(), email="invitee@example.com", display_name="Ian Invitee"),
    )
    async with session_factory() as session:
        session.add_all(
            [
                AccountModel(id=seed.account_id, name="Acme Supplies", short_name="acme"),
                AccountModel(id=seed.other_account_id, name="Globex", short_name="globex"),
            ]
        )
        for user in (seed.owner, seed.admin, seed.viewer, seed.invitee):
            session.add(UserModel(id=user.id, email=user.email, display_name=user.display_name))
        await session.flush()
        for user, role in (
            (seed.owner, Role.OWNER),
            (seed.admin, Role.ADMIN),
            (seed.viewer, Role.VIEWER),
        ):
            session.add(
                AccountAccessModel(
                    account_id=seed.account_id,
                    user_id=user.id,
                    role=role.value,
                    created_at=T0 - timedelta(days=30),
                )
            )
        await session.commit()
    return seed


@pytest.fixture
def service(
    uow_factory: Callable[[], SQLAlchemyUnitOfWork],
    clock: FixedClock,
) -> InvitationService:
    """Invitation service over the test database with a frozen clock."""
    return InvitationService(uow_factory, clock=clock, store_timeout=5.0, expiry_days=14)


@pytest.fixture
def auth_provider() -> JWTAuthProvider:
    """Create auth provider for testing."""
    return JWTAuthProvider(
        secret_key="test-secret-key",
        algorithm="HS256",
        expire_minutes=30,
        jwks_url="",
    )


@pytest.fixture
def headers_for(auth_provider: JWTAuthProvider) -> Callable[[TokenUser], dict[str, str]]:
    """Build authorization headers for a given user."""

    def build(user: TokenUser) -> dict[str, str]:
        return {"Authorization": f"Bearer {auth_provider.create_token(user)}"}

    return build


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client (no auth, no database overrides)."""
    from main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def authenticated_client(
    seed: Seed,
    service: InvitationService,
    auth_provider: JWTAuthProvider,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client wired to the test database.

    Tokens are real HS256 JWTs signed by ``auth_provider``; pass
    ``headers=headers_for(user)`` to act as a particular user.
    """
    from api.dependencies.auth import get_auth_provider
    from api.v1.dependencies import get_invitation_service
    from main import create_app

    app = create_app()
    app.dependency_overrides[get_auth_provider] = lambda: auth_provider
    app.dependency_overrides[get_invitation_service] = lambda: service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
