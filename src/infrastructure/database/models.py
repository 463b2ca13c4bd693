"""SQLAlchemy ORM models."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

ROLE_CHECK = "role IN ('owner', 'admin', 'member', 'buyer', 'viewer')"

# An invitation is "open" until it is accepted, declined, revoked or superseded.
# Only one open invitation may exist per (account_id, email).
OPEN_INVITATION_PREDICATE = text(
    "accepted_at IS NULL AND declined_at IS NULL "
    "AND revoked_at IS NULL AND superseded_at IS NULL"
)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class AccountModel(Base):
    """Tenant account (owned by the accounts service, read-only here)."""

    __tablename__ = "accounts"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    short_name: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class UserModel(Base):
    """User (owned by the identity service, read-only here)."""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    display_name: Mapped[str | None] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class AccountAccessModel(Base):
    """A user's membership in an account."""

    __tablename__ = "account_access"
    __table_args__ = (
        UniqueConstraint("account_id", "user_id", name="uq_account_access_account_user"),
        Index("ix_account_access_user", "user_id"),
    )

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    account_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(
        String(20),
        CheckConstraint(ROLE_CHECK, name="ck_account_access_role"),
        nullable=False,
        default="member",
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    user: Mapped["UserModel"] = relationship("UserModel")


class AccountInvitationModel(Base):
    """Account invitation model. Rows are never deleted."""

    __tablename__ = "account_invitations"
    __table_args__ = (
        Index(
            "uq_account_invitations_open_account_email",
            "account_id",
            "email",
            unique=True,
            postgresql_where=OPEN_INVITATION_PREDICATE,
            sqlite_where=OPEN_INVITATION_PREDICATE,
        ),
        Index("ix_account_invitations_email", "email"),
        Index("ix_account_invitations_account_sent", "account_id", "sent_at"),
        CheckConstraint(
            "(CASE WHEN accepted_at IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN declined_at IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN revoked_at IS NULL THEN 0 ELSE 1 END) <= 1",
            name="ck_account_invitations_single_resolution",
        ),
    )

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    account_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20),
        CheckConstraint(ROLE_CHECK, name="ck_account_invitations_role"),
        nullable=False,
        default="member",
    )
    invited_by_user_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
    )
    sent_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime)
    declined_at: Mapped[datetime | None] = mapped_column(DateTime)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime)
    superseded_at: Mapped[datetime | None] = mapped_column(DateTime)

    # Relationships
    account: Mapped["AccountModel"] = relationship("AccountModel")
    inviter: Mapped["UserModel"] = relationship("UserModel")
