"""add_account_invitations

Revision ID: 8f4d2b6a1e39
Revises: 5c1e7a2d9b04
Create Date: 2026-10-12 09:31:07.902615

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8f4d2b6a1e39'
down_revision: Union[str, Sequence[str], None] = '5c1e7a2d9b04'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ROLE_CHECK = "role IN ('owner', 'admin', 'member', 'buyer', 'viewer')"
OPEN_INVITATION = (
    "accepted_at IS NULL AND declined_at IS NULL "
    "AND revoked_at IS NULL AND superseded_at IS NULL"
)


def upgrade() -> None:
    """Create account_access and account_invitations tables."""
    op.create_table('account_access',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('account_id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='member'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint(ROLE_CHECK, name='ck_account_access_role'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('account_id', 'user_id', name='uq_account_access_account_user'),
    )
    op.create_index('ix_account_access_account_id', 'account_access', ['account_id'], unique=False)
    op.create_index('ix_account_access_user', 'account_access', ['user_id'], unique=False)

    op.create_table('account_invitations',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('account_id', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='member'),
        sa.Column('invited_by_user_id', sa.UUID(), nullable=False),
        sa.Column('sent_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('accepted_at', sa.DateTime(), nullable=True),
        sa.Column('declined_at', sa.DateTime(), nullable=True),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        sa.Column('superseded_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint(ROLE_CHECK, name='ck_account_invitations_role'),
        sa.CheckConstraint(
            "(CASE WHEN accepted_at IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN declined_at IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN revoked_at IS NULL THEN 0 ELSE 1 END) <= 1",
            name='ck_account_invitations_single_resolution',
        ),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['invited_by_user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    # At most one open invitation per account and email
    op.create_index(
        'uq_account_invitations_open_account_email',
        'account_invitations',
        ['account_id', 'email'],
        unique=True,
        postgresql_where=sa.text(OPEN_INVITATION),
        sqlite_where=sa.text(OPEN_INVITATION),
    )
    op.create_index('ix_account_invitations_email', 'account_invitations', ['email'], unique=False)
    op.create_index(
        'ix_account_invitations_account_sent',
        'account_invitations',
        ['account_id', 'sent_at'],
        unique=False,
    )


def downgrade() -> None:
    """Drop account_invitations and account_access tables."""
    op.drop_index('ix_account_invitations_account_sent', table_name='account_invitations')
    op.drop_index('ix_account_invitations_email', table_name='account_invitations')
    op.drop_index('uq_account_invitations_open_account_email', table_name='account_invitations')
    op.drop_table('account_invitations')
    op.drop_index('ix_account_access_user', table_name='account_access')
    op.drop_index('ix_account_access_account_id', table_name='account_access')
    op.drop_table('account_access')
