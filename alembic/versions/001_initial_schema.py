"""Initial schema

Tables:
    - accounts: User-named value containers
    - account_updates: Timestamped value observations
    - account_snapshots: Forward-filled value per account per day
    - portfolio_snapshots: Sum over active accounts per day

Revision ID: 001
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ==========================================================================
    # ACCOUNTS
    # ==========================================================================
    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true(), index=True),
        sa.Column('closed_at', sa.DateTime(), nullable=True),
    )

    # ==========================================================================
    # ACCOUNT UPDATES
    # ==========================================================================
    op.create_table(
        'account_updates',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('value', sa.Numeric(12, 2), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_account_updates_account_date', 'account_updates', ['account_id', 'date'])

    # ==========================================================================
    # SNAPSHOTS
    # ==========================================================================
    op.create_table(
        'account_snapshots',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('accounts.id'), nullable=False, index=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('value', sa.Numeric(12, 2), nullable=False),
        sa.UniqueConstraint('account_id', 'date', name='uq_account_snapshot_day'),
    )

    op.create_table(
        'portfolio_snapshots',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('date', sa.Date(), nullable=False, unique=True, index=True),
        sa.Column('total_value', sa.Numeric(18, 2), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('portfolio_snapshots')
    op.drop_table('account_snapshots')
    op.drop_index('ix_account_updates_account_date', table_name='account_updates')
    op.drop_table('account_updates')
    op.drop_table('accounts')
