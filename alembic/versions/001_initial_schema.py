"""Burner wallet and launch history tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # One row per generated burner, tracked until its funds are swept
    op.create_table(
        'burner_wallets',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('address', sa.String(42), nullable=False),
        sa.Column('requester_address', sa.String(42), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('funding_tx_hash', sa.String(66), nullable=True),
        sa.Column('funding_amount_wei', sa.Numeric(38, 0), nullable=True),
        sa.Column('sweep_native_tx_hash', sa.String(66), nullable=True),
        sa.Column('sweep_stable_tx_hash', sa.String(66), nullable=True),
        sa.Column('sweep_error', sa.Text(), nullable=True),
        sa.Column('escrowed_key', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('address')
    )
    op.create_index('ix_burner_wallets_address', 'burner_wallets', ['address'])
    op.create_index(
        'ix_burner_wallets_requester_status', 'burner_wallets', ['requester_address', 'status']
    )

    # Launch history
    op.create_table(
        'launch_records',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('symbol', sa.String(16), nullable=False),
        sa.Column('requester_address', sa.String(42), nullable=False),
        sa.Column('burner_address', sa.String(42), nullable=True),
        sa.Column('tx_hash', sa.String(66), nullable=True),
        sa.Column('payment_tx_hash', sa.String(66), nullable=True),
        sa.Column('token_address', sa.String(42), nullable=True),
        sa.Column('deployed_via_fallback', sa.Boolean(), nullable=False),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_launch_records_requester_address', 'launch_records', ['requester_address'])


def downgrade() -> None:
    op.drop_table('launch_records')
    op.drop_table('burner_wallets')
