"""Initial schema: wallets, seed vault, payments, swap orders, address book.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

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
    # The five split wallets (ids 1..5)
    op.create_table(
        'wallets',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('address', sa.String(106), nullable=False),
        sa.Column('balance', sa.Numeric(24, 12), nullable=False),
        sa.Column('unlocked_balance', sa.Numeric(24, 12), nullable=False),
        sa.Column('type', sa.String(10), nullable=False),
        sa.Column('label', sa.String(50), nullable=False),
        sa.Column('balance_synced_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    # Encrypted seed phrases (single row)
    op.create_table(
        'wallet_vault',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('salt', sa.String(64), nullable=False),
        sa.Column('password_check', sa.Text(), nullable=False),
        sa.Column('encrypted_seeds', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    # Outgoing payments
    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('amount', sa.Numeric(24, 12), nullable=False),
        sa.Column('recipient', sa.String(106), nullable=False),
        sa.Column('label', sa.String(100), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('tx_hash', sa.String(64), nullable=True),
        sa.Column('from_wallet', sa.Integer(), nullable=False),
        sa.Column('fee', sa.Numeric(24, 12), nullable=True),
        sa.Column('consolidated', sa.Boolean(), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_payments_tx_hash', 'payments', ['tx_hash'])

    # Provider swap orders
    op.create_table(
        'swap_orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.String(100), nullable=False),
        sa.Column('provider', sa.String(30), nullable=False),
        sa.Column('deposit_address', sa.String(255), nullable=False),
        sa.Column('withdrawal_address', sa.String(106), nullable=False),
        sa.Column('from_coin', sa.String(10), nullable=False),
        sa.Column('to_coin', sa.String(10), nullable=False),
        sa.Column('from_amount', sa.Numeric(36, 12), nullable=False),
        sa.Column('expected_to_amount', sa.Numeric(36, 12), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('deposit_tx_hash', sa.String(255), nullable=True),
        sa.Column('withdrawal_tx_hash', sa.String(255), nullable=True),
        sa.Column('is_simulated', sa.Boolean(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_swap_orders_order_id', 'swap_orders', ['order_id'])

    # Saved recipients
    op.create_table(
        'address_book_entries',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('label', sa.String(50), nullable=False),
        sa.Column('address', sa.String(106), nullable=False),
        sa.Column('notes', sa.String(200), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('last_used', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        'ix_address_book_entries_address', 'address_book_entries', ['address'], unique=True
    )


def downgrade() -> None:
    op.drop_index('ix_address_book_entries_address', table_name='address_book_entries')
    op.drop_table('address_book_entries')
    op.drop_index('ix_swap_orders_order_id', table_name='swap_orders')
    op.drop_table('swap_orders')
    op.drop_index('ix_payments_tx_hash', table_name='payments')
    op.drop_table('payments')
    op.drop_table('wallet_vault')
    op.drop_table('wallets')
