"""create lot accounting tables

Revision ID: 3c1d9a7e52b4
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1d9a7e52b4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'lots',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('account_id', sa.String(length=36), nullable=False),
        sa.Column('symbol', sa.String(), nullable=False),
        sa.Column('opened_at', sa.DateTime(), nullable=False),
        sa.Column('initial_qty', sa.Integer(), nullable=False),
        sa.Column('current_qty', sa.Integer(), nullable=False),
        sa.Column('price_per_share', sa.Numeric(18, 6), nullable=False),
        sa.Column('fees_at_open', sa.Numeric(18, 6), nullable=False),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('initial_qty > 0', name='ck_lot_initial_qty_positive'),
        sa.CheckConstraint('current_qty >= 0', name='ck_lot_current_qty_non_negative'),
        sa.CheckConstraint('price_per_share >= 0', name='ck_lot_price_non_negative'),
        sa.CheckConstraint('fees_at_open >= 0', name='ck_lot_fees_non_negative'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_lots_account_id', 'lots', ['account_id'])
    op.create_index('ix_lots_symbol', 'lots', ['symbol'])

    op.create_table(
        'lot_events',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('lot_id', sa.String(length=36), nullable=False),
        sa.Column('occurred_at', sa.DateTime(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=True),
        sa.Column('amount', sa.Numeric(18, 6), nullable=True),
        sa.Column('fees', sa.Numeric(18, 6), nullable=True),
        sa.Column('memo', sa.String(), nullable=True),
        sa.Column('is_opening', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['lot_id'], ['lots.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_lot_events_lot_id', 'lot_events', ['lot_id'])
    op.create_index('ix_lot_events_occurred_at', 'lot_events', ['occurred_at'])

    op.create_table(
        'option_positions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('account_id', sa.String(length=36), nullable=False),
        sa.Column('symbol', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('side', sa.String(), nullable=False),
        sa.Column('strike', sa.Numeric(18, 6), nullable=False),
        sa.Column('expiry', sa.Date(), nullable=False),
        sa.Column('multiplier', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('opened_at', sa.DateTime(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('strike > 0', name='ck_option_position_strike_positive'),
        sa.CheckConstraint('multiplier > 0', name='ck_option_position_multiplier_positive'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_option_positions_account_id', 'option_positions', ['account_id'])
    op.create_index('ix_option_positions_symbol', 'option_positions', ['symbol'])
    op.create_index('ix_option_positions_status', 'option_positions', ['status'])

    op.create_table(
        'option_trades',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('option_position_id', sa.String(length=36), nullable=False),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('occurred_at', sa.DateTime(), nullable=False),
        sa.Column('contracts', sa.Integer(), nullable=False),
        sa.Column('price_per_contract', sa.Numeric(18, 6), nullable=False),
        sa.Column('fees', sa.Numeric(18, 6), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('contracts >= 0', name='ck_option_trade_contracts_non_negative'),
        sa.CheckConstraint('fees >= 0', name='ck_option_trade_fees_non_negative'),
        sa.ForeignKeyConstraint(['option_position_id'], ['option_positions.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_option_trades_option_position_id', 'option_trades', ['option_position_id'])

    op.create_table(
        'premium_allocations',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('option_trade_id', sa.String(length=36), nullable=False),
        sa.Column('lot_id', sa.String(length=36), nullable=False),
        sa.Column('premium', sa.Numeric(18, 6), nullable=False),
        sa.Column('fees', sa.Numeric(18, 6), nullable=False),
        sa.Column('proportion', sa.Numeric(9, 6), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint(
            'proportion >= 0 AND proportion <= 1',
            name='ck_premium_allocation_proportion_range',
        ),
        sa.ForeignKeyConstraint(['lot_id'], ['lots.id']),
        sa.ForeignKeyConstraint(['option_trade_id'], ['option_trades.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_premium_allocations_option_trade_id', 'premium_allocations', ['option_trade_id'])
    op.create_index('ix_premium_allocations_lot_id', 'premium_allocations', ['lot_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('premium_allocations')
    op.drop_table('option_trades')
    op.drop_table('option_positions')
    op.drop_table('lot_events')
    op.drop_table('lots')
