"""Create account, chain state and processor status tables

Revision ID: 1666733087389
Revises:
Create Date: 2022-10-25

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '1666733087389'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _chain_state_table(name: str) -> None:
    op.create_table(
        name,
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('block_number', sa.Integer(), nullable=False),
        sa.Column('total_issuance', sa.Numeric(78, 0), nullable=False),
        sa.Column('token_holders', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f(f'ix_{name}_timestamp'), name, ['timestamp'], unique=False)
    op.create_index(op.f(f'ix_{name}_block_number'), name, ['block_number'], unique=False)


def upgrade() -> None:
    op.create_table(
        'account',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('free', sa.Numeric(78, 0), nullable=False),
        sa.Column('reserved', sa.Numeric(78, 0), nullable=False),
        sa.Column('total', sa.Numeric(78, 0), nullable=False),
        sa.Column('updated_at', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    _chain_state_table('chain_state')
    _chain_state_table('current_chain_state')
    op.create_table(
        'processor_status',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('height', sa.Integer(), nullable=False),
        sa.Column('hash', sa.String(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    op.drop_table('processor_status')
    for name in ('current_chain_state', 'chain_state'):
        op.drop_index(op.f(f'ix_{name}_block_number'), table_name=name)
        op.drop_index(op.f(f'ix_{name}_timestamp'), table_name=name)
        op.drop_table(name)
    op.drop_table('account')
