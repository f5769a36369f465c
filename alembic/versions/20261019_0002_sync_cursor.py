"""Sync cursor - mark rows the collector has accepted

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0002'
down_revision: Union[str, None] = '0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # NULL until the collector accepts the row; existing rows replay once
    with op.batch_alter_table('telemetry_events') as batch_op:
        batch_op.add_column(sa.Column('synced_at', sa.DateTime(timezone=True), nullable=True))
        batch_op.create_index('ix_telemetry_events_unsynced', ['namespace', 'synced_at'])

    with op.batch_alter_table('tool_sequence_entries') as batch_op:
        batch_op.add_column(sa.Column('synced_at', sa.DateTime(timezone=True), nullable=True))
        batch_op.create_index('ix_tool_sequence_unsynced', ['namespace', 'synced_at'])


def downgrade() -> None:
    with op.batch_alter_table('tool_sequence_entries') as batch_op:
        batch_op.drop_index('ix_tool_sequence_unsynced')
        batch_op.drop_column('synced_at')

    with op.batch_alter_table('telemetry_events') as batch_op:
        batch_op.drop_index('ix_telemetry_events_unsynced')
        batch_op.drop_column('synced_at')
