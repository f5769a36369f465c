"""Telemetry schema - local durable store

Revision ID: 0001
Revises: 
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Raw events, one row per interaction/visit/action/export/session
    op.create_table(
        'telemetry_events',
        sa.Column('seq', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('event_id', sa.Uuid(), nullable=False, unique=True),
        sa.Column('namespace', sa.String(100), nullable=False),
        sa.Column('user_id', sa.String(255), nullable=False),
        sa.Column('bucket', sa.String(20), nullable=False),
        sa.Column('event_type', sa.String(20), nullable=False),
        sa.Column('component', sa.String(100), nullable=False),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('recorded_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_telemetry_events_occurred_at', 'telemetry_events', ['occurred_at'])
    op.create_index('ix_telemetry_events_user', 'telemetry_events', ['namespace', 'user_id', 'seq'])

    # Active-tool changes
    op.create_table(
        'tool_sequence_entries',
        sa.Column('seq', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('entry_id', sa.Uuid(), nullable=False, unique=True),
        sa.Column('namespace', sa.String(100), nullable=False),
        sa.Column('user_id', sa.String(255), nullable=False),
        sa.Column('tool', sa.String(100), nullable=False),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('recorded_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_tool_sequence_user', 'tool_sequence_entries', ['namespace', 'user_id', 'seq'])

    # Assessment history
    op.create_table(
        'skill_assessments',
        sa.Column('seq', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('namespace', sa.String(100), nullable=False),
        sa.Column('user_id', sa.String(255), nullable=False),
        sa.Column('customer_analysis', sa.Integer(), nullable=False, default=0),
        sa.Column('value_communication', sa.Integer(), nullable=False, default=0),
        sa.Column('executive_readiness', sa.Integer(), nullable=False, default=0),
        sa.Column('overall', sa.Integer(), nullable=False, default=0),
        sa.Column('assessed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('recorded_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_skill_assessments_user', 'skill_assessments', ['namespace', 'user_id', 'seq'])


def downgrade() -> None:
    op.drop_table('skill_assessments')
    op.drop_table('tool_sequence_entries')
    op.drop_table('telemetry_events')
