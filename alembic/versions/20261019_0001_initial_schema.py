"""Initial schema - experiment lab

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
    # Directory tables (owned by the console, read by the lab)
    op.create_table(
        'clients',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'client_funnels',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('client_id', sa.Uuid(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('label', sa.String(255), nullable=False),
    )

    op.create_table(
        'collaborators',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), unique=True, nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('avatar_url', sa.String(1000), nullable=True),
        sa.Column('role', sa.String(50), nullable=False, default='viewer'),
        sa.Column('is_active', sa.Boolean(), nullable=False, default=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Templates
    op.create_table(
        'experiment_templates',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('experiment_type', sa.String(50), nullable=True),
        sa.Column('channel', sa.String(50), nullable=True),
        sa.Column('hypothesis', sa.Text(), nullable=True),
        sa.Column('target_metric', sa.String(50), nullable=True),
        sa.Column('target_value', sa.Float(), nullable=True),
        sa.Column('checklist', sa.JSON(), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, default=True),
        sa.Column('created_by', sa.Uuid(), sa.ForeignKey('collaborators.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Experiments
    op.create_table(
        'experiments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(500), nullable=False),
        sa.Column('owner_id', sa.Uuid(), sa.ForeignKey('collaborators.id'), nullable=False, index=True),
        sa.Column('client_id', sa.Uuid(), sa.ForeignKey('clients.id'), nullable=True, index=True),
        sa.Column('funnel', sa.String(255), nullable=True),
        sa.Column('experiment_type', sa.String(50), nullable=False),
        sa.Column('channel', sa.String(50), nullable=False),
        sa.Column('status', sa.String(50), nullable=False, default='planned', index=True),
        sa.Column('validation', sa.String(50), nullable=False, default='in_test'),
        sa.Column('target_metric', sa.String(50), nullable=True),
        sa.Column('target_value', sa.Float(), nullable=True),
        sa.Column('observed_value', sa.Float(), nullable=True),
        sa.Column('hypothesis', sa.Text(), nullable=True),
        sa.Column('change_description', sa.Text(), nullable=True),
        sa.Column('team_observation', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('learnings', sa.Text(), nullable=True),
        sa.Column('next_experiments', sa.Text(), nullable=True),
        sa.Column('ad_link', sa.String(2000), nullable=True),
        sa.Column('campaign_link', sa.String(2000), nullable=True),
        sa.Column('experiment_link', sa.String(2000), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('template_id', sa.Uuid(), sa.ForeignKey('experiment_templates.id'), nullable=True),
        sa.Column('created_by', sa.Uuid(), sa.ForeignKey('collaborators.id'), nullable=False),
        sa.Column('archived', sa.Boolean(), nullable=False, default=False, index=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_experiments_archived_created', 'experiments', ['archived', 'created_at'])

    op.create_table(
        'experiment_evidence',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('experiment_id', sa.Uuid(), sa.ForeignKey('experiments.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('kind', sa.String(20), nullable=False),
        sa.Column('url', sa.String(2000), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('uploaded_by', sa.Uuid(), sa.ForeignKey('collaborators.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'experiment_comments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('experiment_id', sa.Uuid(), sa.ForeignKey('experiments.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('author_id', sa.Uuid(), sa.ForeignKey('collaborators.id'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Audit log (append-only)
    op.create_table(
        'experiment_audit_log',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('experiment_id', sa.Uuid(), sa.ForeignKey('experiments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('action', sa.String(50), nullable=False, index=True),
        sa.Column('changed_field', sa.String(255), nullable=True),
        sa.Column('previous_value', sa.Text(), nullable=True),
        sa.Column('new_value', sa.Text(), nullable=True),
        sa.Column('actor_id', sa.Uuid(), sa.ForeignKey('collaborators.id'), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(
        'ix_experiment_audit_log_experiment_time',
        'experiment_audit_log',
        ['experiment_id', 'created_at'],
    )


def downgrade() -> None:
    op.drop_index('ix_experiment_audit_log_experiment_time', table_name='experiment_audit_log')
    op.drop_table('experiment_audit_log')
    op.drop_table('experiment_comments')
    op.drop_table('experiment_evidence')
    op.drop_index('ix_experiments_archived_created', table_name='experiments')
    op.drop_table('experiments')
    op.drop_table('experiment_templates')
    op.drop_table('collaborators')
    op.drop_table('client_funnels')
    op.drop_table('clients')
