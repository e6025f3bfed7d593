"""Initial schema: users, files, opportunities with versions and status history, proposals

Revision ID: 1_create_tables
Revises:
Create Date: 2026-10-17 12:00:00
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = '1_create_tables'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    # ### Пользователи и файлы ###
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('idp_username', sa.String(), nullable=False),
        sa.Column('notifications_on', sa.Boolean(), nullable=False),
        sa.Column('accepted_terms', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.Index('ix_users_id', 'id')
    )

    op.create_table(
        'files',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('path', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('created_by', sa.String(length=36), nullable=True),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.Index('ix_files_id', 'id')
    )

    # ### Возможности: корень, версии, журнал статусов ###
    op.create_table(
        'opportunities',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_by', sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.Index('ix_opportunities_id', 'id')
    )

    op.create_table(
        'opportunity_versions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('opportunity_id', sa.String(length=36), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_by', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('teaser', sa.Text(), nullable=False),
        sa.Column('remote_ok', sa.Boolean(), nullable=False),
        sa.Column('remote_desc', sa.Text(), nullable=False),
        sa.Column('location', sa.String(), nullable=False),
        sa.Column('reward', sa.Integer(), nullable=False),
        sa.Column('skills', sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), 'postgresql'), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('proposal_deadline', sa.DateTime(timezone=True), nullable=False),
        sa.Column('assignment_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completion_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('submission_info', sa.Text(), nullable=False),
        sa.Column('acceptance_criteria', sa.Text(), nullable=False),
        sa.Column('evaluation_criteria', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['opportunity_id'], ['opportunities.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.Index('ix_opportunity_versions_id', 'id'),
        sa.Index('ix_opportunity_versions_opportunity_id', 'opportunity_id')
    )

    op.create_table(
        'opportunity_statuses',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('opportunity_id', sa.String(length=36), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_by', sa.String(length=36), nullable=True),
        sa.Column('status', sa.String(), nullable=True),
        sa.Column('event', sa.String(), nullable=True),
        sa.Column('note', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['opportunity_id'], ['opportunities.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.Index('ix_opportunity_statuses_id', 'id'),
        sa.Index('ix_opportunity_statuses_opportunity_id', 'opportunity_id')
    )

    op.create_table(
        'opportunity_addenda',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('opportunity_id', sa.String(length=36), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_by', sa.String(length=36), nullable=True),
        sa.ForeignKeyConstraint(['opportunity_id'], ['opportunities.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.Index('ix_opportunity_addenda_id', 'id'),
        sa.Index('ix_opportunity_addenda_opportunity_id', 'opportunity_id')
    )

    op.create_table(
        'opportunity_attachments',
        sa.Column('opportunity_version_id', sa.String(length=36), nullable=False),
        sa.Column('file_id', sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(['opportunity_version_id'], ['opportunity_versions.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['file_id'], ['files.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('opportunity_version_id', 'file_id', name='pk_opportunity_attachments')
    )

    op.create_table(
        'opportunity_subscribers',
        sa.Column('opportunity_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['opportunity_id'], ['opportunities.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('opportunity_id', 'user_id', name='pk_opportunity_subscribers')
    )

    # ### Предложения ###
    op.create_table(
        'proposals',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('opportunity_id', sa.String(length=36), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_by', sa.String(length=36), nullable=False),
        sa.Column('proposal_text', sa.Text(), nullable=False),
        sa.Column('additional_comments', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['opportunity_id'], ['opportunities.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.Index('ix_proposals_id', 'id'),
        sa.Index('ix_proposals_opportunity_id', 'opportunity_id')
    )

    op.create_table(
        'proposal_statuses',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('proposal_id', sa.String(length=36), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_by', sa.String(length=36), nullable=True),
        sa.Column('status', sa.String(), nullable=True),
        sa.Column('event', sa.String(), nullable=True),
        sa.Column('note', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['proposal_id'], ['proposals.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.Index('ix_proposal_statuses_id', 'id'),
        sa.Index('ix_proposal_statuses_proposal_id', 'proposal_id')
    )

    op.create_table(
        'view_counters',
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('count', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('name')
    )


def downgrade():
    op.drop_table('view_counters')
    op.drop_table('proposal_statuses')
    op.drop_table('proposals')
    op.drop_table('opportunity_subscribers')
    op.drop_table('opportunity_attachments')
    op.drop_table('opportunity_addenda')
    op.drop_table('opportunity_statuses')
    op.drop_table('opportunity_versions')
    op.drop_table('opportunities')
    op.drop_table('files')
    op.drop_table('users')
