"""create insights, behavior, advisor, network and sheets tables

Revision ID: b7d2f9a31c42
Revises: a1c4e7f20b11
Create Date: 2026-09-20
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB


revision = 'b7d2f9a31c42'
down_revision = 'a1c4e7f20b11'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user_insights',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('insight_type', sa.String(32), nullable=False),
        sa.Column('category', sa.String(32), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('priority', sa.String(8), nullable=False, server_default='medium'),
        sa.Column('suggested_actions', JSONB(), nullable=False, server_default='[]'),
        sa.Column('confidence_score', sa.Float(), nullable=True),
        sa.Column('status', sa.String(16), nullable=False, server_default='active'),
        sa.Column('supporting_data', JSONB(), nullable=True),
        sa.Column('expires_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('dismissed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('actioned_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_user_insights_account_id', 'user_insights', ['account_id'])
    op.create_index('ix_user_insights_status', 'user_insights', ['status'])
    op.create_index('ix_user_insight_account_status', 'user_insights', ['account_id', 'status'])

    op.create_table(
        'user_behavior_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.String(64), nullable=True),
        sa.Column('event_type', sa.String(64), nullable=False),
        sa.Column('event_category', sa.String(64), nullable=False),
        sa.Column('event_action', sa.String(64), nullable=False),
        sa.Column('event_label', sa.String(255), nullable=True),
        sa.Column('event_value', sa.Float(), nullable=True),
        sa.Column('page_path', sa.String(255), nullable=True),
        sa.Column('component_name', sa.String(128), nullable=True),
        sa.Column('metadata_json', JSONB(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_user_behavior_logs_account_id', 'user_behavior_logs', ['account_id'])
    op.create_index('ix_user_behavior_logs_created_at', 'user_behavior_logs', ['created_at'])

    op.create_table(
        'feature_usage',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('feature_key', sa.String(128), nullable=False),
        sa.Column('usage_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('avg_time_spent_seconds', sa.Float(), nullable=True),
        sa.Column('first_used_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('last_used_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.UniqueConstraint('account_id', 'feature_key', name='uq_feature_usage_account_key'),
    )
    op.create_index('ix_feature_usage_account_id', 'feature_usage', ['account_id'])

    op.create_table(
        'ai_conversations',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('question', sa.Text(), nullable=False),
        sa.Column('response', sa.Text(), nullable=False),
        sa.Column('context', JSONB(), nullable=True),
        sa.Column('conversation_type', sa.String(32), nullable=False, server_default='quick_insight'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_ai_conversations_account_id', 'ai_conversations', ['account_id'])

    op.create_table(
        'talent_contacts',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(64), nullable=True),
        sa.Column('linkedin_url', sa.String(500), nullable=True),
        sa.Column('portfolio_url', sa.String(500), nullable=True),
        sa.Column('specialty_summary', sa.Text(), nullable=True),
        sa.Column('rate_min', sa.Numeric(12, 2), nullable=True),
        sa.Column('rate_max', sa.Numeric(12, 2), nullable=True),
        sa.Column('rate_type', sa.String(16), nullable=True),
        sa.Column('availability_status', sa.String(16), nullable=False, server_default='available'),
        sa.Column('trust_rating', sa.SmallInteger(), nullable=True),
        sa.Column('working_style_notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_talent_contacts_account_id', 'talent_contacts', ['account_id'])

    op.create_table(
        'skills',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('name', sa.String(128), nullable=False, unique=True),
        sa.Column('category', sa.String(64), nullable=False, server_default='general'),
    )

    op.create_table(
        'talent_skills',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('talent_contact_id', sa.Integer(), nullable=False),
        sa.Column('skill_id', sa.Integer(), nullable=False),
        sa.UniqueConstraint('talent_contact_id', 'skill_id', name='uq_talent_skill'),
    )
    op.create_index('ix_talent_skills_talent_contact_id', 'talent_skills', ['talent_contact_id'])

    op.create_table(
        'talent_referrals',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('talent_contact_id', sa.Integer(), nullable=False),
        sa.Column('client_name', sa.String(255), nullable=False),
        sa.Column('project_type', sa.String(128), nullable=True),
        sa.Column('referred_date', sa.Date(), nullable=False),
        sa.Column('estimated_value', sa.Numeric(14, 2), nullable=True),
        sa.Column('commission_fee', sa.Numeric(14, 2), nullable=True),
        sa.Column('follow_up_date', sa.Date(), nullable=True),
        sa.Column('outcome_delivered', sa.Boolean(), nullable=True),
        sa.Column('outcome_notes', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_talent_referrals_account_id', 'talent_referrals', ['account_id'])
    op.create_index('ix_talent_referrals_talent_contact_id', 'talent_referrals', ['talent_contact_id'])

    op.create_table(
        'sheets_integrations',
        sa.Column('account_id', sa.Integer(), primary_key=True),
        sa.Column('access_token_encrypted', sa.Text(), nullable=True),
        sa.Column('refresh_token_encrypted', sa.Text(), nullable=True),
        sa.Column('token_expires_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('google_sheet_id', sa.String(128), nullable=True),
        sa.Column('sheet_name', sa.String(255), nullable=True),
        sa.Column('sync_enabled', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('sync_status', sa.String(16), nullable=False, server_default='pending'),
        sa.Column('sync_error', sa.Text(), nullable=True),
        sa.Column('last_sync_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade():
    op.drop_table('sheets_integrations')
    op.drop_table('talent_referrals')
    op.drop_table('talent_skills')
    op.drop_table('skills')
    op.drop_table('talent_contacts')
    op.drop_table('ai_conversations')
    op.drop_table('feature_usage')
    op.drop_table('user_behavior_logs')
    op.drop_table('user_insights')
