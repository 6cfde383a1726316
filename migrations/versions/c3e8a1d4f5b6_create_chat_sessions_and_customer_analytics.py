"""create chat session and customer tool analytics tables

Revision ID: c3e8a1d4f5b6
Revises: b7d2f9a31c42
Create Date: 2026-10-17
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB


revision = 'c3e8a1d4f5b6'
down_revision = 'b7d2f9a31c42'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'conversation_sessions',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False, server_default='Strategic Chat'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('message_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_conversation_sessions_account_id', 'conversation_sessions', ['account_id'])

    op.create_table(
        'chat_messages',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('role', sa.String(16), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_chat_messages_session_id', 'chat_messages', ['session_id'])

    op.create_table(
        'customer_tool_sessions',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('tool_type', sa.String(32), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=True),
        sa.Column('customer_name', sa.String(255), nullable=True),
        sa.Column('session_duration', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('questions_asked', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('completion_percentage', sa.Float(), nullable=False, server_default='0'),
        sa.Column('return_visit', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('session_quality_score', sa.Float(), nullable=False, server_default='0'),
        sa.Column('referrer_url', sa.String(500), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_customer_tool_sessions_account_id', 'customer_tool_sessions', ['account_id'])
    op.create_index('ix_customer_tool_sessions_created_at', 'customer_tool_sessions', ['created_at'])

    op.create_table(
        'lead_scoring',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=False),
        sa.Column('customer_name', sa.String(255), nullable=True),
        sa.Column('lead_source', sa.String(64), nullable=False),
        sa.Column('engagement_score', sa.Float(), nullable=False, server_default='0'),
        sa.Column('conversion_probability', sa.Float(), nullable=False, server_default='0'),
        sa.Column('lead_temperature', sa.String(8), nullable=False, server_default='cold'),
        sa.Column('tool_usage_frequency', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('cross_tool_usage_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_interaction', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('consultation_booked', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('seminar_attended', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('converted_to_paid', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('estimated_value', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('actual_value', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('conversion_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_lead_scoring_account_id', 'lead_scoring', ['account_id'])
    op.create_index('ix_lead_scoring_created_at', 'lead_scoring', ['created_at'])

    op.create_table(
        'tool_performance_metrics',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('tool_type', sa.String(32), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('total_sessions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unique_visitors', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_leads_generated', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('qualified_leads', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('consultation_bookings', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('conversion_rate', sa.Float(), nullable=False, server_default='0'),
        sa.Column('revenue_attributed', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('customer_acquisition_cost', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.UniqueConstraint('account_id', 'tool_type', 'date', name='uq_tool_metric_account_tool_date'),
    )
    op.create_index('ix_tool_performance_metrics_account_id', 'tool_performance_metrics', ['account_id'])

    op.create_table(
        'customer_journey_tracking',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=False),
        sa.Column('journey_stage', sa.String(16), nullable=False, server_default='awareness'),
        sa.Column('first_tool_used', sa.String(32), nullable=True),
        sa.Column('tools_used', JSONB(), nullable=False, server_default='[]'),
        sa.Column('conversion_path', JSONB(), nullable=False, server_default='[]'),
        sa.Column('total_engagement_time', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('revenue_attribution', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('last_touchpoint', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('account_id', 'customer_email', name='uq_customer_journey_account_email'),
    )
    op.create_index('ix_customer_journey_tracking_account_id', 'customer_journey_tracking', ['account_id'])
    op.create_index('ix_customer_journey_tracking_created_at', 'customer_journey_tracking', ['created_at'])


def downgrade():
    op.drop_table('customer_journey_tracking')
    op.drop_table('tool_performance_metrics')
    op.drop_table('lead_scoring')
    op.drop_table('customer_tool_sessions')
    op.drop_table('chat_messages')
    op.drop_table('conversation_sessions')
