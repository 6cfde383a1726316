"""create users, goals, actuals, pipeline and progress tables

Revision ID: a1c4e7f20b11
Revises:
Create Date: 2026-09-01
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB


revision = 'a1c4e7f20b11'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(updated: bool = True):
    cols = [sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False)]
    if updated:
        cols.append(sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False))
    return cols


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('last_seen_at', sa.TIMESTAMP(timezone=True), nullable=True),
    )

    op.create_table(
        'user_profiles',
        sa.Column('account_id', sa.Integer(), primary_key=True),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('business_type', sa.String(64), nullable=True),
        sa.Column('industry', sa.String(128), nullable=True),
        sa.Column('years_experience', sa.Integer(), nullable=True),
        sa.Column('revenue_range', sa.String(64), nullable=True),
        sa.Column('target_market', sa.String(255), nullable=True),
        sa.Column('service_types', JSONB(), nullable=True),
        sa.Column('timezone', sa.String(64), nullable=False, server_default='UTC'),
        sa.Column('currency', sa.String(3), nullable=False, server_default='USD'),
        sa.Column('fiscal_year_start', sa.SmallInteger(), nullable=False, server_default='1'),
        sa.Column('onboarding_completed', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('onboarding_step', sa.SmallInteger(), nullable=False, server_default='0'),
        sa.Column('onboarding_completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('last_active_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('total_sessions', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
    )

    op.create_table(
        'monthly_goals',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('month', sa.String(7), nullable=False),
        sa.Column('revenue_forecast', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('cost_budget', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('site_visits_target', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('social_followers_target', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('pr_target', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('workshops_target', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('advisory_target', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('lectures_target', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('account_id', 'month', name='uq_monthly_goal_account_month'),
    )
    op.create_index('ix_monthly_goals_account_id', 'monthly_goals', ['account_id'])

    op.create_table(
        'monthly_snapshots',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('month', sa.String(7), nullable=False),
        sa.Column('site_visits', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('social_followers', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('account_id', 'month', name='uq_monthly_snapshot_account_month'),
    )
    op.create_index('ix_monthly_snapshots_account_id', 'monthly_snapshots', ['account_id'])

    op.create_table(
        'daily_actuals',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('month', sa.String(7), nullable=False),
        sa.Column('gross_revenue', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('total_costs', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('site_visits', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('social_followers', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('pr_articles', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('workshop_customers', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('advisory_customers', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('lectures', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('account_id', 'date', name='uq_daily_actual_account_date'),
    )
    op.create_index('ix_daily_actuals_account_id', 'daily_actuals', ['account_id'])
    op.create_index('ix_daily_actuals_month', 'daily_actuals', ['month'])
    op.create_index('ix_daily_actual_account_month', 'daily_actuals', ['account_id', 'month'])

    op.create_table(
        'revenue_entries',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('month', sa.String(7), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('source', sa.String(16), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index('ix_revenue_entries_account_id', 'revenue_entries', ['account_id'])
    op.create_index('ix_revenue_entries_month', 'revenue_entries', ['month'])

    op.create_table(
        'progress_state',
        sa.Column('account_id', sa.Integer(), primary_key=True),
        sa.Column('current_streak', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('best_streak', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_days_tracked', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_updated', sa.Date(), nullable=True),
        sa.Column('achievements_json', JSONB(), nullable=False, server_default='{}'),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'opportunities',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('month', sa.String(7), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('type', sa.String(16), nullable=False),
        sa.Column('stage', sa.String(16), nullable=False, server_default='lead'),
        sa.Column('probability', sa.SmallInteger(), nullable=False, server_default='0'),
        sa.Column('estimated_value', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('company', sa.String(255), nullable=True),
        sa.Column('contact_person', sa.String(255), nullable=True),
        sa.Column('estimated_close_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('probability BETWEEN 0 AND 100', name='ck_opportunity_probability'),
    )
    op.create_index('ix_opportunities_account_id', 'opportunities', ['account_id'])
    op.create_index('ix_opportunities_month', 'opportunities', ['month'])
    op.create_index('ix_opportunity_account_month', 'opportunities', ['account_id', 'month'])


def downgrade():
    op.drop_table('opportunities')
    op.drop_table('progress_state')
    op.drop_table('revenue_entries')
    op.drop_table('daily_actuals')
    op.drop_table('monthly_snapshots')
    op.drop_table('monthly_goals')
    op.drop_table('user_profiles')
    op.drop_table('users')
