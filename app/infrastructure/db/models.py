"""
SQLAlchemy ORM models
"""
from decimal import Decimal
from datetime import date as date_type
from sqlalchemy import String, DateTime, Integer, SmallInteger, Text, TIMESTAMP, Date, func, Boolean, Numeric, Float, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB

from app.infrastructure.db.session import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    last_seen_at: Mapped[DateTime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )


class UserProfile(Base):
    """Business profile collected during onboarding (one row per account)"""
    __tablename__ = "user_profiles"

    account_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    business_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    industry: Mapped[str | None] = mapped_column(String(128), nullable=True)
    years_experience: Mapped[int | None] = mapped_column(Integer, nullable=True)
    revenue_range: Mapped[str | None] = mapped_column(String(64), nullable=True)
    target_market: Mapped[str | None] = mapped_column(String(255), nullable=True)
    service_types: Mapped[list | None] = mapped_column(JSONB, nullable=True)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, server_default="UTC")
    currency: Mapped[str] = mapped_column(String(3), nullable=False, server_default="USD")
    fiscal_year_start: Mapped[int] = mapped_column(SmallInteger, nullable=False, server_default="1")

    onboarding_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    onboarding_step: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0, server_default="0")
    onboarding_completed_at: Mapped[DateTime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    last_active_at: Mapped[DateTime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    total_sessions: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


# ============================================================================
# Goals and actuals
# ============================================================================


class MonthlyGoal(Base):
    """Monthly targets. One row per (account, month)"""
    __tablename__ = "monthly_goals"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    month: Mapped[str] = mapped_column(String(7), nullable=False)  # YYYY-MM

    revenue_forecast: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0, server_default="0")
    cost_budget: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0, server_default="0")
    site_visits_target: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    social_followers_target: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    pr_target: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    workshops_target: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    advisory_target: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    lectures_target: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint('account_id', 'month', name='uq_monthly_goal_account_month'),
    )


class MonthlySnapshot(Base):
    """Current-state counters for a month (site visits, followers)"""
    __tablename__ = "monthly_snapshots"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    month: Mapped[str] = mapped_column(String(7), nullable=False)

    site_visits: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    social_followers: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint('account_id', 'month', name='uq_monthly_snapshot_account_month'),
    )


class DailyActual(Base):
    """Logged actuals for one calendar day. One row per (account, date)"""
    __tablename__ = "daily_actuals"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    date: Mapped[date_type] = mapped_column(Date, nullable=False)
    month: Mapped[str] = mapped_column(String(7), nullable=False, index=True)

    gross_revenue: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0, server_default="0")
    total_costs: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0, server_default="0")
    site_visits: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    social_followers: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    pr_articles: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    workshop_customers: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    advisory_customers: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    lectures: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint('account_id', 'date', name='uq_daily_actual_account_date'),
        Index('ix_daily_actual_account_month', 'account_id', 'month'),
    )


class RevenueEntry(Base):
    """Individual revenue booking (feeds revenue trajectory and export)"""
    __tablename__ = "revenue_entries"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    date: Mapped[date_type] = mapped_column(Date, nullable=False)
    month: Mapped[str] = mapped_column(String(7), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0, server_default="0")
    source: Mapped[str] = mapped_column(String(16), nullable=False)  # workshop, advisory, lecture, other
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class ProgressStateModel(Base):
    """Streak counters and unlocked achievements per account"""
    __tablename__ = "progress_state"

    account_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    best_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_days_tracked: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_updated: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    # {"first_entry": "2026-10-01T09:00:00+00:00", ...}
    achievements_json: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)

    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


# ============================================================================
# Pipeline
# ============================================================================


class Opportunity(Base):
    __tablename__ = "opportunities"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    month: Mapped[str] = mapped_column(String(7), nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)  # workshop, advisory, lecture, pr
    stage: Mapped[str] = mapped_column(String(16), nullable=False, server_default="lead")
    probability: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0, server_default="0")
    estimated_value: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0, server_default="0")

    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_person: Mapped[str | None] = mapped_column(String(255), nullable=True)
    estimated_close_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        Index('ix_opportunity_account_month', 'account_id', 'month'),
    )


# ============================================================================
# Insights and behavior
# ============================================================================


class UserInsight(Base):
    __tablename__ = "user_insights"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    insight_type: Mapped[str] = mapped_column(String(32), nullable=False)  # ai_generated, rule_based
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[str] = mapped_column(String(8), nullable=False, server_default="medium")
    suggested_actions: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    confidence_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="active", index=True)
    supporting_data: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    expires_at: Mapped[DateTime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    dismissed_at: Mapped[DateTime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    actioned_at: Mapped[DateTime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        Index('ix_user_insight_account_status', 'account_id', 'status'),
    )


class BehaviorLog(Base):
    __tablename__ = "user_behavior_logs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    session_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    event_category: Mapped[str] = mapped_column(String(64), nullable=False)
    event_action: Mapped[str] = mapped_column(String(64), nullable=False)
    event_label: Mapped[str | None] = mapped_column(String(255), nullable=True)
    event_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    page_path: Mapped[str | None] = mapped_column(String(255), nullable=True)
    component_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    metadata_json: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False, index=True
    )


class FeatureUsage(Base):
    __tablename__ = "feature_usage"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    feature_key: Mapped[str] = mapped_column(String(128), nullable=False)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    avg_time_spent_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    first_used_at: Mapped[DateTime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    last_used_at: Mapped[DateTime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint('account_id', 'feature_key', name='uq_feature_usage_account_key'),
    )


class AiConversation(Base):
    __tablename__ = "ai_conversations"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    response: Mapped[str] = mapped_column(Text, nullable=False)
    context: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    conversation_type: Mapped[str] = mapped_column(String(32), nullable=False, server_default="quick_insight")
    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class ConversationSession(Base):
    """Multi-turn strategic chat; closed once summarized"""
    __tablename__ = "conversation_sessions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False, server_default="Strategic Chat")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    message_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False)  # user, assistant
    content: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


# ============================================================================
# Network (talent contacts and referrals)
# ============================================================================


class TalentContact(Base):
    __tablename__ = "talent_contacts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    linkedin_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    portfolio_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    specialty_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    rate_min: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    rate_max: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    rate_type: Mapped[str | None] = mapped_column(String(16), nullable=True)  # hourly, daily, project
    availability_status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="available")
    trust_rating: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)  # 1..5
    working_style_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class Skill(Base):
    __tablename__ = "skills"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    category: Mapped[str] = mapped_column(String(64), nullable=False, server_default="general")


class TalentSkill(Base):
    __tablename__ = "talent_skills"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    talent_contact_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    skill_id: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint('talent_contact_id', 'skill_id', name='uq_talent_skill'),
    )


class TalentReferral(Base):
    __tablename__ = "talent_referrals"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    talent_contact_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    project_type: Mapped[str | None] = mapped_column(String(128), nullable=True)
    referred_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    estimated_value: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    commission_fee: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    follow_up_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    # None = pending, True = delivered, False = not delivered
    outcome_delivered: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    outcome_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


# ============================================================================
# Spreadsheet export
# ============================================================================


class SheetsIntegration(Base):
    """Google Sheets connection. Tokens are stored encrypted"""
    __tablename__ = "sheets_integrations"

    account_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    access_token_encrypted: Mapped[str | None] = mapped_column(Text, nullable=True)
    refresh_token_encrypted: Mapped[str | None] = mapped_column(Text, nullable=True)
    token_expires_at: Mapped[DateTime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    google_sheet_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    sheet_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sync_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    sync_status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="pending")
    sync_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_sync_at: Mapped[DateTime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


# ============================================================================
# Customer tool analytics (lead magnets: assessments, blueprints)
# ============================================================================


class CustomerToolSession(Base):
    __tablename__ = "customer_tool_sessions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    tool_type: Mapped[str] = mapped_column(String(32), nullable=False)
    customer_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    session_duration: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")  # seconds
    questions_asked: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    completion_percentage: Mapped[float] = mapped_column(Float, nullable=False, default=0, server_default="0")
    return_visit: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    session_quality_score: Mapped[float] = mapped_column(Float, nullable=False, default=0, server_default="0")
    referrer_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False, index=True
    )


class LeadScore(Base):
    __tablename__ = "lead_scoring"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    lead_source: Mapped[str] = mapped_column(String(64), nullable=False)  # usually a tool_type
    engagement_score: Mapped[float] = mapped_column(Float, nullable=False, default=0, server_default="0")  # 0..100
    conversion_probability: Mapped[float] = mapped_column(Float, nullable=False, default=0, server_default="0")  # 0..100
    lead_temperature: Mapped[str] = mapped_column(String(8), nullable=False, server_default="cold")
    tool_usage_frequency: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    cross_tool_usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_interaction: Mapped[DateTime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    consultation_booked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    seminar_attended: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    converted_to_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    estimated_value: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0, server_default="0")
    actual_value: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0, server_default="0")
    conversion_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class ToolPerformanceMetric(Base):
    """Daily per-tool rollup"""
    __tablename__ = "tool_performance_metrics"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    tool_type: Mapped[str] = mapped_column(String(32), nullable=False)
    date: Mapped[date_type] = mapped_column(Date, nullable=False)
    total_sessions: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    unique_visitors: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_leads_generated: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    qualified_leads: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    consultation_bookings: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    conversion_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0, server_default="0")
    revenue_attributed: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0, server_default="0")
    customer_acquisition_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0, server_default="0")

    __table_args__ = (
        UniqueConstraint('account_id', 'tool_type', 'date', name='uq_tool_metric_account_tool_date'),
    )


class CustomerJourney(Base):
    __tablename__ = "customer_journey_tracking"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    journey_stage: Mapped[str] = mapped_column(String(16), nullable=False, server_default="awareness")
    first_tool_used: Mapped[str | None] = mapped_column(String(32), nullable=True)
    tools_used: Mapped[list] = mapped_column(JSONB, nullable=False, default=list, server_default="[]")
    conversion_path: Mapped[list] = mapped_column(JSONB, nullable=False, default=list, server_default="[]")
    total_engagement_time: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")  # seconds
    revenue_attribution: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0, server_default="0")
    last_touchpoint: Mapped[DateTime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False, index=True
    )

    __table_args__ = (
        UniqueConstraint('account_id', 'customer_email', name='uq_customer_journey_account_email'),
    )
