"""
Insight generation and lifecycle.

Generation: gather account data -> InsightContext -> strategy (LLM when
configured, rules otherwise or on any LLM failure) -> expire stale cards ->
skip (category, title) duplicates of active cards -> insert.

Lifecycle: active -> dismissed | actioned | expired.
"""
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Protocol

from sqlalchemy import case
from sqlalchemy.orm import Session

from app.config import get_settings
from app.domain.insights import (
    INSIGHT_TOOL,
    SYSTEM_PROMPT,
    InsightContext,
    InsightData,
    build_context,
    build_user_prompt,
    parse_insight_tool_call,
    rule_based_insights,
)
from app.domain.progress import month_key
from app.infrastructure.ai.client import AiClient, AiServiceError
from app.infrastructure.db.models import (
    BehaviorLog,
    DailyActual,
    FeatureUsage,
    MonthlyGoal,
    Opportunity,
    RevenueEntry,
    UserInsight,
    UserProfile,
)

logger = logging.getLogger(__name__)

STATUS_ACTIVE = "active"
STATUS_DISMISSED = "dismissed"
STATUS_ACTIONED = "actioned"
STATUS_EXPIRED = "expired"
INSIGHT_STATUSES = (STATUS_ACTIVE, STATUS_DISMISSED, STATUS_ACTIONED, STATUS_EXPIRED)

TYPE_AI = "ai_generated"
TYPE_RULES = "rule_based"

BEHAVIOR_WINDOW_DAYS = 30
BEHAVIOR_LOG_LIMIT = 500


class InsightValidationError(ValueError):
    pass


class InsightStrategy(Protocol):
    insight_type: str

    def generate(self, context: InsightContext, now: datetime) -> list[InsightData]:
        ...


class RuleBasedInsightStrategy:
    insight_type = TYPE_RULES

    def __init__(self, ttl_days: int = 7):
        self.ttl_days = ttl_days

    def generate(self, context: InsightContext, now: datetime) -> list[InsightData]:
        return rule_based_insights(context, now, self.ttl_days)


class LlmInsightStrategy:
    """Chat completion forced to call the `generate_insights` tool."""

    insight_type = TYPE_AI

    def __init__(self, client: AiClient, model: str, ttl_days: int = 7):
        self.client = client
        self.model = model
        self.ttl_days = ttl_days

    def generate(self, context: InsightContext, now: datetime) -> list[InsightData]:
        """
        Raises:
            AiServiceError: provider failure or unusable tool call
        """
        message = self.client.chat_completion(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(context)},
            ],
            temperature=0.7,
            tools=[INSIGHT_TOOL],
            tool_choice={"type": "function", "function": {"name": "generate_insights"}},
        )
        tool_calls = message.get("tool_calls") if isinstance(message, dict) else None
        if not tool_calls:
            raise AiServiceError("No tool call in AI response")
        try:
            arguments = tool_calls[0]["function"]["arguments"]
            return parse_insight_tool_call(arguments, now + timedelta(days=self.ttl_days))
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise AiServiceError(f"Malformed generate_insights call: {exc}") from exc


def expire_due_insights(db: Session, now: datetime, account_id: int | None = None) -> int:
    """Mark active insights past expires_at as expired. Does not commit."""
    query = db.query(UserInsight).filter(
        UserInsight.status == STATUS_ACTIVE,
        UserInsight.expires_at.isnot(None),
        UserInsight.expires_at < now,
    )
    if account_id is not None:
        query = query.filter(UserInsight.account_id == account_id)
    return query.update({UserInsight.status: STATUS_EXPIRED}, synchronize_session="fetch")


class InsightGenerationService:
    def __init__(
        self,
        db: Session,
        llm: InsightStrategy | None = None,
        rules: InsightStrategy | None = None,
    ):
        settings = get_settings()
        self.db = db
        if llm is None:
            client = AiClient()
            if client.configured:
                llm = LlmInsightStrategy(client, settings.AI_INSIGHTS_MODEL, settings.INSIGHT_TTL_DAYS)
        self.llm = llm
        self.rules = rules or RuleBasedInsightStrategy(settings.INSIGHT_TTL_DAYS)

    def build_context(self, account_id: int, today: date, now: datetime) -> InsightContext:
        month = month_key(today)
        since = now - timedelta(days=BEHAVIOR_WINDOW_DAYS)

        profile = self.db.query(UserProfile).filter(UserProfile.account_id == account_id).first()
        logs = self.db.query(BehaviorLog).filter(
            BehaviorLog.account_id == account_id,
            BehaviorLog.created_at >= since,
        ).order_by(BehaviorLog.created_at.desc()).limit(BEHAVIOR_LOG_LIMIT).all()
        usage = self.db.query(FeatureUsage).filter(
            FeatureUsage.account_id == account_id,
        ).order_by(FeatureUsage.usage_count.desc()).all()
        goals = self.db.query(MonthlyGoal).filter(
            MonthlyGoal.account_id == account_id,
            MonthlyGoal.month == month,
        ).first()
        actuals = self.db.query(DailyActual).filter(
            DailyActual.account_id == account_id,
            DailyActual.month == month,
        ).all()
        opportunities = self.db.query(Opportunity).filter(Opportunity.account_id == account_id).all()
        revenue = self.db.query(RevenueEntry).filter(
            RevenueEntry.account_id == account_id,
            RevenueEntry.month == month,
        ).all()

        return build_context(
            today=today,
            profile=_profile_summary(profile),
            behavior_logs=logs,
            feature_usage=usage,
            goals=goals,
            actuals=actuals,
            opportunities=opportunities,
            revenue_entries=revenue,
        )

    def _run_strategies(self, context: InsightContext, now: datetime) -> tuple[str, list[InsightData]]:
        if self.llm is not None:
            try:
                insights = self.llm.generate(context, now)
                if insights:
                    return self.llm.insight_type, insights
                logger.info("AI returned no insights, using rules")
            except AiServiceError as exc:
                logger.warning("AI insight generation failed, using rules: %s", exc)
            except Exception:
                logger.exception("Unexpected error in AI insight generation, using rules")
        return self.rules.insight_type, self.rules.generate(context, now)

    def generate(self, account_id: int, today: date | None = None, now: datetime | None = None) -> list[UserInsight]:
        """
        Generate, dedupe and store insights for one account.

        Returns:
            Newly inserted UserInsight rows (may be empty)
        """
        now = now or datetime.now(timezone.utc)
        today = today or now.date()

        context = self.build_context(account_id, today, now)
        insight_type, insights = self._run_strategies(context, now)

        expired = expire_due_insights(self.db, now, account_id)
        if expired:
            logger.info("Expired %s insights for account %s", expired, account_id)

        active_keys = {
            (category, title)
            for category, title in self.db.query(UserInsight.category, UserInsight.title).filter(
                UserInsight.account_id == account_id,
                UserInsight.status == STATUS_ACTIVE,
            ).all()
        }

        supporting = context.supporting_data()
        created = []
        for data in insights:
            key = (data.category, data.title)
            if key in active_keys:
                continue
            active_keys.add(key)
            row = UserInsight(
                account_id=account_id,
                insight_type=insight_type,
                category=data.category,
                title=data.title,
                description=data.description,
                priority=data.priority,
                suggested_actions=list(data.suggested_actions),
                confidence_score=data.confidence_score,
                status=STATUS_ACTIVE,
                supporting_data=supporting,
                expires_at=data.expires_at,
            )
            self.db.add(row)
            created.append(row)

        self.db.flush()
        self.db.commit()
        logger.info("Generated %s %s insights for account %s", len(created), insight_type, account_id)
        return created


def _profile_summary(profile: UserProfile | None) -> dict[str, Any] | None:
    if profile is None:
        return None
    return {
        "business_type": profile.business_type,
        "industry": profile.industry,
        "years_experience": profile.years_experience,
        "revenue_range": profile.revenue_range,
        "target_market": profile.target_market,
        "service_types": profile.service_types or [],
        "currency": profile.currency,
    }


def _get_owned(db: Session, insight_id: int, account_id: int) -> UserInsight:
    insight = db.query(UserInsight).filter(
        UserInsight.id == insight_id,
        UserInsight.account_id == account_id,
    ).first()
    if not insight:
        raise InsightValidationError("Insight not found")
    return insight


class DismissInsightUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, insight_id: int, account_id: int, now: datetime | None = None) -> None:
        insight = _get_owned(self.db, insight_id, account_id)
        if insight.status != STATUS_ACTIVE:
            raise InsightValidationError(f"Insight is already {insight.status}")
        insight.status = STATUS_DISMISSED
        insight.dismissed_at = now or datetime.now(timezone.utc)
        self.db.commit()


class ActionInsightUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, insight_id: int, account_id: int, now: datetime | None = None) -> None:
        insight = _get_owned(self.db, insight_id, account_id)
        if insight.status != STATUS_ACTIVE:
            raise InsightValidationError(f"Insight is already {insight.status}")
        insight.status = STATUS_ACTIONED
        insight.actioned_at = now or datetime.now(timezone.utc)
        self.db.commit()


class ExpireInsightsUseCase:
    """Expire overdue active insights for one account, or for everyone."""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, account_id: int | None = None, now: datetime | None = None) -> int:
        count = expire_due_insights(self.db, now or datetime.now(timezone.utc), account_id)
        self.db.commit()
        return count


def list_insights(
    db: Session,
    account_id: int,
    category: str | None = None,
    priority: str | None = None,
    status: str | None = STATUS_ACTIVE,
    limit: int = 10,
) -> list[UserInsight]:
    """Filtered insights, high priority first, newest first within a priority."""
    query = db.query(UserInsight).filter(UserInsight.account_id == account_id)
    if status:
        query = query.filter(UserInsight.status == status)
    if category:
        query = query.filter(UserInsight.category == category)
    if priority:
        query = query.filter(UserInsight.priority == priority)

    priority_rank = case(
        (UserInsight.priority == "high", 0),
        (UserInsight.priority == "medium", 1),
        else_=2,
    )
    return query.order_by(priority_rank, UserInsight.created_at.desc(), UserInsight.id.desc()).limit(limit).all()


def insight_to_dict(insight: UserInsight) -> dict[str, Any]:
    return {
        "id": insight.id,
        "insight_type": insight.insight_type,
        "category": insight.category,
        "title": insight.title,
        "description": insight.description,
        "priority": insight.priority,
        "suggested_actions": insight.suggested_actions or [],
        "confidence_score": insight.confidence_score,
        "status": insight.status,
        "expires_at": insight.expires_at.isoformat() if insight.expires_at else None,
        "created_at": insight.created_at.isoformat() if insight.created_at else None,
    }
