"""
Insight analysis and the deterministic rule set.

Analysis turns raw rows (behavior logs, feature usage, goals, actuals,
opportunities, revenue entries) into an InsightContext. Rules turn the
context into at most MAX_INSIGHTS ranked InsightData cards.
"""
import json
from dataclasses import dataclass, asdict
from datetime import date, datetime, timedelta
from typing import Any, Iterable

from app.domain.pipeline import pipeline_health
from app.domain.progress import days_in_month, month_key, month_progress_pct

MAX_INSIGHTS = 5
SCHEMA_VERSION = "insights.v1"

CATEGORIES = (
    "productivity",
    "revenue_optimization",
    "goal_alignment",
    "feature_discovery",
    "risk_alert",
    "achievement",
)
PRIORITIES = ("high", "medium", "low")
_PRIORITY_RANK = {p: i for i, p in enumerate(PRIORITIES)}

# Goal category -> (MonthlyGoal target column, DailyActual progress column)
GOAL_CATEGORIES = {
    "workshops": ("workshops_target", "workshop_customers"),
    "lectures": ("lectures_target", "lectures"),
    "advisory": ("advisory_target", "advisory_customers"),
    "pr": ("pr_target", "pr_articles"),
}

REVENUE_RISK_SHARE = 50  # % of target
REVENUE_RISK_MONTH_ELAPSED = 40  # % of month
UNDERUSED_FEATURE_COUNT = 3
LEAD_BACKLOG = 5
MIN_PROPOSALS = 2


@dataclass
class InsightData:
    category: str
    title: str
    description: str
    priority: str
    suggested_actions: list[str]
    confidence_score: float
    expires_at: datetime

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["expires_at"] = self.expires_at.isoformat()
        return d


@dataclass
class BehaviorPattern:
    feature: str
    usage_count: int
    last_used: str
    avg_time_spent: float


@dataclass
class InsightContext:
    profile: dict[str, Any] | None
    behavior_patterns: list[BehaviorPattern]
    goal_progress: dict[str, Any]
    pipeline_health: dict[str, Any]
    revenue_trajectory: dict[str, Any]
    feature_usage: list[dict[str, Any]]
    month_elapsed_pct: float
    schema_version: str = SCHEMA_VERSION

    def supporting_data(self) -> dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "behavior_patterns": [asdict(p) for p in self.behavior_patterns],
            "goal_progress": self.goal_progress,
            "pipeline_health": self.pipeline_health,
            "revenue_trajectory": self.revenue_trajectory,
        }


def _iso(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


# ── Analysis ──

def analyze_behavior_patterns(logs: Iterable[Any], feature_usage: Iterable[Any]) -> list[BehaviorPattern]:
    """Merge raw behavior logs with feature usage counters, most used first."""
    features: dict[str, dict[str, Any]] = {}

    for log in logs:
        feature = getattr(log, "component_name", None) or getattr(log, "event_category", None)
        if not feature:
            continue
        used_at = _iso(getattr(log, "created_at", None))
        entry = features.setdefault(feature, {"count": 0, "last_used": used_at, "total_time": 0.0})
        entry["count"] += 1
        if used_at > entry["last_used"]:
            entry["last_used"] = used_at
        entry["total_time"] += float(getattr(log, "event_value", 0) or 0)

    for usage in feature_usage:
        key = usage.feature_key
        count = int(usage.usage_count or 0)
        avg_time = usage.avg_time_spent_seconds
        existing = features.get(key)
        if existing:
            existing["count"] = max(existing["count"], count)
            if avg_time:
                existing["total_time"] = float(avg_time) * existing["count"]
        else:
            features[key] = {
                "count": count,
                "last_used": _iso(usage.last_used_at),
                "total_time": float(avg_time or 0) * count,
            }

    patterns = [
        BehaviorPattern(
            feature=name,
            usage_count=data["count"],
            last_used=data["last_used"],
            avg_time_spent=data["total_time"] / data["count"] if data["count"] > 0 else 0.0,
        )
        for name, data in features.items()
    ]
    patterns.sort(key=lambda p: p.usage_count, reverse=True)
    return patterns


def analyze_goal_progress(goals: Any, actuals: Iterable[Any], today: date) -> dict[str, Any]:
    if goals is None:
        return {"has_goals": False, "message": "No goals set for current month"}

    actuals = list(actuals)
    elapsed = month_progress_pct(today)
    progress: dict[str, Any] = {"has_goals": True}

    for category, (target_field, actual_field) in GOAL_CATEGORIES.items():
        target = float(getattr(goals, target_field, 0) or 0)
        current = sum(float(getattr(a, actual_field, 0) or 0) for a in actuals)
        percentage = current / target * 100 if target > 0 else 0.0
        progress[category] = {
            "target": target,
            "current": current,
            "percentage": round(percentage),
            "on_track": percentage >= elapsed,
        }

    progress["revenue_target"] = float(goals.revenue_forecast or 0)
    progress["cost_budget"] = float(goals.cost_budget or 0)
    return progress


def analyze_pipeline_health(opportunities: Iterable[Any]) -> dict[str, Any]:
    return pipeline_health(opportunities)


def analyze_revenue_trajectory(
    revenue_entries: Iterable[Any],
    goals: Any,
    today: date,
    actuals: Iterable[Any] = (),
) -> dict[str, Any]:
    """
    Revenue so far vs the straight-line expectation for this point of the month.

    Booked revenue entries are used when present; otherwise revenue logged in
    daily actuals.
    """
    entries = list(revenue_entries)
    if entries:
        total = sum(float(e.amount or 0) for e in entries)
    else:
        total = sum(float(getattr(a, "gross_revenue", 0) or 0) for a in actuals)

    target = float(getattr(goals, "revenue_forecast", 0) or 0) if goals is not None else 0.0
    elapsed = month_progress_pct(today)
    expected = elapsed / 100 * target

    return {
        "current_revenue": total,
        "target_revenue": target,
        "percentage_of_target": total / target * 100 if target > 0 else 0.0,
        "expected_at_this_point": expected,
        "variance": total - expected,
        "on_track": total >= expected,
        "entries_count": len(entries),
        "days_in_month": days_in_month(month_key(today)),
    }


def build_context(
    *,
    today: date,
    profile: dict[str, Any] | None,
    behavior_logs: Iterable[Any],
    feature_usage: Iterable[Any],
    goals: Any,
    actuals: Iterable[Any],
    opportunities: Iterable[Any],
    revenue_entries: Iterable[Any],
) -> InsightContext:
    feature_usage = list(feature_usage)
    actuals = list(actuals)
    return InsightContext(
        profile=profile,
        behavior_patterns=analyze_behavior_patterns(behavior_logs, feature_usage),
        goal_progress=analyze_goal_progress(goals, actuals, today),
        pipeline_health=analyze_pipeline_health(opportunities),
        revenue_trajectory=analyze_revenue_trajectory(revenue_entries, goals, today, actuals),
        feature_usage=[
            {
                "feature_key": u.feature_key,
                "usage_count": int(u.usage_count or 0),
                "last_used_at": _iso(u.last_used_at),
            }
            for u in feature_usage
        ],
        month_elapsed_pct=month_progress_pct(today),
    )


# ── Ranking ──

def rank_insights(insights: list[InsightData]) -> list[InsightData]:
    """High priority first (stable within a priority), capped at MAX_INSIGHTS."""
    ranked = sorted(insights, key=lambda i: _PRIORITY_RANK.get(i.priority, len(PRIORITIES)))
    return ranked[:MAX_INSIGHTS]


# ── Rules ──

def rule_based_insights(ctx: InsightContext, now: datetime, ttl_days: int = 7) -> list[InsightData]:
    expires_at = now + timedelta(days=ttl_days)
    insights: list[InsightData] = []
    revenue = ctx.revenue_trajectory

    if (
        revenue["target_revenue"] > 0
        and revenue["percentage_of_target"] < REVENUE_RISK_SHARE
        and ctx.month_elapsed_pct > REVENUE_RISK_MONTH_ELAPSED
    ):
        insights.append(InsightData(
            category="risk_alert",
            title="Revenue Target at Risk",
            description=(
                f"You're at {round(revenue['percentage_of_target'])}% of your monthly target. "
                "Focus on closing existing pipeline opportunities."
            ),
            priority="high",
            suggested_actions=[
                "Review and follow up on proposal-stage opportunities",
                "Schedule calls with negotiation-stage prospects",
                "Consider promotional offers to accelerate closes",
            ],
            confidence_score=0.85,
            expires_at=expires_at,
        ))
    elif revenue["target_revenue"] > 0 and revenue["percentage_of_target"] >= 100:
        insights.append(InsightData(
            category="achievement",
            title="Monthly Revenue Target Achieved!",
            description=(
                f"Congratulations! You've reached {round(revenue['percentage_of_target'])}% "
                "of your revenue goal."
            ),
            priority="medium",
            suggested_actions=[
                "Set a stretch goal for the remainder of the month",
                "Document what strategies worked well",
                "Celebrate this milestone with your team",
            ],
            confidence_score=1.0,
            expires_at=expires_at,
        ))

    stage_count = ctx.pipeline_health.get("stage_count", {})
    if stage_count.get("lead", 0) > LEAD_BACKLOG and stage_count.get("proposal", 0) < MIN_PROPOSALS:
        insights.append(InsightData(
            category="revenue_optimization",
            title="Convert More Leads to Proposals",
            description=(
                f"You have {stage_count['lead']} leads but only {stage_count.get('proposal', 0)} proposals. "
                "Focus on qualification and proposal creation."
            ),
            priority="high",
            suggested_actions=[
                "Review lead qualification criteria",
                "Create proposal templates for faster turnaround",
                "Schedule discovery calls with top leads",
            ],
            confidence_score=0.8,
            expires_at=expires_at,
        ))

    underused = [f for f in ctx.feature_usage if f["usage_count"] < UNDERUSED_FEATURE_COUNT][:3]
    if underused:
        names = ", ".join(f["feature_key"] for f in underused)
        insights.append(InsightData(
            category="feature_discovery",
            title="Explore Powerful Features",
            description=f"You haven't fully explored features like {names}. These can boost your productivity.",
            priority="low",
            suggested_actions=[f"Explore the {f['feature_key']} feature to improve your workflow" for f in underused],
            confidence_score=0.6,
            expires_at=expires_at,
        ))

    goal_progress = ctx.goal_progress
    if goal_progress.get("has_goals"):
        behind = [
            cat for cat in GOAL_CATEGORIES
            if cat in goal_progress
            and goal_progress[cat]["target"] > 0
            and not goal_progress[cat]["on_track"]
            and goal_progress[cat]["percentage"] < 50
        ]
        if behind:
            insights.append(InsightData(
                category="goal_alignment",
                title="Some Goals Need Attention",
                description=f"You're behind on {', '.join(behind)}. Consider adjusting targets or increasing focus.",
                priority="medium",
                suggested_actions=[f"Review and create action plan for {cat} goal" for cat in behind],
                confidence_score=0.75,
                expires_at=expires_at,
            ))

    if ctx.behavior_patterns:
        top = ctx.behavior_patterns[0]
        insights.append(InsightData(
            category="productivity",
            title=f"You're Most Active in {top.feature}",
            description=f"You've used {top.feature} {top.usage_count} times. Keep up the great engagement!",
            priority="low",
            suggested_actions=[
                "Consider setting up shortcuts for your most-used features",
                "Check if there are related features that could help",
            ],
            confidence_score=0.9,
            expires_at=expires_at,
        ))

    return rank_insights(insights)


# ── LLM contract ──

INSIGHT_TOOL = {
    "type": "function",
    "function": {
        "name": "generate_insights",
        "description": "Generate business insights based on user data analysis",
        "parameters": {
            "type": "object",
            "properties": {
                "insights": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "category": {"type": "string", "enum": list(CATEGORIES)},
                            "title": {"type": "string"},
                            "description": {"type": "string"},
                            "priority": {"type": "string", "enum": list(PRIORITIES)},
                            "suggestedActions": {"type": "array", "items": {"type": "string"}},
                            "confidenceScore": {"type": "number"},
                        },
                        "required": [
                            "category", "title", "description",
                            "priority", "suggestedActions", "confidenceScore",
                        ],
                    },
                },
            },
            "required": ["insights"],
        },
    },
}

SYSTEM_PROMPT = """You are an expert business intelligence analyst. Analyze the user's business data and generate personalized, actionable insights.

Your insights should:
1. Be specific and actionable
2. Reference actual numbers from the data
3. Provide clear next steps
4. Be encouraging but honest about challenges

Generate 3-5 insights across these categories:
- productivity: Time and efficiency recommendations
- revenue_optimization: Revenue growth opportunities
- goal_alignment: Goal adjustment suggestions
- feature_discovery: Underutilized feature recommendations
- risk_alert: Potential issues detected
- achievement: Celebration of milestones

Each insight must have:
- category: one of the categories above
- title: concise, actionable title (max 60 chars)
- description: detailed explanation (max 200 chars)
- priority: "high", "medium", or "low"
- suggestedActions: array of 2-3 specific actions
- confidenceScore: 0.0 to 1.0 based on data quality"""


def build_user_prompt(ctx: InsightContext) -> str:
    def block(value: Any) -> str:
        return json.dumps(value, indent=2, default=str)

    return (
        f"Analyze this business data (schema {ctx.schema_version}) and generate insights:\n\n"
        f"**User Profile:**\n{block(ctx.profile)}\n\n"
        f"**Behavior Patterns (Top 10):**\n{block([asdict(p) for p in ctx.behavior_patterns[:10]])}\n\n"
        f"**Goal Progress:**\n{block(ctx.goal_progress)}\n\n"
        f"**Pipeline Health:**\n{block(ctx.pipeline_health)}\n\n"
        f"**Revenue Trajectory:**\n{block(ctx.revenue_trajectory)}\n\n"
        f"**Feature Usage Stats:**\n{block(ctx.feature_usage[:5])}\n\n"
        "Generate personalized insights based on this data."
    )


def parse_insight_tool_call(arguments: str, expires_at: datetime) -> list[InsightData]:
    """
    Parse the `generate_insights` tool-call arguments.

    Entries with an unknown category or priority, or missing or non-text
    title/description, are dropped.

    Raises:
        ValueError: arguments are not valid JSON or lack the "insights" list
    """
    parsed = json.loads(arguments)
    raw = parsed.get("insights") if isinstance(parsed, dict) else None
    if not isinstance(raw, list):
        raise ValueError("Tool call has no insights list")

    result = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        category = item.get("category")
        priority = item.get("priority")
        title = item.get("title")
        description = item.get("description")
        if not isinstance(title, str) or not isinstance(description, str):
            continue
        title, description = title.strip(), description.strip()
        if category not in CATEGORIES or priority not in PRIORITIES or not title or not description:
            continue
        actions = [str(a) for a in item.get("suggestedActions") or [] if str(a).strip()]
        try:
            confidence = float(item.get("confidenceScore", 0.5))
        except (TypeError, ValueError):
            confidence = 0.5
        result.append(InsightData(
            category=category,
            title=title[:255],
            description=description,
            priority=priority,
            suggested_actions=actions,
            confidence_score=min(max(confidence, 0.0), 1.0),
            expires_at=expires_at,
        ))
    return rank_insights(result)
