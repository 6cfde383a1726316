"""
Progress calculator: status, percentage and message for a metric against its target.

Pure functions only. Reversed metrics (costs) are "lower is better".
"""
import calendar
from dataclasses import dataclass, asdict
from datetime import date
from typing import Any, Iterable, Mapping

STATUS_AHEAD = "ahead"
STATUS_ON_TRACK = "on-track"
STATUS_BEHIND = "behind"

TREND_UP = "up"
TREND_DOWN = "down"
TREND_STABLE = "stable"

AHEAD_THRESHOLD = 110
ON_TRACK_THRESHOLD = 90
COST_AHEAD_RATIO = 0.9
COST_ON_TRACK_RATIO = 1.1
TREND_RATIO = 0.8


@dataclass(frozen=True)
class ProgressStatus:
    status: str
    percentage: float
    trend: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MetricConfig:
    name: str
    actual_field: str  # DailyActual column
    goal_field: str  # MonthlyGoal column
    unit: str = ""
    is_reversed: bool = False


METRICS: tuple[MetricConfig, ...] = (
    MetricConfig("Revenue", "gross_revenue", "revenue_forecast", unit="$"),
    MetricConfig("Costs", "total_costs", "cost_budget", unit="$", is_reversed=True),
    MetricConfig("Site Visits", "site_visits", "site_visits_target"),
    MetricConfig("Followers", "social_followers", "social_followers_target"),
    MetricConfig("Articles", "pr_articles", "pr_target"),
    MetricConfig("Workshop", "workshop_customers", "workshops_target"),
    MetricConfig("Advisory", "advisory_customers", "advisory_target"),
    MetricConfig("Lectures", "lectures", "lectures_target"),
)


def calculate_progress(current: float, target: float, is_reversed: bool = False) -> ProgressStatus:
    """
    Classify a metric against its target.

    Args:
        current: Actual value so far
        target: Target for the same period
        is_reversed: True for metrics where lower is better (costs)

    Returns:
        ProgressStatus. `percentage` is the un-clamped effective percentage.
    """
    current = float(current)
    target = float(target)

    if target == 0:
        return ProgressStatus(
            status=STATUS_ON_TRACK if current == 0 else STATUS_AHEAD,
            percentage=0.0 if current == 0 else 100.0,
            trend=TREND_STABLE,
            message="No target set" if current == 0 else "Target achieved",
        )

    if is_reversed:
        effective = (target - current) / target * 100 + 100
        if current <= target * COST_AHEAD_RATIO:
            status = STATUS_AHEAD
            message = f"Great! Costs are {(target - current) / target * 100:.0f}% below target"
        elif current <= target * COST_ON_TRACK_RATIO:
            status = STATUS_ON_TRACK
            message = "Costs are within target range"
        else:
            status = STATUS_BEHIND
            message = f"Costs are {(current - target) / target * 100:.0f}% over target"
    else:
        effective = current / target * 100
        if effective >= AHEAD_THRESHOLD:
            status = STATUS_AHEAD
            message = f"Excellent! {effective - 100:.0f}% ahead of target"
        elif effective >= ON_TRACK_THRESHOLD:
            status = STATUS_ON_TRACK
            message = "On track to meet monthly goal"
        else:
            status = STATUS_BEHIND
            message = f"Need {100 - effective:.0f}% more to reach target"

    # Compares against the same-period target, not a prior period.
    trend = TREND_UP if current > target * TREND_RATIO else TREND_DOWN

    return ProgressStatus(status=status, percentage=effective, trend=trend, message=message)


# ── Calendar helpers ──

def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def parse_month(month: str) -> tuple[int, int]:
    """'2026-10' -> (2026, 10). Raises ValueError on malformed input."""
    try:
        year_s, month_s = month.split("-")
        year, mon = int(year_s), int(month_s)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid month: {month!r}, expected YYYY-MM")
    if not 1 <= mon <= 12 or len(year_s) != 4:
        raise ValueError(f"Invalid month: {month!r}, expected YYYY-MM")
    return year, mon


def days_in_month(month: str) -> int:
    year, mon = parse_month(month)
    return calendar.monthrange(year, mon)[1]


def elapsed_fraction(month: str, today: date) -> float:
    """Share of `month` elapsed as of `today` (1.0 for past months, 0.0 for future)."""
    current = month_key(today)
    if month < current:
        return 1.0
    if month > current:
        return 0.0
    return today.day / days_in_month(month)


def prorated_target(monthly_target: float, day: int, total_days: int) -> float:
    """Monthly target scaled to the part of the month elapsed by `day`."""
    if total_days <= 0:
        return 0.0
    return float(monthly_target) * day / total_days


# ── Dashboard aggregation ──

def sum_actuals(actuals: Iterable[Any], field: str) -> float:
    return sum(float(getattr(a, field, 0) or 0) for a in actuals)


def build_metrics_progress(goals: Any, actuals: Iterable[Any], month: str, today: date) -> list[dict[str, Any]]:
    """
    Per-metric progress for a month: month-to-date sums vs pro-rated targets.

    Args:
        goals: object with MonthlyGoal fields (None = no goals set)
        actuals: DailyActual-like rows of the month
        month: YYYY-MM
        today: reference date for pro-rating

    Returns:
        List of dicts: name, key, current, target, monthly_target, daily_target,
        unit, is_reversed, progress
    """
    if goals is None:
        return []

    actuals = list(actuals)
    total_days = days_in_month(month)
    fraction = elapsed_fraction(month, today)

    result = []
    for metric in METRICS:
        monthly_target = float(getattr(goals, metric.goal_field, 0) or 0)
        target = monthly_target * fraction
        current = sum_actuals(actuals, metric.actual_field)
        progress = calculate_progress(current, target, metric.is_reversed)
        result.append({
            "name": metric.name,
            "key": metric.actual_field,
            "current": current,
            "target": target,
            "monthly_target": monthly_target,
            "daily_target": monthly_target / total_days,
            "unit": metric.unit,
            "is_reversed": metric.is_reversed,
            "progress": progress,
        })
    return result


def overall_score(metrics_progress: list[Mapping[str, Any]]) -> int:
    """Mean metric percentage clamped to 0..100."""
    if not metrics_progress:
        return 0
    avg = sum(m["progress"].percentage for m in metrics_progress) / len(metrics_progress)
    return round(min(max(avg, 0), 100))


def motivational_message(score: int) -> str:
    if score >= 80:
        return "Outstanding performance! You're crushing your goals!"
    if score >= 60:
        return "Good momentum! Keep pushing forward!"
    if score >= 40:
        return "You're making progress! Focus on key metrics!"
    return "Every expert was once a beginner. Let's build momentum!"


def todays_wins(metrics_progress: list[Mapping[str, Any]]) -> int:
    return sum(1 for m in metrics_progress if m["progress"].status == STATUS_AHEAD)


def month_progress_pct(today: date) -> float:
    """Percent of the current month elapsed, counting today."""
    return today.day / days_in_month(month_key(today)) * 100
