"""
Streak and achievement evaluator.

Rules:
  streak          consecutive calendar days with a daily entry saved on that day
  first_entry     any first daily update
  week_streak     current streak >= 7
  revenue_target  today's revenue >= monthly revenue goal / 30
  month_complete  every goal with a positive target met by month-to-date totals

State is passed in and returned; persistence lives behind ProgressStateStore.
"""
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import Any, Mapping, Protocol

from app.domain.progress import METRICS

DAILY_REVENUE_DIVISOR = 30
WEEK_STREAK_DAYS = 7

ACHIEVEMENT_FIRST_ENTRY = "first_entry"
ACHIEVEMENT_WEEK_STREAK = "week_streak"
ACHIEVEMENT_REVENUE_TARGET = "revenue_target"
ACHIEVEMENT_MONTH_COMPLETE = "month_complete"


@dataclass(frozen=True)
class AchievementDefinition:
    id: str
    title: str
    description: str
    category: str  # streak, target, growth, milestone


ACHIEVEMENT_CATALOG: tuple[AchievementDefinition, ...] = (
    AchievementDefinition(ACHIEVEMENT_FIRST_ENTRY, "First Step", "Made your first daily entry", "milestone"),
    AchievementDefinition(ACHIEVEMENT_WEEK_STREAK, "Week Warrior", "7-day tracking streak", "streak"),
    AchievementDefinition(ACHIEVEMENT_REVENUE_TARGET, "Revenue Rocket", "Hit daily revenue target", "target"),
    AchievementDefinition(ACHIEVEMENT_MONTH_COMPLETE, "Monthly Master", "Achieved all monthly goals", "milestone"),
)


@dataclass(frozen=True)
class StreakData:
    current_streak: int = 0
    best_streak: int = 0
    total_days_tracked: int = 0
    last_updated: date | None = None


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    category: str
    unlocked: bool = False
    unlocked_date: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "unlocked": self.unlocked,
            "unlocked_date": self.unlocked_date.isoformat() if self.unlocked_date else None,
        }


@dataclass
class ProgressState:
    """Everything the evaluator owns for one account."""
    streak: StreakData = field(default_factory=StreakData)
    achievements: list[Achievement] = field(default_factory=list)

    def __post_init__(self):
        if not self.achievements:
            self.achievements = initial_achievements()


class ProgressStateStore(Protocol):
    """Load/save port for ProgressState."""

    def load(self, account_id: int) -> ProgressState:
        ...

    def save(self, account_id: int, state: ProgressState) -> None:
        ...


def initial_achievements() -> list[Achievement]:
    return [
        Achievement(id=d.id, title=d.title, description=d.description, category=d.category)
        for d in ACHIEVEMENT_CATALOG
    ]


def update_streak(streak: StreakData, entry_date: date, today: date) -> StreakData:
    """
    Advance the streak for an entry dated `entry_date`.

    Only entries dated today change the streak. Every such update counts
    toward total_days_tracked; the streak continues only when the previous
    update was yesterday, so a repeat save on the same day restarts it at 1.
    """
    if entry_date != today:
        return streak

    if streak.last_updated == today - timedelta(days=1):
        current = streak.current_streak + 1
    else:
        current = 1

    return StreakData(
        current_streak=current,
        best_streak=max(streak.best_streak, current),
        total_days_tracked=streak.total_days_tracked + 1,
        last_updated=today,
    )


def _goal_met(goal_value: float, total: float, is_reversed: bool) -> bool:
    return total <= goal_value if is_reversed else total >= goal_value


def all_goals_met(goals: Any, month_totals: Mapping[str, float]) -> bool:
    """True when every goal with a positive target is met by the month totals."""
    if goals is None:
        return False
    checked = 0
    for metric in METRICS:
        goal_value = float(getattr(goals, metric.goal_field, 0) or 0)
        if goal_value <= 0:
            continue
        checked += 1
        if not _goal_met(goal_value, float(month_totals.get(metric.actual_field, 0)), metric.is_reversed):
            return False
    return checked > 0


def check_achievements(
    achievements: list[Achievement],
    actuals: Any,
    streak: StreakData,
    goals: Any = None,
    month_totals: Mapping[str, float] | None = None,
    now: datetime | None = None,
) -> tuple[list[Achievement], list[str]]:
    """
    Unlock achievements earned by a daily entry.

    Already unlocked achievements are never touched, so calling this twice
    with the same input unlocks nothing the second time.

    Args:
        achievements: current achievement list
        actuals: DailyActual-like object for the saved day
        streak: streak after the entry was applied
        goals: MonthlyGoal-like object for the month (optional)
        month_totals: month-to-date sums keyed by DailyActual field (optional)
        now: unlock timestamp

    Returns:
        (updated achievements, ids unlocked by this call)
    """
    now = now or datetime.now()
    revenue_goal = float(getattr(goals, "revenue_forecast", 0) or 0) if goals is not None else 0.0
    todays_revenue = float(getattr(actuals, "gross_revenue", 0) or 0)

    rules = {
        ACHIEVEMENT_FIRST_ENTRY: lambda: True,
        ACHIEVEMENT_WEEK_STREAK: lambda: streak.current_streak >= WEEK_STREAK_DAYS,
        ACHIEVEMENT_REVENUE_TARGET: lambda: (
            goals is not None and todays_revenue >= revenue_goal / DAILY_REVENUE_DIVISOR
        ),
        ACHIEVEMENT_MONTH_COMPLETE: lambda: (
            month_totals is not None and all_goals_met(goals, month_totals)
        ),
    }

    updated = []
    unlocked_now = []
    for achievement in achievements:
        rule = rules.get(achievement.id)
        if not achievement.unlocked and rule is not None and rule():
            achievement = replace(achievement, unlocked=True, unlocked_date=now)
            unlocked_now.append(achievement.id)
        updated.append(achievement)

    return updated, unlocked_now
