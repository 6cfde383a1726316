"""
Goals and actuals use cases: monthly goals, monthly snapshots, daily actuals,
and the progress dashboard built on top of them.
"""
import logging
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy.orm import Session

from app.application.progress_state import SqlProgressStateStore
from app.domain.achievements import (
    ProgressStateStore,
    StreakData,
    check_achievements,
    update_streak,
)
from app.domain.progress import (
    METRICS,
    build_metrics_progress,
    month_key,
    month_progress_pct,
    motivational_message,
    overall_score,
    parse_month,
    sum_actuals,
    todays_wins,
)
from app.infrastructure.db.models import DailyActual, MonthlyGoal, MonthlySnapshot

logger = logging.getLogger(__name__)

GOAL_FIELDS = (
    "revenue_forecast",
    "cost_budget",
    "site_visits_target",
    "social_followers_target",
    "pr_target",
    "workshops_target",
    "advisory_target",
    "lectures_target",
)
MONEY_GOAL_FIELDS = frozenset({"revenue_forecast", "cost_budget"})

ACTUAL_FIELDS = (
    "gross_revenue",
    "total_costs",
    "site_visits",
    "social_followers",
    "pr_articles",
    "workshop_customers",
    "advisory_customers",
    "lectures",
)
MONEY_ACTUAL_FIELDS = frozenset({"gross_revenue", "total_costs"})


class TrackingValidationError(ValueError):
    pass


def _validate_month(month: str) -> str:
    try:
        parse_month(month)
    except ValueError as exc:
        raise TrackingValidationError(str(exc))
    return month


def _non_negative(name: str, value: Any, money: bool) -> Decimal | int:
    """Coerce a metric value; money keeps 2 decimals, counts are ints."""
    if value is None or value == "":
        value = 0
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise TrackingValidationError(f"{name}: not a number")
    if number < 0:
        raise TrackingValidationError(f"{name}: must be >= 0")
    if money:
        return number.quantize(Decimal("0.01"))
    if number != number.to_integral_value():
        raise TrackingValidationError(f"{name}: must be a whole number")
    return int(number)


class UpsertMonthlyGoalsUseCase:
    """Create or replace the goals of (account, month)."""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, account_id: int, month: str, **targets) -> int:
        _validate_month(month)
        unknown = set(targets) - set(GOAL_FIELDS)
        if unknown:
            raise TrackingValidationError(f"Unknown goal fields: {', '.join(sorted(unknown))}")

        goal = self.db.query(MonthlyGoal).filter(
            MonthlyGoal.account_id == account_id,
            MonthlyGoal.month == month,
        ).first()
        if goal is None:
            goal = MonthlyGoal(account_id=account_id, month=month)
            self.db.add(goal)

        for field in GOAL_FIELDS:
            if field in targets:
                setattr(goal, field, _non_negative(field, targets[field], field in MONEY_GOAL_FIELDS))
            elif getattr(goal, field) is None:
                setattr(goal, field, 0)

        self.db.flush()
        self.db.commit()
        return goal.id


class UpsertMonthlySnapshotUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, account_id: int, month: str, site_visits: Any = 0, social_followers: Any = 0) -> int:
        _validate_month(month)
        snapshot = self.db.query(MonthlySnapshot).filter(
            MonthlySnapshot.account_id == account_id,
            MonthlySnapshot.month == month,
        ).first()
        if snapshot is None:
            snapshot = MonthlySnapshot(account_id=account_id, month=month)
            self.db.add(snapshot)

        snapshot.site_visits = _non_negative("site_visits", site_visits, money=False)
        snapshot.social_followers = _non_negative("social_followers", social_followers, money=False)
        self.db.flush()
        self.db.commit()
        return snapshot.id


class SaveDailyActualsUseCase:
    """
    Upsert the actuals of one day and advance streak/achievements.

    The entry, the streak and the achievements are written in a single
    transaction: any failure rolls back all three.
    """

    def __init__(self, db: Session, store: ProgressStateStore | None = None):
        self.db = db
        self.store = store or SqlProgressStateStore(db)

    def execute(
        self,
        account_id: int,
        entry_date: date,
        values: dict[str, Any],
        notes: str | None = None,
        month: str | None = None,
        today: date | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """
        Args:
            account_id: owner
            entry_date: calendar day of the entry
            values: metric values keyed by DailyActual field
            notes: free text
            month: optional YYYY-MM, must match entry_date
            today: reference "today" for the streak (default: date.today())
            now: unlock timestamp for achievements

        Returns:
            {"id", "streak", "unlocked_achievements"}

        Raises:
            TrackingValidationError: invalid values or month mismatch
        """
        today = today or date.today()
        now = now or datetime.now(timezone.utc)

        entry_month = month_key(entry_date)
        if month is not None and month != entry_month:
            raise TrackingValidationError(f"Month {month} does not match date {entry_date.isoformat()}")
        unknown = set(values) - set(ACTUAL_FIELDS)
        if unknown:
            raise TrackingValidationError(f"Unknown actual fields: {', '.join(sorted(unknown))}")
        cleaned = {
            field: _non_negative(field, values.get(field, 0), field in MONEY_ACTUAL_FIELDS)
            for field in ACTUAL_FIELDS
        }

        try:
            actual = self.db.query(DailyActual).filter(
                DailyActual.account_id == account_id,
                DailyActual.date == entry_date,
            ).first()
            if actual is None:
                actual = DailyActual(account_id=account_id, date=entry_date, month=entry_month)
                self.db.add(actual)
            for field, value in cleaned.items():
                setattr(actual, field, value)
            actual.notes = (notes or "").strip() or None
            self.db.flush()

            goals = self.db.query(MonthlyGoal).filter(
                MonthlyGoal.account_id == account_id,
                MonthlyGoal.month == entry_month,
            ).first()
            month_rows = self.db.query(DailyActual).filter(
                DailyActual.account_id == account_id,
                DailyActual.month == entry_month,
            ).all()
            month_totals = {m.actual_field: sum_actuals(month_rows, m.actual_field) for m in METRICS}

            state = self.store.load(account_id)
            state.streak = update_streak(state.streak, entry_date, today)
            state.achievements, unlocked = check_achievements(
                state.achievements,
                actual,
                state.streak,
                goals=goals,
                month_totals=month_totals,
                now=now,
            )
            self.store.save(account_id, state)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if unlocked:
            logger.info("Account %s unlocked achievements: %s", account_id, ", ".join(unlocked))

        return {
            "id": actual.id,
            "streak": streak_to_dict(state.streak),
            "unlocked_achievements": unlocked,
        }


# ── Read side ──

def get_goals(db: Session, account_id: int, month: str) -> MonthlyGoal | None:
    return db.query(MonthlyGoal).filter(
        MonthlyGoal.account_id == account_id,
        MonthlyGoal.month == month,
    ).first()


def get_snapshot(db: Session, account_id: int, month: str) -> MonthlySnapshot | None:
    return db.query(MonthlySnapshot).filter(
        MonthlySnapshot.account_id == account_id,
        MonthlySnapshot.month == month,
    ).first()


def list_actuals(db: Session, account_id: int, month: str) -> list[DailyActual]:
    return db.query(DailyActual).filter(
        DailyActual.account_id == account_id,
        DailyActual.month == month,
    ).order_by(DailyActual.date).all()


def goals_to_dict(goal: MonthlyGoal | None) -> dict[str, Any] | None:
    if goal is None:
        return None
    data: dict[str, Any] = {"month": goal.month}
    for field in GOAL_FIELDS:
        value = getattr(goal, field)
        data[field] = float(value) if field in MONEY_GOAL_FIELDS else int(value or 0)
    return data


def streak_to_dict(streak: StreakData) -> dict[str, Any]:
    return {
        "current_streak": streak.current_streak,
        "best_streak": streak.best_streak,
        "total_days_tracked": streak.total_days_tracked,
        "last_updated": streak.last_updated.isoformat() if streak.last_updated else None,
    }


def actual_to_dict(actual: DailyActual) -> dict[str, Any]:
    data: dict[str, Any] = {"date": actual.date.isoformat(), "month": actual.month, "notes": actual.notes}
    for field in ACTUAL_FIELDS:
        value = getattr(actual, field)
        data[field] = float(value) if field in MONEY_ACTUAL_FIELDS else int(value or 0)
    return data


class ProgressService:
    """Dashboard: per-metric progress, overall score, streak and achievements."""

    def __init__(self, db: Session, store: ProgressStateStore | None = None):
        self.db = db
        self.store = store or SqlProgressStateStore(db)

    def get_dashboard(self, account_id: int, month: str, today: date) -> dict[str, Any]:
        _validate_month(month)
        goals = get_goals(self.db, account_id, month)
        actuals = list_actuals(self.db, account_id, month)

        metrics = build_metrics_progress(goals, actuals, month, today)
        score = overall_score(metrics)
        state = self.store.load(account_id)
        todays_entry = next((a for a in actuals if a.date == today), None)

        return {
            "month": month,
            "goals": goals_to_dict(goals),
            "metrics": [{**m, "progress": m["progress"].to_dict()} for m in metrics],
            "overall_score": score,
            "message": motivational_message(score),
            "todays_wins": todays_wins(metrics),
            "month_progress_pct": round(month_progress_pct(today)) if month == month_key(today) else None,
            "today": actual_to_dict(todays_entry) if todays_entry else None,
            "streak": streak_to_dict(state.streak),
            "achievements": [a.to_dict() for a in state.achievements],
        }
