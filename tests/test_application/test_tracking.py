"""Tests for goals, actuals and the progress dashboard."""
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from app.application.progress_state import SqlProgressStateStore
from app.application.results import run_operation
from app.application.tracking import (
    ProgressService,
    SaveDailyActualsUseCase,
    TrackingValidationError,
    UpsertMonthlyGoalsUseCase,
    UpsertMonthlySnapshotUseCase,
    get_goals,
    get_snapshot,
    list_actuals,
)
from app.infrastructure.db.models import DailyActual, ProgressStateModel

ACCOUNT = 1
TODAY = date(2026, 9, 15)
NOW = datetime(2026, 9, 15, 9, 0, tzinfo=timezone.utc)


class FailingStore(SqlProgressStateStore):
    def save(self, account_id, state):
        raise RuntimeError("disk full")


def _save(db, day=TODAY, today=TODAY, **values):
    return SaveDailyActualsUseCase(db).execute(ACCOUNT, day, values, today=today, now=NOW)


class TestMonthlyGoals:
    def test_upsert_creates_then_replaces(self, db_session):
        first = UpsertMonthlyGoalsUseCase(db_session).execute(ACCOUNT, "2026-09", revenue_forecast=50000)
        second = UpsertMonthlyGoalsUseCase(db_session).execute(ACCOUNT, "2026-09", lectures_target=3)

        assert first == second
        goals = get_goals(db_session, ACCOUNT, "2026-09")
        assert goals.revenue_forecast == Decimal("50000.00")
        assert goals.lectures_target == 3
        assert goals.cost_budget == 0

    def test_negative_target_rejected(self, db_session):
        with pytest.raises(TrackingValidationError, match="revenue_forecast"):
            UpsertMonthlyGoalsUseCase(db_session).execute(ACCOUNT, "2026-09", revenue_forecast=-1)

    def test_bad_month_rejected(self, db_session):
        with pytest.raises(TrackingValidationError):
            UpsertMonthlyGoalsUseCase(db_session).execute(ACCOUNT, "2026/09")

    def test_unknown_field_rejected(self, db_session):
        with pytest.raises(TrackingValidationError, match="Unknown"):
            UpsertMonthlyGoalsUseCase(db_session).execute(ACCOUNT, "2026-09", happiness=10)

    def test_fractional_count_rejected(self, db_session):
        with pytest.raises(TrackingValidationError, match="whole number"):
            UpsertMonthlyGoalsUseCase(db_session).execute(ACCOUNT, "2026-09", pr_target=1.5)


class TestMonthlySnapshot:
    def test_upsert(self, db_session):
        UpsertMonthlySnapshotUseCase(db_session).execute(ACCOUNT, "2026-09", site_visits=120, social_followers=40)
        UpsertMonthlySnapshotUseCase(db_session).execute(ACCOUNT, "2026-09", site_visits=150, social_followers=41)
        snapshot = get_snapshot(db_session, ACCOUNT, "2026-09")
        assert (snapshot.site_visits, snapshot.social_followers) == (150, 41)


class TestSaveDailyActuals:
    def test_first_save_starts_streak_and_unlocks_first_entry(self, db_session):
        result = _save(db_session, gross_revenue=2000)

        assert result["streak"]["current_streak"] == 1
        assert result["unlocked_achievements"] == ["first_entry"]
        assert list_actuals(db_session, ACCOUNT, "2026-09")[0].gross_revenue == Decimal("2000.00")

    def test_consecutive_days_extend_streak(self, db_session):
        _save(db_session, day=date(2026, 9, 14), today=date(2026, 9, 14))
        result = _save(db_session)
        assert result["streak"]["current_streak"] == 2
        assert result["unlocked_achievements"] == []

    def test_resave_same_day_upserts_and_counts_update(self, db_session):
        _save(db_session, gross_revenue=100)
        result = _save(db_session, gross_revenue=300)

        rows = list_actuals(db_session, ACCOUNT, "2026-09")
        assert len(rows) == 1
        assert rows[0].gross_revenue == Decimal("300.00")
        assert result["streak"]["current_streak"] == 1
        assert result["streak"]["total_days_tracked"] == 2

    def test_daily_revenue_target(self, db_session):
        UpsertMonthlyGoalsUseCase(db_session).execute(ACCOUNT, "2026-09", revenue_forecast=30000)
        result = _save(db_session, gross_revenue=1000)
        assert "revenue_target" in result["unlocked_achievements"]

    def test_month_mismatch_rejected(self, db_session):
        with pytest.raises(TrackingValidationError, match="does not match"):
            SaveDailyActualsUseCase(db_session).execute(ACCOUNT, TODAY, {}, month="2026-08", today=TODAY)

    def test_negative_value_rejected(self, db_session):
        with pytest.raises(TrackingValidationError):
            _save(db_session, total_costs=-5)

    def test_failed_state_save_rolls_back_entry(self, db_session):
        with pytest.raises(RuntimeError):
            SaveDailyActualsUseCase(db_session, store=FailingStore(db_session)).execute(
                ACCOUNT, TODAY, {"gross_revenue": 10}, today=TODAY, now=NOW,
            )

        assert db_session.query(DailyActual).count() == 0
        assert db_session.query(ProgressStateModel).count() == 0

    def test_run_operation_wraps_validation_error(self, db_session):
        result = run_operation(
            db_session,
            lambda: SaveDailyActualsUseCase(db_session).execute(ACCOUNT, TODAY, {"lectures": -1}, today=TODAY),
        )
        assert result.success is False
        assert "lectures" in result.error
        assert result.to_dict() == {"success": False, "error": result.error}


class TestDashboard:
    def test_mid_month_revenue_behind(self, db_session):
        UpsertMonthlyGoalsUseCase(db_session).execute(ACCOUNT, "2026-09", revenue_forecast=50000)
        _save(db_session, gross_revenue=2000)

        dashboard = ProgressService(db_session).get_dashboard(ACCOUNT, "2026-09", TODAY)
        revenue = next(m for m in dashboard["metrics"] if m["name"] == "Revenue")

        assert revenue["target"] == pytest.approx(25000)
        assert revenue["progress"]["percentage"] == pytest.approx(8)
        assert revenue["progress"]["status"] == "behind"
        assert dashboard["month_progress_pct"] == 50
        assert dashboard["today"]["gross_revenue"] == 2000
        assert dashboard["streak"]["current_streak"] == 1
        unlocked = [a["id"] for a in dashboard["achievements"] if a["unlocked"]]
        assert unlocked == ["first_entry"]

    def test_without_goals(self, db_session):
        dashboard = ProgressService(db_session).get_dashboard(ACCOUNT, "2026-09", TODAY)
        assert dashboard["goals"] is None
        assert dashboard["metrics"] == []
        assert dashboard["overall_score"] == 0
