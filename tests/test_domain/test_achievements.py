"""Tests for streak and achievement evaluation."""
from datetime import date, datetime, timezone
from types import SimpleNamespace

from app.domain.achievements import (
    StreakData,
    all_goals_met,
    check_achievements,
    initial_achievements,
    update_streak,
)

TODAY = date(2026, 9, 15)
NOW = datetime(2026, 9, 15, 9, 0, tzinfo=timezone.utc)


class TestUpdateStreak:
    def test_continues_from_yesterday(self):
        prev = StreakData(current_streak=4, best_streak=4, total_days_tracked=10, last_updated=date(2026, 9, 14))
        streak = update_streak(prev, TODAY, TODAY)
        assert streak.current_streak == 5
        assert streak.best_streak == 5
        assert streak.total_days_tracked == 11
        assert streak.last_updated == TODAY

    def test_gap_resets_to_one(self):
        prev = StreakData(current_streak=9, best_streak=9, total_days_tracked=9, last_updated=date(2026, 9, 10))
        streak = update_streak(prev, TODAY, TODAY)
        assert streak.current_streak == 1
        assert streak.best_streak == 9

    def test_first_entry_starts_at_one(self):
        streak = update_streak(StreakData(), TODAY, TODAY)
        assert streak.current_streak == 1
        assert streak.total_days_tracked == 1

    def test_backdated_entry_does_not_change_streak(self):
        prev = StreakData(current_streak=2, best_streak=3, total_days_tracked=5, last_updated=date(2026, 9, 14))
        assert update_streak(prev, date(2026, 9, 1), TODAY) == prev

    def test_second_save_same_day_restarts_streak_and_counts(self):
        state = StreakData(current_streak=3, best_streak=3, total_days_tracked=3, last_updated=TODAY)
        again = update_streak(state, TODAY, TODAY)
        assert again == StreakData(current_streak=1, best_streak=3, total_days_tracked=4, last_updated=TODAY)


class TestCheckAchievements:
    def test_first_entry_unlocks(self):
        achievements, unlocked = check_achievements(
            initial_achievements(), SimpleNamespace(gross_revenue=0), StreakData(current_streak=1), now=NOW,
        )
        assert unlocked == ["first_entry"]
        first = next(a for a in achievements if a.id == "first_entry")
        assert first.unlocked_date == NOW

    def test_idempotent(self):
        actuals = SimpleNamespace(gross_revenue=0)
        streak = StreakData(current_streak=1)
        once, _ = check_achievements(initial_achievements(), actuals, streak, now=NOW)
        later = datetime(2026, 9, 16, tzinfo=timezone.utc)
        twice, unlocked = check_achievements(once, actuals, streak, now=later)
        assert unlocked == []
        assert twice == once

    def test_week_streak(self):
        _, unlocked = check_achievements(
            initial_achievements(), SimpleNamespace(gross_revenue=0), StreakData(current_streak=7), now=NOW,
        )
        assert "week_streak" in unlocked

    def test_revenue_target_uses_thirtieth_of_monthly_goal(self):
        goals = SimpleNamespace(revenue_forecast=30000)
        _, hit = check_achievements(
            initial_achievements(), SimpleNamespace(gross_revenue=1000), StreakData(current_streak=1), goals=goals,
        )
        _, miss = check_achievements(
            initial_achievements(), SimpleNamespace(gross_revenue=999), StreakData(current_streak=1), goals=goals,
        )
        assert "revenue_target" in hit
        assert "revenue_target" not in miss

    def test_month_complete_requires_every_positive_goal(self):
        goals = SimpleNamespace(revenue_forecast=1000, cost_budget=500, lectures_target=2)
        met = {"gross_revenue": 1200, "total_costs": 400, "lectures": 2}
        over_budget = {**met, "total_costs": 600}

        _, unlocked = check_achievements(
            initial_achievements(), SimpleNamespace(gross_revenue=0), StreakData(current_streak=1),
            goals=goals, month_totals=met,
        )
        assert "month_complete" in unlocked
        assert all_goals_met(goals, over_budget) is False

    def test_no_goals_never_completes_month(self):
        assert all_goals_met(None, {}) is False
        assert all_goals_met(SimpleNamespace(), {}) is False
