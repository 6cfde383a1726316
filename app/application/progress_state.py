"""
SQL-backed ProgressStateStore (streak + achievements in progress_state).
"""
from datetime import datetime

from sqlalchemy.orm import Session

from app.domain.achievements import (
    Achievement,
    ProgressState,
    StreakData,
    initial_achievements,
)
from app.infrastructure.db.models import ProgressStateModel


class SqlProgressStateStore:
    """
    Load/save ProgressState. `save` only flushes; the caller owns the commit
    so streak, achievements and the daily entry land in one transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def _row(self, account_id: int) -> ProgressStateModel | None:
        return self.db.query(ProgressStateModel).filter(
            ProgressStateModel.account_id == account_id
        ).first()

    def load(self, account_id: int) -> ProgressState:
        row = self._row(account_id)
        if row is None:
            return ProgressState()

        unlocked = row.achievements_json or {}
        achievements = []
        for a in initial_achievements():
            unlocked_at = unlocked.get(a.id)
            if unlocked_at:
                a = Achievement(
                    id=a.id,
                    title=a.title,
                    description=a.description,
                    category=a.category,
                    unlocked=True,
                    unlocked_date=datetime.fromisoformat(unlocked_at),
                )
            achievements.append(a)

        return ProgressState(
            streak=StreakData(
                current_streak=row.current_streak,
                best_streak=row.best_streak,
                total_days_tracked=row.total_days_tracked,
                last_updated=row.last_updated,
            ),
            achievements=achievements,
        )

    def save(self, account_id: int, state: ProgressState) -> None:
        row = self._row(account_id)
        if row is None:
            row = ProgressStateModel(account_id=account_id)
            self.db.add(row)

        row.current_streak = state.streak.current_streak
        row.best_streak = state.streak.best_streak
        row.total_days_tracked = state.streak.total_days_tracked
        row.last_updated = state.streak.last_updated
        row.achievements_json = {
            a.id: a.unlocked_date.isoformat()
            for a in state.achievements
            if a.unlocked and a.unlocked_date
        }
        self.db.flush()
