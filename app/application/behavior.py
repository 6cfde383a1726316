"""
Behavior tracking: stores batches of UI events and keeps per-feature counters.
"""
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from app.infrastructure.db.models import BehaviorLog, FeatureUsage

MAX_BATCH = 100


class BehaviorValidationError(ValueError):
    pass


class RecordBehaviorEventsUseCase:
    """
    Store a batch of events.

    Each event: event_type, event_category, event_action (required),
    event_label, event_value, page_path, component_name, metadata, session_id.
    Events with a component_name (or feature_key in metadata) bump the
    matching feature_usage counter.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(self, account_id: int, events: list[dict[str, Any]], now: datetime | None = None) -> int:
        if not events:
            return 0
        if len(events) > MAX_BATCH:
            raise BehaviorValidationError(f"At most {MAX_BATCH} events per batch")

        now = now or datetime.now(timezone.utc)
        counters: dict[str, list[float]] = {}

        for event in events:
            for key in ("event_type", "event_category", "event_action"):
                if not (event.get(key) or "").strip():
                    raise BehaviorValidationError(f"{key} is required")
            metadata = event.get("metadata") or None
            self.db.add(BehaviorLog(
                account_id=account_id,
                session_id=event.get("session_id"),
                event_type=event["event_type"].strip(),
                event_category=event["event_category"].strip(),
                event_action=event["event_action"].strip(),
                event_label=event.get("event_label"),
                event_value=event.get("event_value"),
                page_path=event.get("page_path"),
                component_name=event.get("component_name"),
                metadata_json=metadata,
                created_at=now,
            ))
            feature = (metadata or {}).get("feature_key") or event.get("component_name")
            if feature:
                counters.setdefault(feature, []).append(float(event.get("event_value") or 0))

        for feature, durations in counters.items():
            self._bump(account_id, feature, durations, now)

        self.db.commit()
        return len(events)

    def _bump(self, account_id: int, feature: str, durations: list[float], now: datetime) -> None:
        usage = self.db.query(FeatureUsage).filter(
            FeatureUsage.account_id == account_id,
            FeatureUsage.feature_key == feature,
        ).first()
        if usage is None:
            usage = FeatureUsage(account_id=account_id, feature_key=feature, usage_count=0, first_used_at=now)
            self.db.add(usage)

        previous = usage.usage_count or 0
        timed = [d for d in durations if d > 0]
        if timed:
            total = (usage.avg_time_spent_seconds or 0) * previous + sum(timed)
            usage.avg_time_spent_seconds = total / (previous + len(timed))
        usage.usage_count = previous + len(durations)
        usage.last_used_at = now
        self.db.flush()


def list_feature_usage(db: Session, account_id: int) -> list[FeatureUsage]:
    return db.query(FeatureUsage).filter(
        FeatureUsage.account_id == account_id,
    ).order_by(FeatureUsage.usage_count.desc()).all()
