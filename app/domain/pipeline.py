"""
Pipeline aggregator: per-type progress of opportunities against monthly targets.
"""
from dataclasses import dataclass, asdict
from typing import Any, Iterable

OPPORTUNITY_TYPES = ("workshop", "advisory", "lecture", "pr")
STAGES = ("lead", "qualified", "proposal", "negotiation", "won", "lost")
PIPELINE_STAGES = ("lead", "qualified", "proposal", "negotiation")
STAGE_WON = "won"
STAGE_LOST = "lost"

# Opportunity type -> MonthlyGoal target column
TYPE_TARGET_FIELDS = {
    "workshop": "workshops_target",
    "advisory": "advisory_target",
    "lecture": "lectures_target",
    "pr": "pr_target",
}

TYPE_LABELS = {
    "workshop": "Workshops",
    "advisory": "Advisory",
    "lecture": "Lectures",
    "pr": "PR/Content",
}


@dataclass(frozen=True)
class PerTypeProgress:
    type: str
    label: str
    achieved: int
    target: float
    progress: float
    in_pipeline: int
    pipeline_value: float
    weighted_pipeline_value: float
    status: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def progress_status(progress: float) -> str:
    if progress >= 100:
        return "achieved"
    if progress >= 75:
        return "on-track"
    if progress >= 50:
        return "behind"
    return "critical"


def _value(opp: Any) -> float:
    return float(getattr(opp, "estimated_value", 0) or 0)


def _probability(opp: Any) -> float:
    return float(getattr(opp, "probability", 0) or 0)


def weighted_value(opportunities: Iterable[Any]) -> float:
    """Σ estimated_value * probability / 100"""
    return sum(_value(o) * _probability(o) / 100 for o in opportunities)


def type_progress(opportunities: Iterable[Any], opp_type: str, goals: Any) -> PerTypeProgress:
    typed = [o for o in opportunities if o.type == opp_type]
    won = [o for o in typed if o.stage == STAGE_WON]
    in_pipeline = [o for o in typed if o.stage in PIPELINE_STAGES]

    target_field = TYPE_TARGET_FIELDS[opp_type]
    target = float(getattr(goals, target_field, 0) or 0) if goals is not None else 0.0

    raw_progress = len(won) / target * 100 if target > 0 else 0.0
    progress = min(raw_progress, 100.0)

    return PerTypeProgress(
        type=opp_type,
        label=TYPE_LABELS[opp_type],
        achieved=len(won),
        target=target,
        progress=progress,
        in_pipeline=len(in_pipeline),
        pipeline_value=sum(_value(o) for o in in_pipeline),
        weighted_pipeline_value=weighted_value(in_pipeline),
        status=progress_status(raw_progress),
    )


def aggregate_pipeline(opportunities: Iterable[Any], goals: Any) -> list[PerTypeProgress]:
    """Progress for every opportunity type, in catalog order."""
    opportunities = list(opportunities)
    return [type_progress(opportunities, t, goals) for t in OPPORTUNITY_TYPES]


def revenue_progress(opportunities: Iterable[Any], goals: Any) -> dict[str, Any]:
    """Won value across all types against the single revenue forecast."""
    total = sum(_value(o) for o in opportunities if o.stage == STAGE_WON)
    target = float(getattr(goals, "revenue_forecast", 0) or 0) if goals is not None else 0.0
    progress = total / target * 100 if target > 0 else 0.0
    return {
        "total_revenue": total,
        "revenue_target": target,
        "progress": progress,
        "remaining": max(target - total, 0.0),
        "status": "achieved" if progress >= 100 else "on-track" if progress >= 75 else "behind",
    }


def pipeline_health(opportunities: Iterable[Any]) -> dict[str, Any]:
    """Stage distribution, values and conversion for the insight analysis."""
    opportunities = list(opportunities)
    stage_count = {stage: 0 for stage in STAGES}
    stage_value = {stage: 0.0 for stage in STAGES}
    for opp in opportunities:
        stage = (opp.stage or "lead").lower()
        if stage in stage_count:
            stage_count[stage] += 1
            stage_value[stage] += _value(opp)

    open_opps = [o for o in opportunities if o.stage in PIPELINE_STAGES]
    total = len(opportunities)
    return {
        "total_opportunities": total,
        "stage_count": stage_count,
        "stage_value": stage_value,
        "total_pipeline_value": sum(stage_value[s] for s in PIPELINE_STAGES),
        "weighted_pipeline_value": weighted_value(open_opps),
        "won_value": stage_value[STAGE_WON],
        "conversion_health": stage_count[STAGE_WON] / total * 100 if total else 0.0,
    }
