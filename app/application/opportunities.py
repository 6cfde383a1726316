"""
Opportunity use cases: pipeline CRUD and the pipeline summary.
"""
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy.orm import Session

from app.application.tracking import get_goals
from app.domain.pipeline import (
    OPPORTUNITY_TYPES,
    STAGES,
    aggregate_pipeline,
    pipeline_health,
    revenue_progress,
)
from app.domain.progress import parse_month
from app.infrastructure.db.models import Opportunity

_OPTIONAL_TEXT = ("company", "contact_person", "notes")


class OpportunityValidationError(ValueError):
    pass


def _clean_type(value: str) -> str:
    value = (value or "").strip().lower()
    if value not in OPPORTUNITY_TYPES:
        raise OpportunityValidationError(f"Unknown opportunity type: {value!r}")
    return value


def _clean_stage(value: str) -> str:
    value = (value or "").strip().lower()
    if value not in STAGES:
        raise OpportunityValidationError(f"Unknown stage: {value!r}")
    return value


def _clean_probability(value: Any) -> int:
    try:
        probability = int(value)
    except (TypeError, ValueError):
        raise OpportunityValidationError("Probability must be an integer")
    if not 0 <= probability <= 100:
        raise OpportunityValidationError("Probability must be between 0 and 100")
    return probability


def _clean_value(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value if value not in (None, "") else 0))
    except (InvalidOperation, ValueError):
        raise OpportunityValidationError("Estimated value must be a number")
    if amount < 0:
        raise OpportunityValidationError("Estimated value must be >= 0")
    return amount.quantize(Decimal("0.01"))


def _clean_month(value: str) -> str:
    try:
        parse_month(value)
    except ValueError as exc:
        raise OpportunityValidationError(str(exc))
    return value


def _get_owned(db: Session, opportunity_id: int, account_id: int) -> Opportunity:
    opp = db.query(Opportunity).filter(
        Opportunity.id == opportunity_id,
        Opportunity.account_id == account_id,
    ).first()
    if not opp:
        raise OpportunityValidationError("Opportunity not found")
    return opp


class CreateOpportunityUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        account_id: int,
        title: str,
        type: str,
        month: str,
        stage: str = "lead",
        probability: Any = 0,
        estimated_value: Any = 0,
        company: str | None = None,
        contact_person: str | None = None,
        estimated_close_date: date | None = None,
        notes: str | None = None,
    ) -> int:
        title = (title or "").strip()
        if not title:
            raise OpportunityValidationError("Title cannot be empty")

        opp = Opportunity(
            account_id=account_id,
            title=title,
            type=_clean_type(type),
            month=_clean_month(month),
            stage=_clean_stage(stage),
            probability=_clean_probability(probability),
            estimated_value=_clean_value(estimated_value),
            company=(company or "").strip() or None,
            contact_person=(contact_person or "").strip() or None,
            estimated_close_date=estimated_close_date,
            notes=(notes or "").strip() or None,
        )
        self.db.add(opp)
        self.db.flush()
        self.db.commit()
        return opp.id


class UpdateOpportunityUseCase:
    """Partial update; stage changes go through here as well."""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, opportunity_id: int, account_id: int, **changes) -> None:
        opp = _get_owned(self.db, opportunity_id, account_id)

        if "title" in changes:
            title = (changes["title"] or "").strip()
            if not title:
                raise OpportunityValidationError("Title cannot be empty")
            opp.title = title
        if "type" in changes:
            opp.type = _clean_type(changes["type"])
        if "stage" in changes:
            opp.stage = _clean_stage(changes["stage"])
        if "month" in changes:
            opp.month = _clean_month(changes["month"])
        if "probability" in changes:
            opp.probability = _clean_probability(changes["probability"])
        if "estimated_value" in changes:
            opp.estimated_value = _clean_value(changes["estimated_value"])
        if "estimated_close_date" in changes:
            opp.estimated_close_date = changes["estimated_close_date"]
        for field in _OPTIONAL_TEXT:
            if field in changes:
                setattr(opp, field, (changes[field] or "").strip() or None)

        self.db.commit()


class DeleteOpportunityUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, opportunity_id: int, account_id: int) -> None:
        opp = _get_owned(self.db, opportunity_id, account_id)
        self.db.delete(opp)
        self.db.commit()


def list_opportunities(
    db: Session,
    account_id: int,
    month: str | None = None,
    stage: str | None = None,
    type: str | None = None,
) -> list[Opportunity]:
    query = db.query(Opportunity).filter(Opportunity.account_id == account_id)
    if month:
        query = query.filter(Opportunity.month == month)
    if stage:
        query = query.filter(Opportunity.stage == stage)
    if type:
        query = query.filter(Opportunity.type == type)
    return query.order_by(Opportunity.created_at.desc(), Opportunity.id.desc()).all()


def opportunity_to_dict(opp: Opportunity) -> dict[str, Any]:
    return {
        "id": opp.id,
        "title": opp.title,
        "type": opp.type,
        "stage": opp.stage,
        "month": opp.month,
        "probability": opp.probability,
        "estimated_value": float(opp.estimated_value or 0),
        "company": opp.company,
        "contact_person": opp.contact_person,
        "estimated_close_date": opp.estimated_close_date.isoformat() if opp.estimated_close_date else None,
        "notes": opp.notes,
    }


class PipelineService:
    """Per-type progress, revenue progress and stage health for a month."""

    def __init__(self, db: Session):
        self.db = db

    def get_summary(self, account_id: int, month: str) -> dict[str, Any]:
        _clean_month(month)
        goals = get_goals(self.db, account_id, month)
        opportunities = list_opportunities(self.db, account_id, month=month)
        return {
            "month": month,
            "types": [p.to_dict() for p in aggregate_pipeline(opportunities, goals)],
            "revenue": revenue_progress(opportunities, goals),
            "health": pipeline_health(opportunities),
        }
