"""
Customer tool analytics use cases: tool sessions, lead scoring, daily tool
metrics and customer journeys, plus the monthly analytics read model.
"""
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy.orm import Session

from app.domain.customer_analytics import (
    JOURNEY_STAGES,
    LEAD_TEMPERATURES,
    TOOL_TYPES,
    lead_insights,
    tool_analytics,
)
from app.domain.progress import parse_month
from app.infrastructure.db.models import (
    CustomerJourney,
    CustomerToolSession,
    LeadScore,
    ToolPerformanceMetric,
)

_LEAD_FLAGS = ("consultation_booked", "seminar_attended", "converted_to_paid")
_LEAD_COUNTS = ("tool_usage_frequency", "cross_tool_usage_count")
_LEAD_SCORES = ("engagement_score", "conversion_probability")
_LEAD_MONEY = ("estimated_value", "actual_value")
_METRIC_COUNTS = (
    "total_sessions", "unique_visitors", "total_leads_generated",
    "qualified_leads", "consultation_bookings",
)


class AnalyticsValidationError(ValueError):
    pass


def _text(value: Any) -> str | None:
    return (value or "").strip() or None


def _email(value: Any) -> str:
    email = (_text(value) or "").lower()
    if "@" not in email:
        raise AnalyticsValidationError("A valid customer email is required")
    return email


def _tool_type(value: Any) -> str:
    if value not in TOOL_TYPES:
        raise AnalyticsValidationError(f"Unknown tool type: {value!r}")
    return value


def _count(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise AnalyticsValidationError(f"{name} must be a non-negative integer")
    return value


def _score(name: str, value: Any) -> float:
    try:
        score = float(value)
    except (TypeError, ValueError):
        raise AnalyticsValidationError(f"{name} must be a number")
    if not 0 <= score <= 100:
        raise AnalyticsValidationError(f"{name} must be between 0 and 100")
    return score


def _money(name: str, value: Any) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise AnalyticsValidationError(f"{name} must be a number")
    if amount < 0:
        raise AnalyticsValidationError(f"{name} must be >= 0")
    return amount.quantize(Decimal("0.01"))


def month_bounds(month: str) -> tuple[datetime, datetime]:
    """[start, end) of a month in UTC."""
    try:
        year, mon = parse_month(month)
    except ValueError as exc:
        raise AnalyticsValidationError(str(exc))
    start = datetime(year, mon, 1, tzinfo=timezone.utc)
    end = datetime(year + 1, 1, 1, tzinfo=timezone.utc) if mon == 12 else datetime(year, mon + 1, 1, tzinfo=timezone.utc)
    return start, end


class RecordToolSessionUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        account_id: int,
        tool_type: str,
        customer_email: str | None = None,
        customer_name: str | None = None,
        session_duration: int = 0,
        questions_asked: int = 0,
        completion_percentage: float = 0,
        return_visit: bool = False,
        session_quality_score: float = 0,
        referrer_url: str | None = None,
        now: datetime | None = None,
    ) -> int:
        session = CustomerToolSession(
            account_id=account_id,
            tool_type=_tool_type(tool_type),
            customer_email=_email(customer_email) if customer_email else None,
            customer_name=_text(customer_name),
            session_duration=_count("session_duration", session_duration),
            questions_asked=_count("questions_asked", questions_asked),
            completion_percentage=_score("completion_percentage", completion_percentage),
            return_visit=bool(return_visit),
            session_quality_score=_score("session_quality_score", session_quality_score),
            referrer_url=_text(referrer_url),
            created_at=now or datetime.now(timezone.utc),
        )
        self.db.add(session)
        self.db.flush()
        self.db.commit()
        return session.id


def _apply_lead_fields(lead: LeadScore, changes: dict[str, Any]) -> None:
    if "customer_name" in changes:
        lead.customer_name = _text(changes["customer_name"])
    if "lead_source" in changes:
        source = _text(changes["lead_source"])
        if not source:
            raise AnalyticsValidationError("Lead source cannot be empty")
        lead.lead_source = source
    if "lead_temperature" in changes:
        if changes["lead_temperature"] not in LEAD_TEMPERATURES:
            raise AnalyticsValidationError(f"Unknown lead temperature: {changes['lead_temperature']!r}")
        lead.lead_temperature = changes["lead_temperature"]
    for field in _LEAD_SCORES:
        if field in changes:
            setattr(lead, field, _score(field, changes[field]))
    for field in _LEAD_COUNTS:
        if field in changes:
            setattr(lead, field, _count(field, changes[field]))
    for field in _LEAD_MONEY:
        if field in changes:
            setattr(lead, field, _money(field, changes[field]))
    for field in _LEAD_FLAGS:
        if field in changes:
            setattr(lead, field, bool(changes[field]))
    if "conversion_date" in changes:
        lead.conversion_date = changes["conversion_date"]
    if "last_interaction" in changes:
        lead.last_interaction = changes["last_interaction"]
    if "notes" in changes:
        lead.notes = _text(changes["notes"])


class CreateLeadScoreUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        account_id: int,
        customer_email: str,
        lead_source: str,
        now: datetime | None = None,
        **fields,
    ) -> int:
        now = now or datetime.now(timezone.utc)
        lead = LeadScore(
            account_id=account_id,
            customer_email=_email(customer_email),
            lead_source="",
            lead_temperature="cold",
            engagement_score=0,
            conversion_probability=0,
            tool_usage_frequency=0,
            cross_tool_usage_count=0,
            estimated_value=Decimal("0"),
            actual_value=Decimal("0"),
            consultation_booked=False,
            seminar_attended=False,
            converted_to_paid=False,
            last_interaction=now,
            created_at=now,
        )
        _apply_lead_fields(lead, {**fields, "lead_source": lead_source})
        if lead.converted_to_paid and lead.conversion_date is None:
            lead.conversion_date = now.date()
        self.db.add(lead)
        self.db.flush()
        self.db.commit()
        return lead.id


class UpdateLeadScoreUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, lead_id: int, account_id: int, today: date | None = None, **changes) -> None:
        """
        Partial update. Marking a lead as converted stamps conversion_date
        (today) unless one is given.
        """
        lead = self.db.query(LeadScore).filter(
            LeadScore.id == lead_id,
            LeadScore.account_id == account_id,
        ).first()
        if not lead:
            raise AnalyticsValidationError("Lead not found")
        was_converted = lead.converted_to_paid
        _apply_lead_fields(lead, changes)
        if lead.converted_to_paid and not was_converted and lead.conversion_date is None:
            lead.conversion_date = today or date.today()
        self.db.commit()


class UpsertToolMetricsUseCase:
    """Daily per-tool rollup keyed by (account_id, tool_type, date)."""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, account_id: int, tool_type: str, day: date, **values) -> None:
        tool_type = _tool_type(tool_type)
        row = self.db.query(ToolPerformanceMetric).filter(
            ToolPerformanceMetric.account_id == account_id,
            ToolPerformanceMetric.tool_type == tool_type,
            ToolPerformanceMetric.date == day,
        ).first()
        if row is None:
            row = ToolPerformanceMetric(account_id=account_id, tool_type=tool_type, date=day)
            for field in _METRIC_COUNTS:
                setattr(row, field, 0)
            row.conversion_rate = 0
            row.revenue_attributed = Decimal("0")
            row.customer_acquisition_cost = Decimal("0")
            self.db.add(row)

        for field in _METRIC_COUNTS:
            if field in values:
                setattr(row, field, _count(field, values[field]))
        if "conversion_rate" in values:
            row.conversion_rate = _score("conversion_rate", values["conversion_rate"])
        for field in ("revenue_attributed", "customer_acquisition_cost"):
            if field in values:
                setattr(row, field, _money(field, values[field]))
        self.db.commit()


class RecordJourneyTouchpointUseCase:
    """
    Record one customer touchpoint. The journey row per customer email is
    created on first contact; tools and stage changes accumulate.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        account_id: int,
        customer_email: str,
        tool_type: str | None = None,
        journey_stage: str | None = None,
        engagement_seconds: int = 0,
        revenue: Any = None,
        now: datetime | None = None,
    ) -> int:
        email = _email(customer_email)
        if tool_type is not None:
            _tool_type(tool_type)
        if journey_stage is not None and journey_stage not in JOURNEY_STAGES:
            raise AnalyticsValidationError(f"Unknown journey stage: {journey_stage!r}")
        now = now or datetime.now(timezone.utc)

        journey = self.db.query(CustomerJourney).filter(
            CustomerJourney.account_id == account_id,
            CustomerJourney.customer_email == email,
        ).first()
        if journey is None:
            journey = CustomerJourney(
                account_id=account_id,
                customer_email=email,
                journey_stage=journey_stage or JOURNEY_STAGES[0],
                tools_used=[],
                conversion_path=[journey_stage or JOURNEY_STAGES[0]],
                total_engagement_time=0,
                revenue_attribution=Decimal("0"),
                created_at=now,
            )
            self.db.add(journey)
        elif journey_stage and journey_stage != journey.journey_stage:
            journey.journey_stage = journey_stage
            journey.conversion_path = [*journey.conversion_path, journey_stage]

        if tool_type is not None:
            journey.first_tool_used = journey.first_tool_used or tool_type
            if tool_type not in journey.tools_used:
                journey.tools_used = [*journey.tools_used, tool_type]
        journey.total_engagement_time += _count("engagement_seconds", engagement_seconds)
        if revenue is not None:
            journey.revenue_attribution = (journey.revenue_attribution or 0) + _money("revenue", revenue)
        journey.last_touchpoint = now
        self.db.flush()
        self.db.commit()
        return journey.id


def list_leads(db: Session, account_id: int, month: str | None = None, temperature: str | None = None) -> list[LeadScore]:
    query = db.query(LeadScore).filter(LeadScore.account_id == account_id)
    if month:
        start, end = month_bounds(month)
        query = query.filter(LeadScore.created_at >= start, LeadScore.created_at < end)
    if temperature:
        query = query.filter(LeadScore.lead_temperature == temperature)
    return query.order_by(LeadScore.engagement_score.desc(), LeadScore.id).all()


def load_customer_analytics(db: Session, account_id: int, month: str) -> dict[str, Any]:
    """Per-tool performance, lead funnel and journey stages for one month."""
    start, end = month_bounds(month)
    year, mon = start.year, start.month
    sessions = db.query(CustomerToolSession).filter(
        CustomerToolSession.account_id == account_id,
        CustomerToolSession.created_at >= start,
        CustomerToolSession.created_at < end,
    ).all()
    metrics = db.query(ToolPerformanceMetric).filter(
        ToolPerformanceMetric.account_id == account_id,
        ToolPerformanceMetric.date >= date(year, mon, 1),
        ToolPerformanceMetric.date < end.date(),
    ).all()
    leads = list_leads(db, account_id, month)
    journeys = db.query(CustomerJourney).filter(
        CustomerJourney.account_id == account_id,
        CustomerJourney.created_at >= start,
        CustomerJourney.created_at < end,
    ).all()

    return {
        "month": month,
        "tools": [t.to_dict() for t in tool_analytics(sessions, metrics, leads)],
        "leads": lead_insights(leads).to_dict(),
        "journey_stages": {
            stage: sum(1 for j in journeys if j.journey_stage == stage) for stage in JOURNEY_STAGES
        },
    }


def lead_to_dict(lead: LeadScore) -> dict[str, Any]:
    return {
        "id": lead.id,
        "customer_email": lead.customer_email,
        "customer_name": lead.customer_name,
        "lead_source": lead.lead_source,
        "engagement_score": lead.engagement_score,
        "conversion_probability": lead.conversion_probability,
        "lead_temperature": lead.lead_temperature,
        "consultation_booked": lead.consultation_booked,
        "converted_to_paid": lead.converted_to_paid,
        "estimated_value": float(lead.estimated_value or 0),
        "actual_value": float(lead.actual_value or 0),
        "conversion_date": lead.conversion_date.isoformat() if lead.conversion_date else None,
    }
