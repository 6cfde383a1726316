"""
Customer tool analytics: per-tool performance and lead funnel summaries.

Inputs are plain records (ORM rows or anything with the same attributes);
everything here is pure.
"""
from dataclasses import dataclass, asdict
from typing import Any, Iterable

TOOL_NAMES = {
    "leadership_assessment": "Leadership AI Literacy",
    "ai_agent_analysis": "AI Agent Business Analysis",
    "idea_blueprint": "Idea-to-AI Blueprint",
    "enterprise_assessment": "Enterprise L&D Assessment",
}
TOOL_TYPES = tuple(TOOL_NAMES)

LEAD_TEMPERATURES = ("cold", "warm", "hot")
JOURNEY_STAGES = ("awareness", "consideration", "decision", "retention", "advocacy")


@dataclass
class ToolAnalytics:
    tool_type: str
    tool_name: str
    sessions: int
    unique_visitors: int
    avg_duration: float
    completion_rate: float
    leads_generated: int
    conversion_rate: float
    revenue: float
    cac: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class LeadInsight:
    total_leads: int
    hot_leads: int
    warm_leads: int
    cold_leads: int
    avg_engagement_score: float
    avg_conversion_probability: float
    consultation_bookings: int
    converted_to_revenue: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def tool_analytics(sessions: Iterable[Any], metrics: Iterable[Any], leads: Iterable[Any]) -> list[ToolAnalytics]:
    """
    One row per known tool, in catalog order.

    Daily metric rows are rolled up over the period: visitors and revenue are
    summed, conversion rate and acquisition cost averaged.
    """
    sessions, metrics, leads = list(sessions), list(metrics), list(leads)
    result = []
    for tool_type, tool_name in TOOL_NAMES.items():
        tool_sessions = [s for s in sessions if s.tool_type == tool_type]
        tool_metrics = [m for m in metrics if m.tool_type == tool_type]
        result.append(ToolAnalytics(
            tool_type=tool_type,
            tool_name=tool_name,
            sessions=len(tool_sessions),
            unique_visitors=sum(m.unique_visitors or 0 for m in tool_metrics),
            avg_duration=_mean([float(s.session_duration or 0) for s in tool_sessions]),
            completion_rate=_mean([float(s.completion_percentage or 0) for s in tool_sessions]),
            leads_generated=sum(1 for lead in leads if lead.lead_source == tool_type),
            conversion_rate=_mean([float(m.conversion_rate or 0) for m in tool_metrics]),
            revenue=sum(float(m.revenue_attributed or 0) for m in tool_metrics),
            cac=_mean([float(m.customer_acquisition_cost or 0) for m in tool_metrics]),
        ))
    return result


def lead_insights(leads: Iterable[Any]) -> LeadInsight:
    leads = list(leads)
    return LeadInsight(
        total_leads=len(leads),
        hot_leads=sum(1 for lead in leads if lead.lead_temperature == "hot"),
        warm_leads=sum(1 for lead in leads if lead.lead_temperature == "warm"),
        cold_leads=sum(1 for lead in leads if lead.lead_temperature == "cold"),
        avg_engagement_score=_mean([float(lead.engagement_score or 0) for lead in leads]),
        avg_conversion_probability=_mean([float(lead.conversion_probability or 0) for lead in leads]),
        consultation_bookings=sum(1 for lead in leads if lead.consultation_booked),
        converted_to_revenue=sum(float(lead.actual_value or 0) for lead in leads),
    )
