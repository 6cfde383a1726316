"""
Customer tool analytics API
"""
from datetime import date

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, result_response, today
from app.application.customer_analytics import (
    CreateLeadScoreUseCase,
    RecordJourneyTouchpointUseCase,
    RecordToolSessionUseCase,
    UpdateLeadScoreUseCase,
    UpsertToolMetricsUseCase,
    lead_to_dict,
    list_leads,
    load_customer_analytics,
)
from app.application.results import run_operation


router = APIRouter(prefix="/api/v1/analytics", tags=["analytics"])


class ToolSessionRequest(BaseModel):
    tool_type: str
    customer_email: str | None = None
    customer_name: str | None = None
    session_duration: int = Field(0, ge=0)
    questions_asked: int = Field(0, ge=0)
    completion_percentage: float = Field(0, ge=0, le=100)
    return_visit: bool = False
    session_quality_score: float = Field(0, ge=0, le=100)
    referrer_url: str | None = None


class LeadRequest(BaseModel):
    customer_email: str
    lead_source: str
    customer_name: str | None = None
    engagement_score: float = Field(0, ge=0, le=100)
    conversion_probability: float = Field(0, ge=0, le=100)
    lead_temperature: str = "cold"
    estimated_value: float = Field(0, ge=0)
    notes: str | None = None


class UpdateLeadRequest(BaseModel):
    customer_name: str | None = None
    engagement_score: float | None = Field(None, ge=0, le=100)
    conversion_probability: float | None = Field(None, ge=0, le=100)
    lead_temperature: str | None = None
    tool_usage_frequency: int | None = Field(None, ge=0)
    cross_tool_usage_count: int | None = Field(None, ge=0)
    consultation_booked: bool | None = None
    seminar_attended: bool | None = None
    converted_to_paid: bool | None = None
    estimated_value: float | None = Field(None, ge=0)
    actual_value: float | None = Field(None, ge=0)
    conversion_date: date | None = None
    notes: str | None = None


class ToolMetricsRequest(BaseModel):
    total_sessions: int | None = Field(None, ge=0)
    unique_visitors: int | None = Field(None, ge=0)
    total_leads_generated: int | None = Field(None, ge=0)
    qualified_leads: int | None = Field(None, ge=0)
    consultation_bookings: int | None = Field(None, ge=0)
    conversion_rate: float | None = Field(None, ge=0, le=100)
    revenue_attributed: float | None = Field(None, ge=0)
    customer_acquisition_cost: float | None = Field(None, ge=0)


class TouchpointRequest(BaseModel):
    customer_email: str
    tool_type: str | None = None
    journey_stage: str | None = None
    engagement_seconds: int = Field(0, ge=0)
    revenue: float | None = Field(None, ge=0)


@router.get("/")
def analytics(request: Request, month: str | None = None, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    month = month or today().strftime("%Y-%m")
    return result_response(run_operation(db, lambda: load_customer_analytics(db, user.id, month)))


@router.post("/sessions")
def record_session(request: Request, req: ToolSessionRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return result_response(run_operation(
        db, lambda: {"id": RecordToolSessionUseCase(db).execute(account_id=user.id, **req.model_dump())},
    ))


@router.get("/leads")
def leads(request: Request, month: str | None = None, temperature: str | None = None, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return result_response(run_operation(
        db, lambda: [lead_to_dict(lead) for lead in list_leads(db, user.id, month, temperature)],
    ))


@router.post("/leads")
def create_lead(request: Request, req: LeadRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return result_response(run_operation(
        db, lambda: {"id": CreateLeadScoreUseCase(db).execute(account_id=user.id, **req.model_dump())},
    ))


@router.patch("/leads/{lead_id}")
def update_lead(request: Request, lead_id: int, req: UpdateLeadRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    changes = req.model_dump(exclude_unset=True)
    return result_response(run_operation(
        db, lambda: UpdateLeadScoreUseCase(db).execute(lead_id, user.id, today=today(), **changes),
    ))


@router.put("/tools/{tool_type}/metrics/{day}")
def upsert_metrics(request: Request, tool_type: str, day: date, req: ToolMetricsRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    values = req.model_dump(exclude_none=True)
    return result_response(run_operation(
        db, lambda: UpsertToolMetricsUseCase(db).execute(user.id, tool_type, day, **values),
    ))


@router.post("/journeys")
def record_touchpoint(request: Request, req: TouchpointRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return result_response(run_operation(
        db, lambda: {"id": RecordJourneyTouchpointUseCase(db).execute(account_id=user.id, **req.model_dump())},
    ))
