"""
Goals, snapshots, daily actuals and the progress dashboard
"""
from datetime import date

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, result_response, today
from app.application.results import run_operation
from app.application.tracking import (
    ProgressService,
    SaveDailyActualsUseCase,
    UpsertMonthlyGoalsUseCase,
    UpsertMonthlySnapshotUseCase,
    actual_to_dict,
    get_goals,
    get_snapshot,
    goals_to_dict,
    list_actuals,
)
from app.domain.progress import month_key


router = APIRouter(prefix="/api/v1/tracking", tags=["tracking"])


# === Request models ===

class MonthlyGoalsRequest(BaseModel):
    revenue_forecast: float = Field(0, ge=0)
    cost_budget: float = Field(0, ge=0)
    site_visits_target: int = Field(0, ge=0)
    social_followers_target: int = Field(0, ge=0)
    pr_target: int = Field(0, ge=0)
    workshops_target: int = Field(0, ge=0)
    advisory_target: int = Field(0, ge=0)
    lectures_target: int = Field(0, ge=0)


class SnapshotRequest(BaseModel):
    site_visits: int = Field(0, ge=0)
    social_followers: int = Field(0, ge=0)


class DailyActualsRequest(BaseModel):
    gross_revenue: float = Field(0, ge=0)
    total_costs: float = Field(0, ge=0)
    site_visits: int = Field(0, ge=0)
    social_followers: int = Field(0, ge=0)
    pr_articles: int = Field(0, ge=0)
    workshop_customers: int = Field(0, ge=0)
    advisory_customers: int = Field(0, ge=0)
    lectures: int = Field(0, ge=0)
    notes: str | None = None
    month: str | None = None


# === Endpoints ===

@router.put("/goals/{month}")
def upsert_goals(request: Request, month: str, req: MonthlyGoalsRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return result_response(run_operation(
        db,
        lambda: {"id": UpsertMonthlyGoalsUseCase(db).execute(user.id, month, **req.model_dump())},
    ))


@router.get("/goals/{month}")
def read_goals(request: Request, month: str, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return {"goals": goals_to_dict(get_goals(db, user.id, month))}


@router.put("/snapshots/{month}")
def upsert_snapshot(request: Request, month: str, req: SnapshotRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return result_response(run_operation(
        db,
        lambda: {"id": UpsertMonthlySnapshotUseCase(db).execute(user.id, month, **req.model_dump())},
    ))


@router.get("/snapshots/{month}")
def read_snapshot(request: Request, month: str, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    snapshot = get_snapshot(db, user.id, month)
    if snapshot is None:
        return {"snapshot": None}
    return {"snapshot": {
        "month": snapshot.month,
        "site_visits": snapshot.site_visits,
        "social_followers": snapshot.social_followers,
    }}


@router.put("/daily/{entry_date}")
def save_daily(request: Request, entry_date: date, req: DailyActualsRequest, db: Session = Depends(get_db)):
    """Save the actuals of one day; advances the streak when the day is today"""
    user = get_current_user(request, db)
    values = req.model_dump(exclude={"notes", "month"})
    return result_response(run_operation(
        db,
        lambda: SaveDailyActualsUseCase(db).execute(
            user.id, entry_date, values, notes=req.notes, month=req.month, today=today(),
        ),
    ))


@router.get("/daily")
def read_daily(request: Request, month: str | None = None, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    month = month or month_key(today())
    return [actual_to_dict(a) for a in list_actuals(db, user.id, month)]


@router.get("/dashboard")
def dashboard(request: Request, month: str | None = None, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return result_response(run_operation(
        db,
        lambda: ProgressService(db).get_dashboard(user.id, month or month_key(today()), today()),
    ))
