"""
Insight cards API
"""
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, result_response, today
from app.application.insights import (
    ActionInsightUseCase,
    DismissInsightUseCase,
    InsightGenerationService,
    insight_to_dict,
    list_insights,
)
from app.application.results import run_operation


router = APIRouter(prefix="/api/v1/insights", tags=["insights"])


@router.get("/")
def read_insights(
    request: Request,
    category: str | None = None,
    priority: str | None = None,
    status: str | None = "active",
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    user = get_current_user(request, db)
    rows = list_insights(db, user.id, category=category, priority=priority, status=status, limit=limit)
    return [insight_to_dict(i) for i in rows]


@router.post("/generate")
def generate_insights(request: Request, db: Session = Depends(get_db)):
    """Generate fresh insights now (AI when configured, rules otherwise)"""
    user = get_current_user(request, db)
    return result_response(run_operation(
        db,
        lambda: [insight_to_dict(i) for i in InsightGenerationService(db).generate(user.id, today=today())],
    ))


@router.post("/{insight_id}/dismiss")
def dismiss_insight(request: Request, insight_id: int, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return result_response(run_operation(
        db, lambda: DismissInsightUseCase(db).execute(insight_id, user.id),
    ))


@router.post("/{insight_id}/action")
def action_insight(request: Request, insight_id: int, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return result_response(run_operation(
        db, lambda: ActionInsightUseCase(db).execute(insight_id, user.id),
    ))
