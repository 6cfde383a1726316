"""
Opportunity pipeline API
"""
from datetime import date

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, result_response, today
from app.application.opportunities import (
    CreateOpportunityUseCase,
    DeleteOpportunityUseCase,
    PipelineService,
    UpdateOpportunityUseCase,
    list_opportunities,
    opportunity_to_dict,
)
from app.application.results import run_operation
from app.domain.progress import month_key


router = APIRouter(prefix="/api/v1/opportunities", tags=["pipeline"])


class CreateOpportunityRequest(BaseModel):
    title: str
    type: str
    month: str | None = None
    stage: str = "lead"
    probability: int = Field(0, ge=0, le=100)
    estimated_value: float = Field(0, ge=0)
    company: str | None = None
    contact_person: str | None = None
    estimated_close_date: date | None = None
    notes: str | None = None


class UpdateOpportunityRequest(BaseModel):
    title: str | None = None
    type: str | None = None
    month: str | None = None
    stage: str | None = None
    probability: int | None = Field(None, ge=0, le=100)
    estimated_value: float | None = Field(None, ge=0)
    company: str | None = None
    contact_person: str | None = None
    estimated_close_date: date | None = None
    notes: str | None = None


@router.post("/")
def create_opportunity(request: Request, req: CreateOpportunityRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    fields = req.model_dump()
    fields["month"] = fields["month"] or month_key(today())
    return result_response(run_operation(
        db, lambda: {"id": CreateOpportunityUseCase(db).execute(account_id=user.id, **fields)},
    ))


@router.get("/")
def read_opportunities(
    request: Request,
    month: str | None = None,
    stage: str | None = None,
    type: str | None = None,
    db: Session = Depends(get_db),
):
    user = get_current_user(request, db)
    return [opportunity_to_dict(o) for o in list_opportunities(db, user.id, month=month, stage=stage, type=type)]


@router.get("/summary")
def pipeline_summary(request: Request, month: str | None = None, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return result_response(run_operation(
        db, lambda: PipelineService(db).get_summary(user.id, month or month_key(today())),
    ))


@router.patch("/{opportunity_id}")
def update_opportunity(
    request: Request,
    opportunity_id: int,
    req: UpdateOpportunityRequest,
    db: Session = Depends(get_db),
):
    """Partial update; only fields present in the body change"""
    user = get_current_user(request, db)
    changes = req.model_dump(exclude_unset=True)
    return result_response(run_operation(
        db, lambda: UpdateOpportunityUseCase(db).execute(opportunity_id, user.id, **changes),
    ))


@router.delete("/{opportunity_id}")
def delete_opportunity(request: Request, opportunity_id: int, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return result_response(run_operation(
        db, lambda: DeleteOpportunityUseCase(db).execute(opportunity_id, user.id),
    ))
