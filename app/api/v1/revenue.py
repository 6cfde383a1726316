"""
Revenue entries API
"""
from datetime import date

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, result_response
from app.application.results import run_operation
from app.application.revenue import (
    CreateRevenueEntryUseCase,
    DeleteRevenueEntryUseCase,
    UpdateRevenueEntryUseCase,
    list_revenue_entries,
    revenue_entry_to_dict,
)


router = APIRouter(prefix="/api/v1/revenue", tags=["revenue"])


class CreateRevenueRequest(BaseModel):
    entry_date: date
    amount: float = Field(ge=0)
    source: str
    description: str | None = None


class UpdateRevenueRequest(BaseModel):
    entry_date: date | None = None
    amount: float | None = Field(None, ge=0)
    source: str | None = None
    description: str | None = None


@router.post("/")
def create_entry(request: Request, req: CreateRevenueRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return result_response(run_operation(
        db, lambda: {"id": CreateRevenueEntryUseCase(db).execute(account_id=user.id, **req.model_dump())},
    ))


@router.get("/")
def read_entries(request: Request, month: str | None = None, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return [revenue_entry_to_dict(e) for e in list_revenue_entries(db, user.id, month)]


@router.patch("/{entry_id}")
def update_entry(request: Request, entry_id: int, req: UpdateRevenueRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    changes = req.model_dump(exclude_unset=True)
    return result_response(run_operation(
        db, lambda: UpdateRevenueEntryUseCase(db).execute(entry_id, user.id, **changes),
    ))


@router.delete("/{entry_id}")
def delete_entry(request: Request, entry_id: int, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return result_response(run_operation(
        db, lambda: DeleteRevenueEntryUseCase(db).execute(entry_id, user.id),
    ))
