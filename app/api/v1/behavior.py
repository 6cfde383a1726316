"""
Behavior tracking API (batched UI events)
"""
from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, result_response
from app.application.behavior import RecordBehaviorEventsUseCase
from app.application.results import run_operation


router = APIRouter(prefix="/api/v1/behavior", tags=["behavior"])


class BehaviorEvent(BaseModel):
    event_type: str
    event_category: str
    event_action: str
    event_label: str | None = None
    event_value: float | None = None
    page_path: str | None = None
    component_name: str | None = None
    session_id: str | None = None
    metadata: dict[str, Any] | None = None


class BehaviorBatchRequest(BaseModel):
    events: list[BehaviorEvent]


@router.post("/events")
def record_events(request: Request, req: BehaviorBatchRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    events = [e.model_dump() for e in req.events]
    return result_response(run_operation(
        db, lambda: {"recorded": RecordBehaviorEventsUseCase(db).execute(user.id, events)},
    ))
