"""
User profile API
"""
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, result_response, today
from app.application.profile import ProfileService, UpdateProfileUseCase
from app.application.results import run_operation


router = APIRouter(prefix="/api/v1/profile", tags=["profile"])


class UpdateProfileRequest(BaseModel):
    full_name: str | None = None
    business_type: str | None = None
    industry: str | None = None
    years_experience: int | None = Field(None, ge=0)
    revenue_range: str | None = None
    target_market: str | None = None
    service_types: list[str] | None = None
    timezone: str | None = None
    currency: str | None = None
    fiscal_year_start: int | None = Field(None, ge=1, le=12)
    onboarding_step: int | None = Field(None, ge=0)
    onboarding_completed: bool | None = None


@router.get("/")
def read_profile(request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return ProfileService(db).get_profile_data(user.id, today())


@router.patch("/")
def update_profile(request: Request, req: UpdateProfileRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    changes = req.model_dump(exclude_unset=True)
    return result_response(run_operation(
        db, lambda: UpdateProfileUseCase(db).execute(user.id, **changes),
    ))
