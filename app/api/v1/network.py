"""
Network API: talent contacts, skills, referrals
"""
from datetime import date

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, result_response, today
from app.application.contacts import (
    CreateContactUseCase,
    CreateReferralUseCase,
    CreateSkillUseCase,
    DeleteContactUseCase,
    DeleteReferralUseCase,
    MarkReferralDeliveredUseCase,
    UpdateContactUseCase,
    UpdateReferralUseCase,
    list_contacts,
    list_referrals,
    list_skills,
    referral_stats,
    referral_to_dict,
    skill_to_dict,
    upcoming_follow_ups,
)
from app.application.results import run_operation


router = APIRouter(prefix="/api/v1/network", tags=["network"])


# === Request models ===

class ContactRequest(BaseModel):
    name: str
    email: str | None = None
    phone: str | None = None
    linkedin_url: str | None = None
    portfolio_url: str | None = None
    specialty_summary: str | None = None
    rate_min: float | None = Field(None, ge=0)
    rate_max: float | None = Field(None, ge=0)
    rate_type: str | None = None
    availability_status: str = "available"
    trust_rating: int | None = Field(None, ge=1, le=5)
    working_style_notes: str | None = None
    skill_ids: list[int] = []


class UpdateContactRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    linkedin_url: str | None = None
    portfolio_url: str | None = None
    specialty_summary: str | None = None
    rate_min: float | None = Field(None, ge=0)
    rate_max: float | None = Field(None, ge=0)
    rate_type: str | None = None
    availability_status: str | None = None
    trust_rating: int | None = Field(None, ge=1, le=5)
    working_style_notes: str | None = None
    skill_ids: list[int] | None = None


class SkillRequest(BaseModel):
    name: str
    category: str = "general"


class ReferralRequest(BaseModel):
    talent_contact_id: int
    client_name: str
    referred_date: date
    project_type: str | None = None
    estimated_value: float | None = Field(None, ge=0)
    commission_fee: float | None = Field(None, ge=0)
    follow_up_date: date | None = None
    notes: str | None = None


class UpdateReferralRequest(BaseModel):
    client_name: str | None = None
    referred_date: date | None = None
    project_type: str | None = None
    estimated_value: float | None = Field(None, ge=0)
    commission_fee: float | None = Field(None, ge=0)
    follow_up_date: date | None = None
    outcome_delivered: bool | None = None
    outcome_notes: str | None = None
    notes: str | None = None


class OutcomeRequest(BaseModel):
    delivered: bool = True
    notes: str | None = None


# === Contacts ===

@router.get("/contacts")
def read_contacts(request: Request, skill_id: int | None = None, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return list_contacts(db, user.id, skill_id=skill_id)


@router.post("/contacts")
def create_contact(request: Request, req: ContactRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    fields = req.model_dump()
    return result_response(run_operation(
        db, lambda: {"id": CreateContactUseCase(db).execute(account_id=user.id, **fields)},
    ))


@router.patch("/contacts/{contact_id}")
def update_contact(request: Request, contact_id: int, req: UpdateContactRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    changes = req.model_dump(exclude_unset=True)
    return result_response(run_operation(
        db, lambda: UpdateContactUseCase(db).execute(contact_id, user.id, **changes),
    ))


@router.delete("/contacts/{contact_id}")
def delete_contact(request: Request, contact_id: int, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return result_response(run_operation(
        db, lambda: DeleteContactUseCase(db).execute(contact_id, user.id),
    ))


@router.get("/contacts/{contact_id}/stats")
def contact_stats(request: Request, contact_id: int, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return referral_stats(db, user.id, contact_id, today())


# === Skills ===

@router.get("/skills")
def read_skills(request: Request, db: Session = Depends(get_db)):
    get_current_user(request, db)
    return [skill_to_dict(s) for s in list_skills(db)]


@router.post("/skills")
def create_skill(request: Request, req: SkillRequest, db: Session = Depends(get_db)):
    get_current_user(request, db)
    return result_response(run_operation(
        db, lambda: {"id": CreateSkillUseCase(db).execute(req.name, req.category)},
    ))


# === Referrals ===

@router.get("/referrals")
def read_referrals(request: Request, talent_contact_id: int | None = None, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return [referral_to_dict(r) for r in list_referrals(db, user.id, talent_contact_id)]


@router.get("/referrals/follow-ups")
def read_follow_ups(request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return [referral_to_dict(r) for r in upcoming_follow_ups(db, user.id, today())]


@router.post("/referrals")
def create_referral(request: Request, req: ReferralRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return result_response(run_operation(
        db, lambda: {"id": CreateReferralUseCase(db).execute(account_id=user.id, **req.model_dump())},
    ))


@router.patch("/referrals/{referral_id}")
def update_referral(request: Request, referral_id: int, req: UpdateReferralRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    changes = req.model_dump(exclude_unset=True)
    return result_response(run_operation(
        db, lambda: UpdateReferralUseCase(db).execute(referral_id, user.id, **changes),
    ))


@router.post("/referrals/{referral_id}/outcome")
def referral_outcome(request: Request, referral_id: int, req: OutcomeRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return result_response(run_operation(
        db, lambda: MarkReferralDeliveredUseCase(db).execute(referral_id, user.id, req.delivered, req.notes),
    ))


@router.delete("/referrals/{referral_id}")
def delete_referral(request: Request, referral_id: int, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return result_response(run_operation(
        db, lambda: DeleteReferralUseCase(db).execute(referral_id, user.id),
    ))
