"""
Profile service: account info plus the business profile from onboarding.
"""
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from app.infrastructure.db.models import User, UserProfile

BUSINESS_TYPES = ("fractional_executive", "consultant", "agency", "freelancer", "other")
SERVICE_TYPES = ("workshop", "advisory", "lecture", "pr")

_TEXT_FIELDS = ("full_name", "industry", "revenue_range", "target_market", "timezone")


class ProfileValidationError(ValueError):
    pass


def compute_days_in_system(registration_date: date, today: date) -> int:
    """Return whole days elapsed since registration_date."""
    delta = today - registration_date
    return max(delta.days, 0)


def get_or_create_profile(db: Session, account_id: int) -> UserProfile:
    """Does not commit."""
    profile = db.query(UserProfile).filter(UserProfile.account_id == account_id).first()
    if profile is None:
        profile = UserProfile(
            account_id=account_id,
            timezone="UTC",
            currency="USD",
            fiscal_year_start=1,
            onboarding_completed=False,
            onboarding_step=0,
            total_sessions=0,
        )
        db.add(profile)
        db.flush()
    return profile


class UpdateProfileUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, account_id: int, **changes) -> None:
        profile = get_or_create_profile(self.db, account_id)

        for field in _TEXT_FIELDS:
            if field in changes:
                setattr(profile, field, (changes[field] or "").strip() or None)
        if profile.timezone is None:
            profile.timezone = "UTC"

        if "business_type" in changes:
            business_type = changes["business_type"]
            if business_type is not None and business_type not in BUSINESS_TYPES:
                raise ProfileValidationError(f"Unknown business type: {business_type!r}")
            profile.business_type = business_type
        if "service_types" in changes:
            services = list(dict.fromkeys(changes["service_types"] or []))
            unknown = [s for s in services if s not in SERVICE_TYPES]
            if unknown:
                raise ProfileValidationError(f"Unknown service types: {unknown}")
            profile.service_types = services
        if "currency" in changes:
            currency = (changes["currency"] or "").strip().upper()
            if len(currency) != 3 or not currency.isalpha():
                raise ProfileValidationError("Currency must be a 3-letter ISO code")
            profile.currency = currency
        if "years_experience" in changes:
            years = changes["years_experience"]
            if years is not None and years < 0:
                raise ProfileValidationError("years_experience must be >= 0")
            profile.years_experience = years
        if "fiscal_year_start" in changes:
            start = int(changes["fiscal_year_start"])
            if not 1 <= start <= 12:
                raise ProfileValidationError("fiscal_year_start must be a month number 1..12")
            profile.fiscal_year_start = start
        if "onboarding_step" in changes:
            step = int(changes["onboarding_step"])
            if step < 0:
                raise ProfileValidationError("onboarding_step must be >= 0")
            profile.onboarding_step = step
        if changes.get("onboarding_completed") and not profile.onboarding_completed:
            profile.onboarding_completed = True
            profile.onboarding_completed_at = datetime.now(timezone.utc)

        self.db.commit()


def record_session(db: Session, account_id: int, now: datetime | None = None) -> None:
    """Login bookkeeping: last_active_at and total_sessions. Does not commit."""
    profile = get_or_create_profile(db, account_id)
    profile.last_active_at = now or datetime.now(timezone.utc)
    profile.total_sessions = (profile.total_sessions or 0) + 1


class ProfileService:
    def __init__(self, db: Session):
        self.db = db

    def get_profile_data(self, user_id: int, today: date | None = None) -> dict[str, Any]:
        user = self.db.query(User).filter(User.id == user_id).first()
        profile = self.db.query(UserProfile).filter(UserProfile.account_id == user_id).first()
        today = today or datetime.now(timezone.utc).date()

        if user and user.created_at:
            reg_date = user.created_at.date()
            registration_date = reg_date.isoformat()
            days_in_system = compute_days_in_system(reg_date, today)
        else:
            registration_date = None
            days_in_system = 0

        return {
            "email": user.email if user else "",
            "registration_date": registration_date,
            "days_in_system": days_in_system,
            "profile": {
                "full_name": profile.full_name,
                "business_type": profile.business_type,
                "industry": profile.industry,
                "years_experience": profile.years_experience,
                "revenue_range": profile.revenue_range,
                "target_market": profile.target_market,
                "service_types": profile.service_types or [],
                "timezone": profile.timezone,
                "currency": profile.currency,
                "fiscal_year_start": profile.fiscal_year_start,
                "onboarding_completed": profile.onboarding_completed,
                "onboarding_step": profile.onboarding_step,
                "total_sessions": profile.total_sessions,
            } if profile else None,
        }
