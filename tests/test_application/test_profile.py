"""
Tests for profile service helpers and business profile updates.
"""
import pytest
from datetime import date, datetime, timezone

from app.application.profile import (
    ProfileService,
    ProfileValidationError,
    UpdateProfileUseCase,
    compute_days_in_system,
    record_session,
)
from app.infrastructure.db.models import User, UserProfile

ACCOUNT = 1


# ---------------------------------------------------------------------------
# compute_days_in_system
# ---------------------------------------------------------------------------

class TestComputeDaysInSystem:
    def test_same_day_returns_zero(self):
        d = date(2026, 1, 1)
        assert compute_days_in_system(d, d) == 0

    def test_leap_year_included(self):
        assert compute_days_in_system(date(2024, 1, 1), date(2025, 1, 1)) == 366

    def test_never_negative(self):
        assert compute_days_in_system(date(2026, 6, 1), date(2026, 1, 1)) == 0


# ---------------------------------------------------------------------------
# UpdateProfileUseCase
# ---------------------------------------------------------------------------

class TestUpdateProfile:
    def test_creates_profile_on_first_update(self, db_session):
        UpdateProfileUseCase(db_session).execute(
            ACCOUNT, business_type="consultant", industry="  SaaS ",
            service_types=["advisory", "workshop", "advisory"], currency="eur",
        )
        profile = db_session.get(UserProfile, ACCOUNT)
        assert profile.business_type == "consultant"
        assert profile.industry == "SaaS"
        assert profile.service_types == ["advisory", "workshop"]
        assert profile.currency == "EUR"
        assert profile.timezone == "UTC"

    def test_unknown_business_type(self, db_session):
        with pytest.raises(ProfileValidationError, match="business type"):
            UpdateProfileUseCase(db_session).execute(ACCOUNT, business_type="astronaut")

    def test_unknown_service_type(self, db_session):
        with pytest.raises(ProfileValidationError, match="service types"):
            UpdateProfileUseCase(db_session).execute(ACCOUNT, service_types=["juggling"])

    @pytest.mark.parametrize("currency", ["EU", "EURO", "12$"])
    def test_bad_currency(self, db_session, currency):
        with pytest.raises(ProfileValidationError, match="Currency"):
            UpdateProfileUseCase(db_session).execute(ACCOUNT, currency=currency)

    def test_fiscal_year_start_bounds(self, db_session):
        with pytest.raises(ProfileValidationError, match="fiscal_year_start"):
            UpdateProfileUseCase(db_session).execute(ACCOUNT, fiscal_year_start=13)

    def test_onboarding_completion_is_stamped_once(self, db_session):
        UpdateProfileUseCase(db_session).execute(ACCOUNT, onboarding_step=3, onboarding_completed=True)
        stamped = db_session.get(UserProfile, ACCOUNT).onboarding_completed_at
        UpdateProfileUseCase(db_session).execute(ACCOUNT, onboarding_completed=True)

        profile = db_session.get(UserProfile, ACCOUNT)
        assert profile.onboarding_completed is True
        assert profile.onboarding_step == 3
        assert stamped is not None
        assert profile.onboarding_completed_at == stamped


class TestProfileData:
    def test_sessions_and_profile_data(self, db_session):
        user = User(email="founder@example.com", password_hash="x",
                    created_at=datetime(2026, 9, 1, tzinfo=timezone.utc))
        db_session.add(user)
        db_session.flush()
        record_session(db_session, user.id, now=datetime(2026, 9, 15, tzinfo=timezone.utc))
        record_session(db_session, user.id)
        db_session.commit()

        data = ProfileService(db_session).get_profile_data(user.id, today=date(2026, 9, 15))
        assert data["email"] == "founder@example.com"
        assert data["registration_date"] == "2026-09-01"
        assert data["days_in_system"] == 14
        assert data["profile"]["total_sessions"] == 2

    def test_unknown_user(self, db_session):
        data = ProfileService(db_session).get_profile_data(404, today=date(2026, 9, 15))
        assert data == {"email": "", "registration_date": None, "days_in_system": 0, "profile": None}
