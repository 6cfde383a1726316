"""Tests for the network module: talent contacts, skills and referrals."""
from datetime import date

import pytest

from app.infrastructure.db.models import TalentContact, TalentReferral, TalentSkill
from app.application.contacts import (
    ContactValidationError,
    CreateContactUseCase,
    CreateReferralUseCase,
    CreateSkillUseCase,
    DeleteContactUseCase,
    MarkReferralDeliveredUseCase,
    UpdateContactUseCase,
    UpdateReferralUseCase,
    list_contacts,
    referral_stats,
    upcoming_follow_ups,
)

ACCOUNT = 1
TODAY = date(2026, 9, 15)


@pytest.fixture
def contact_id(db_session):
    return CreateContactUseCase(db_session).execute(account_id=ACCOUNT, name="Dana Designer")


class TestCreateContact:
    def test_create_contact(self, db_session):
        cid = CreateContactUseCase(db_session).execute(
            account_id=ACCOUNT, name="  Sam Writer  ", email="sam@example.com",
            rate_min=50, rate_max=120, rate_type="hourly", trust_rating=4,
        )
        contact = db_session.get(TalentContact, cid)
        assert contact.name == "Sam Writer"
        assert contact.availability_status == "available"
        assert contact.rate_type == "hourly"
        assert contact.trust_rating == 4

    def test_empty_name_fails(self, db_session):
        with pytest.raises(ContactValidationError, match="name"):
            CreateContactUseCase(db_session).execute(account_id=ACCOUNT, name="  ")

    def test_rate_range_checked(self, db_session):
        with pytest.raises(ContactValidationError, match="rate_min"):
            CreateContactUseCase(db_session).execute(account_id=ACCOUNT, name="A", rate_min=200, rate_max=100)

    @pytest.mark.parametrize("rating", [0, 6, "x"])
    def test_trust_rating_bounds(self, db_session, rating):
        with pytest.raises(ContactValidationError, match="Trust rating"):
            CreateContactUseCase(db_session).execute(account_id=ACCOUNT, name="A", trust_rating=rating)

    def test_unknown_skill_fails(self, db_session):
        with pytest.raises(ContactValidationError, match="Unknown skills"):
            CreateContactUseCase(db_session).execute(account_id=ACCOUNT, name="A", skill_ids=[999])


class TestSkills:
    def test_skill_names_are_unique(self, db_session):
        first = CreateSkillUseCase(db_session).execute("Copywriting", "content")
        again = CreateSkillUseCase(db_session).execute("Copywriting")
        assert first == again

    def test_contacts_filtered_by_skill(self, db_session, contact_id):
        design = CreateSkillUseCase(db_session).execute("Brand design", "design")
        seo = CreateSkillUseCase(db_session).execute("SEO", "marketing")
        UpdateContactUseCase(db_session).execute(contact_id, ACCOUNT, skill_ids=[design, seo])
        CreateContactUseCase(db_session).execute(account_id=ACCOUNT, name="Other")

        contacts = list_contacts(db_session, ACCOUNT, skill_id=seo)
        assert [c["name"] for c in contacts] == ["Dana Designer"]
        assert [s["name"] for s in contacts[0]["skills"]] == ["Brand design", "SEO"]
        assert len(list_contacts(db_session, ACCOUNT)) == 2

    def test_update_replaces_skills(self, db_session, contact_id):
        a = CreateSkillUseCase(db_session).execute("A")
        b = CreateSkillUseCase(db_session).execute("B")
        UpdateContactUseCase(db_session).execute(contact_id, ACCOUNT, skill_ids=[a])
        UpdateContactUseCase(db_session).execute(contact_id, ACCOUNT, skill_ids=[b])
        skills = db_session.query(TalentSkill).filter(TalentSkill.talent_contact_id == contact_id).all()
        assert [s.skill_id for s in skills] == [b]


class TestUpdateContact:
    def test_update_fields(self, db_session, contact_id):
        UpdateContactUseCase(db_session).execute(contact_id, ACCOUNT, availability_status="busy", phone="555")
        contact = db_session.get(TalentContact, contact_id)
        assert contact.availability_status == "busy"
        assert contact.phone == "555"

    def test_unknown_status_fails(self, db_session, contact_id):
        with pytest.raises(ContactValidationError, match="availability"):
            UpdateContactUseCase(db_session).execute(contact_id, ACCOUNT, availability_status="asleep")

    def test_other_account_cannot_update(self, db_session, contact_id):
        with pytest.raises(ContactValidationError, match="not found"):
            UpdateContactUseCase(db_session).execute(contact_id, ACCOUNT + 1, name="Hijack")


class TestReferrals:
    def _refer(self, db, contact_id, **kwargs):
        values = dict(client_name="Acme", referred_date=date(2026, 9, 1))
        values.update(kwargs)
        return CreateReferralUseCase(db).execute(ACCOUNT, contact_id, **values)

    def test_stats(self, db_session, contact_id):
        delivered = self._refer(db_session, contact_id, estimated_value=10000, commission_fee=1000)
        self._refer(db_session, contact_id, estimated_value=5000, follow_up_date=date(2026, 9, 20))
        self._refer(db_session, contact_id, follow_up_date=date(2026, 9, 10))
        MarkReferralDeliveredUseCase(db_session).execute(delivered, ACCOUNT, notes="Went well")

        stats = referral_stats(db_session, ACCOUNT, contact_id, today=TODAY)
        assert stats["total_referrals"] == 3
        assert stats["successful_referrals"] == 1
        assert stats["success_rate"] == pytest.approx(100 / 3)
        assert stats["total_value"] == 15000
        assert stats["total_commission"] == 1000
        assert stats["pending_follow_ups"] == 1

    def test_stats_without_referrals(self, db_session, contact_id):
        assert referral_stats(db_session, ACCOUNT, contact_id, today=TODAY)["success_rate"] == 0

    def test_upcoming_follow_ups(self, db_session, contact_id):
        later = self._refer(db_session, contact_id, follow_up_date=date(2026, 9, 30))
        sooner = self._refer(db_session, contact_id, follow_up_date=date(2026, 9, 16))
        done = self._refer(db_session, contact_id, follow_up_date=date(2026, 9, 17))
        MarkReferralDeliveredUseCase(db_session).execute(done, ACCOUNT, delivered=False)

        assert [r.id for r in upcoming_follow_ups(db_session, ACCOUNT, today=TODAY)] == [sooner, later]

    def test_follow_up_before_referral_fails(self, db_session, contact_id):
        with pytest.raises(ContactValidationError, match="Follow-up"):
            self._refer(db_session, contact_id, follow_up_date=date(2026, 8, 1))

    def test_referral_needs_own_contact(self, db_session):
        other = CreateContactUseCase(db_session).execute(account_id=ACCOUNT + 1, name="Elsewhere")
        with pytest.raises(ContactValidationError, match="Contact not found"):
            self._refer(db_session, other)

    def test_update_referral(self, db_session, contact_id):
        rid = self._refer(db_session, contact_id)
        UpdateReferralUseCase(db_session).execute(rid, ACCOUNT, project_type="Rebrand", commission_fee="250.5")
        referral = db_session.get(TalentReferral, rid)
        assert referral.project_type == "Rebrand"
        assert float(referral.commission_fee) == 250.5

    def test_delete_contact_removes_referrals(self, db_session, contact_id):
        self._refer(db_session, contact_id)
        DeleteContactUseCase(db_session).execute(contact_id, ACCOUNT)
        assert db_session.query(TalentReferral).count() == 0
        assert db_session.get(TalentContact, contact_id) is None
