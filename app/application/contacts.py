"""
Network use cases: talent contacts, their skills, and referrals sent to them.
"""
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy.orm import Session

from app.infrastructure.db.models import Skill, TalentContact, TalentReferral, TalentSkill

AVAILABILITY_STATUSES = ("available", "busy", "unavailable")
RATE_TYPES = ("hourly", "daily", "project")

_CONTACT_TEXT_FIELDS = (
    "email", "phone", "linkedin_url", "portfolio_url",
    "specialty_summary", "working_style_notes",
)


class ContactValidationError(ValueError):
    pass


def _text(value: Any) -> str | None:
    return (value or "").strip() or None


def _money(name: str, value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ContactValidationError(f"{name} must be a number")
    if amount < 0:
        raise ContactValidationError(f"{name} must be >= 0")
    return amount.quantize(Decimal("0.01"))


def _trust_rating(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        rating = int(value)
    except (TypeError, ValueError):
        raise ContactValidationError("Trust rating must be an integer")
    if not 1 <= rating <= 5:
        raise ContactValidationError("Trust rating must be between 1 and 5")
    return rating


def _get_contact(db: Session, contact_id: int, account_id: int) -> TalentContact:
    contact = db.query(TalentContact).filter(
        TalentContact.id == contact_id,
        TalentContact.account_id == account_id,
    ).first()
    if not contact:
        raise ContactValidationError("Contact not found")
    return contact


def _apply_contact_fields(contact: TalentContact, changes: dict[str, Any]) -> None:
    if "name" in changes:
        name = _text(changes["name"])
        if not name:
            raise ContactValidationError("Contact name cannot be empty")
        contact.name = name
    for field in _CONTACT_TEXT_FIELDS:
        if field in changes:
            setattr(contact, field, _text(changes[field]))
    if "rate_min" in changes:
        contact.rate_min = _money("rate_min", changes["rate_min"])
    if "rate_max" in changes:
        contact.rate_max = _money("rate_max", changes["rate_max"])
    if contact.rate_min is not None and contact.rate_max is not None and contact.rate_min > contact.rate_max:
        raise ContactValidationError("rate_min cannot exceed rate_max")
    if "rate_type" in changes:
        rate_type = _text(changes["rate_type"])
        if rate_type is not None and rate_type not in RATE_TYPES:
            raise ContactValidationError(f"Unknown rate type: {rate_type!r}")
        contact.rate_type = rate_type
    if "availability_status" in changes:
        status = _text(changes["availability_status"]) or "available"
        if status not in AVAILABILITY_STATUSES:
            raise ContactValidationError(f"Unknown availability status: {status!r}")
        contact.availability_status = status
    if "trust_rating" in changes:
        contact.trust_rating = _trust_rating(changes["trust_rating"])


def _set_skills(db: Session, contact_id: int, skill_ids: list[int]) -> None:
    skill_ids = list(dict.fromkeys(skill_ids))
    if skill_ids:
        found = {s.id for s in db.query(Skill).filter(Skill.id.in_(skill_ids)).all()}
        missing = [sid for sid in skill_ids if sid not in found]
        if missing:
            raise ContactValidationError(f"Unknown skills: {missing}")
    db.query(TalentSkill).filter(TalentSkill.talent_contact_id == contact_id).delete(synchronize_session=False)
    for skill_id in skill_ids:
        db.add(TalentSkill(talent_contact_id=contact_id, skill_id=skill_id))


class CreateContactUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, account_id: int, name: str, skill_ids: list[int] | None = None, **fields) -> int:
        contact = TalentContact(account_id=account_id, availability_status="available")
        _apply_contact_fields(contact, {"name": name, **fields})
        self.db.add(contact)
        self.db.flush()
        if skill_ids:
            _set_skills(self.db, contact.id, skill_ids)
        self.db.commit()
        return contact.id


class UpdateContactUseCase:
    """Partial update. `skill_ids=None` keeps skills; a list replaces them."""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, contact_id: int, account_id: int, skill_ids: list[int] | None = None, **changes) -> None:
        contact = _get_contact(self.db, contact_id, account_id)
        _apply_contact_fields(contact, changes)
        if skill_ids is not None:
            _set_skills(self.db, contact.id, skill_ids)
        self.db.commit()


class DeleteContactUseCase:
    """Deletes the contact together with its skills and referrals."""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, contact_id: int, account_id: int) -> None:
        contact = _get_contact(self.db, contact_id, account_id)
        self.db.query(TalentSkill).filter(
            TalentSkill.talent_contact_id == contact.id
        ).delete(synchronize_session=False)
        self.db.query(TalentReferral).filter(
            TalentReferral.talent_contact_id == contact.id
        ).delete(synchronize_session=False)
        self.db.delete(contact)
        self.db.commit()


def list_contacts(db: Session, account_id: int, skill_id: int | None = None) -> list[dict[str, Any]]:
    """Contacts with their skills, optionally only those having `skill_id`."""
    query = db.query(TalentContact).filter(TalentContact.account_id == account_id)
    if skill_id is not None:
        query = query.join(TalentSkill, TalentSkill.talent_contact_id == TalentContact.id).filter(
            TalentSkill.skill_id == skill_id
        )
    contacts = query.order_by(TalentContact.created_at.desc(), TalentContact.id.desc()).all()

    skills_by_contact: dict[int, list[dict[str, Any]]] = {c.id: [] for c in contacts}
    if contacts:
        rows = db.query(TalentSkill.talent_contact_id, Skill).join(
            Skill, Skill.id == TalentSkill.skill_id
        ).filter(TalentSkill.talent_contact_id.in_(list(skills_by_contact))).order_by(Skill.name).all()
        for contact_id, skill in rows:
            skills_by_contact[contact_id].append(skill_to_dict(skill))

    return [contact_to_dict(c, skills_by_contact[c.id]) for c in contacts]


def contact_to_dict(contact: TalentContact, skills: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "id": contact.id,
        "name": contact.name,
        "email": contact.email,
        "phone": contact.phone,
        "linkedin_url": contact.linkedin_url,
        "portfolio_url": contact.portfolio_url,
        "specialty_summary": contact.specialty_summary,
        "rate_min": float(contact.rate_min) if contact.rate_min is not None else None,
        "rate_max": float(contact.rate_max) if contact.rate_max is not None else None,
        "rate_type": contact.rate_type,
        "availability_status": contact.availability_status,
        "trust_rating": contact.trust_rating,
        "working_style_notes": contact.working_style_notes,
        "skills": skills,
    }


# ── Skills catalog ──

def list_skills(db: Session) -> list[Skill]:
    return db.query(Skill).order_by(Skill.category, Skill.name).all()


def skill_to_dict(skill: Skill) -> dict[str, Any]:
    return {"id": skill.id, "name": skill.name, "category": skill.category}


class CreateSkillUseCase:
    """Returns the existing skill id when the name is already in the catalog."""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, name: str, category: str = "general") -> int:
        name = _text(name)
        if not name:
            raise ContactValidationError("Skill name cannot be empty")
        existing = self.db.query(Skill).filter(Skill.name == name).first()
        if existing:
            return existing.id
        skill = Skill(name=name, category=_text(category) or "general")
        self.db.add(skill)
        self.db.flush()
        self.db.commit()
        return skill.id


# ── Referrals ──

def _get_referral(db: Session, referral_id: int, account_id: int) -> TalentReferral:
    referral = db.query(TalentReferral).filter(
        TalentReferral.id == referral_id,
        TalentReferral.account_id == account_id,
    ).first()
    if not referral:
        raise ContactValidationError("Referral not found")
    return referral


class CreateReferralUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        account_id: int,
        talent_contact_id: int,
        client_name: str,
        referred_date: date,
        project_type: str | None = None,
        estimated_value: Any = None,
        commission_fee: Any = None,
        follow_up_date: date | None = None,
        notes: str | None = None,
    ) -> int:
        _get_contact(self.db, talent_contact_id, account_id)
        client_name = _text(client_name)
        if not client_name:
            raise ContactValidationError("Client name cannot be empty")
        if follow_up_date is not None and follow_up_date < referred_date:
            raise ContactValidationError("Follow-up date cannot precede the referral date")

        referral = TalentReferral(
            account_id=account_id,
            talent_contact_id=talent_contact_id,
            client_name=client_name,
            project_type=_text(project_type),
            referred_date=referred_date,
            estimated_value=_money("estimated_value", estimated_value),
            commission_fee=_money("commission_fee", commission_fee),
            follow_up_date=follow_up_date,
            notes=_text(notes),
        )
        self.db.add(referral)
        self.db.flush()
        self.db.commit()
        return referral.id


class UpdateReferralUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, referral_id: int, account_id: int, **changes) -> None:
        referral = _get_referral(self.db, referral_id, account_id)
        if "client_name" in changes:
            client_name = _text(changes["client_name"])
            if not client_name:
                raise ContactValidationError("Client name cannot be empty")
            referral.client_name = client_name
        for field in ("project_type", "notes", "outcome_notes"):
            if field in changes:
                setattr(referral, field, _text(changes[field]))
        for field in ("estimated_value", "commission_fee"):
            if field in changes:
                setattr(referral, field, _money(field, changes[field]))
        for field in ("referred_date", "follow_up_date"):
            if field in changes:
                setattr(referral, field, changes[field])
        if "outcome_delivered" in changes:
            referral.outcome_delivered = changes["outcome_delivered"]
        self.db.commit()


class MarkReferralDeliveredUseCase:
    """Record the outcome of a referral (delivered or not)."""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, referral_id: int, account_id: int, delivered: bool = True, notes: str | None = None) -> None:
        referral = _get_referral(self.db, referral_id, account_id)
        referral.outcome_delivered = delivered
        if notes is not None:
            referral.outcome_notes = _text(notes)
        self.db.commit()


class DeleteReferralUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, referral_id: int, account_id: int) -> None:
        referral = _get_referral(self.db, referral_id, account_id)
        self.db.delete(referral)
        self.db.commit()


def list_referrals(db: Session, account_id: int, talent_contact_id: int | None = None) -> list[TalentReferral]:
    query = db.query(TalentReferral).filter(TalentReferral.account_id == account_id)
    if talent_contact_id is not None:
        query = query.filter(TalentReferral.talent_contact_id == talent_contact_id)
    return query.order_by(TalentReferral.referred_date.desc(), TalentReferral.id.desc()).all()


def referral_to_dict(referral: TalentReferral) -> dict[str, Any]:
    return {
        "id": referral.id,
        "talent_contact_id": referral.talent_contact_id,
        "client_name": referral.client_name,
        "project_type": referral.project_type,
        "referred_date": referral.referred_date.isoformat(),
        "estimated_value": float(referral.estimated_value) if referral.estimated_value is not None else None,
        "commission_fee": float(referral.commission_fee) if referral.commission_fee is not None else None,
        "follow_up_date": referral.follow_up_date.isoformat() if referral.follow_up_date else None,
        "outcome_delivered": referral.outcome_delivered,
        "outcome_notes": referral.outcome_notes,
        "notes": referral.notes,
    }


def _is_pending_follow_up(referral: TalentReferral, today: date) -> bool:
    return (
        referral.follow_up_date is not None
        and referral.follow_up_date >= today
        and referral.outcome_delivered is None
    )


def referral_stats(db: Session, account_id: int, talent_contact_id: int, today: date | None = None) -> dict[str, Any]:
    """Totals for one contact: count, delivered, success rate, value, commission, pending follow-ups."""
    today = today or datetime.now(timezone.utc).date()
    referrals = list_referrals(db, account_id, talent_contact_id)
    total = len(referrals)
    successful = sum(1 for r in referrals if r.outcome_delivered is True)
    return {
        "total_referrals": total,
        "successful_referrals": successful,
        "success_rate": successful / total * 100 if total else 0.0,
        "total_value": sum(float(r.estimated_value or 0) for r in referrals),
        "total_commission": sum(float(r.commission_fee or 0) for r in referrals),
        "pending_follow_ups": sum(1 for r in referrals if _is_pending_follow_up(r, today)),
    }


def upcoming_follow_ups(db: Session, account_id: int, today: date | None = None, limit: int = 10) -> list[TalentReferral]:
    """Pending referrals with a follow-up date today or later, soonest first."""
    today = today or datetime.now(timezone.utc).date()
    return db.query(TalentReferral).filter(
        TalentReferral.account_id == account_id,
        TalentReferral.follow_up_date.isnot(None),
        TalentReferral.follow_up_date >= today,
        TalentReferral.outcome_delivered.is_(None),
    ).order_by(TalentReferral.follow_up_date, TalentReferral.id).limit(limit).all()
