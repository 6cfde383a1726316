"""
Revenue entry use cases.
"""
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy.orm import Session

from app.domain.progress import month_key
from app.infrastructure.db.models import RevenueEntry

REVENUE_SOURCES = ("workshop", "advisory", "lecture", "other")


class RevenueValidationError(ValueError):
    pass


def _clean_amount(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise RevenueValidationError("Amount must be a number")
    if amount < 0:
        raise RevenueValidationError("Amount must be >= 0")
    return amount.quantize(Decimal("0.01"))


def _clean_source(value: str) -> str:
    value = (value or "").strip().lower()
    if value not in REVENUE_SOURCES:
        raise RevenueValidationError(f"Unknown revenue source: {value!r}")
    return value


class CreateRevenueEntryUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        account_id: int,
        entry_date: date,
        amount: Any,
        source: str,
        description: str | None = None,
    ) -> int:
        entry = RevenueEntry(
            account_id=account_id,
            date=entry_date,
            month=month_key(entry_date),
            amount=_clean_amount(amount),
            source=_clean_source(source),
            description=(description or "").strip() or None,
        )
        self.db.add(entry)
        self.db.flush()
        self.db.commit()
        return entry.id


class UpdateRevenueEntryUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, entry_id: int, account_id: int, **changes) -> None:
        entry = _get_owned(self.db, entry_id, account_id)
        if "entry_date" in changes:
            entry.date = changes["entry_date"]
            entry.month = month_key(entry.date)
        if "amount" in changes:
            entry.amount = _clean_amount(changes["amount"])
        if "source" in changes:
            entry.source = _clean_source(changes["source"])
        if "description" in changes:
            entry.description = (changes["description"] or "").strip() or None
        self.db.commit()


class DeleteRevenueEntryUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, entry_id: int, account_id: int) -> None:
        entry = _get_owned(self.db, entry_id, account_id)
        self.db.delete(entry)
        self.db.commit()


def _get_owned(db: Session, entry_id: int, account_id: int) -> RevenueEntry:
    entry = db.query(RevenueEntry).filter(
        RevenueEntry.id == entry_id,
        RevenueEntry.account_id == account_id,
    ).first()
    if not entry:
        raise RevenueValidationError("Revenue entry not found")
    return entry


def list_revenue_entries(db: Session, account_id: int, month: str | None = None) -> list[RevenueEntry]:
    query = db.query(RevenueEntry).filter(RevenueEntry.account_id == account_id)
    if month:
        query = query.filter(RevenueEntry.month == month)
    return query.order_by(RevenueEntry.date.desc(), RevenueEntry.id.desc()).all()


def revenue_entry_to_dict(entry: RevenueEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "date": entry.date.isoformat(),
        "month": entry.month,
        "amount": float(entry.amount or 0),
        "source": entry.source,
        "description": entry.description,
    }
