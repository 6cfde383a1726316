"""
OperationResult: uniform outcome of a user-initiated write.

Validation and persistence failures are reported as {success: false, error}
instead of propagating to the caller.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


@dataclass
class OperationResult:
    success: bool
    error: str | None = None
    data: Any = None

    @classmethod
    def ok(cls, data: Any = None) -> "OperationResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "OperationResult":
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success}
        if self.error is not None:
            result["error"] = self.error
        if self.data is not None:
            result["data"] = self.data
        return result


def run_operation(db: Session, operation: Callable[[], Any]) -> OperationResult:
    """
    Run a write and wrap its outcome.

    Usage:
        result = run_operation(db, lambda: UpsertMonthlyGoalsUseCase(db).execute(...))
    """
    try:
        return OperationResult.ok(operation())
    except ValueError as exc:
        db.rollback()
        return OperationResult.fail(str(exc))
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Persistence failure")
        return OperationResult.fail("Could not save changes, please try again")
