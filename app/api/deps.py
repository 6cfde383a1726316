"""
FastAPI dependencies (DB session, authentication, response helpers)
"""
from datetime import date, datetime
from zoneinfo import ZoneInfo

from fastapi import Request, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.application.results import OperationResult
from app.config import get_settings
from app.infrastructure.db.session import get_db as _get_db
from app.infrastructure.db.models import User


# Re-export get_db
get_db = _get_db


def get_current_user(request: Request, db: Session) -> User:
    """
    Current user from the session cookie.

    Raises:
        HTTPException(401): not logged in, or the user no longer exists

    Usage:
        user = get_current_user(request, db)
    """
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    return user


def today() -> date:
    """Current date in the configured TIMEZONE."""
    return datetime.now(ZoneInfo(get_settings().TIMEZONE)).date()


def result_response(result: OperationResult) -> JSONResponse:
    """OperationResult -> JSON body; failed operations answer 422."""
    return JSONResponse(
        status_code=status.HTTP_200_OK if result.success else status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=result.to_dict(),
    )
