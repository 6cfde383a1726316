"""
Authentication routes (register, login, logout, me)
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, result_response
from app.application.profile import record_session
from app.application.results import run_operation
from app.auth import AuthenticationError, authenticate, register_user


router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


class CredentialsRequest(BaseModel):
    email: str
    password: str


def _start_session(request: Request, db: Session, user) -> None:
    request.session["user_id"] = user.id
    now = datetime.now(timezone.utc)
    user.last_seen_at = now
    record_session(db, user.id, now)
    db.commit()


@router.post("/register")
def register(request: Request, req: CredentialsRequest, db: Session = Depends(get_db)):
    """Create an account and log in"""
    def _register():
        user = register_user(db, req.email, req.password)
        _start_session(request, db, user)
        return {"user_id": user.id, "email": user.email}

    return result_response(run_operation(db, _register))


@router.post("/login")
def login(request: Request, req: CredentialsRequest, db: Session = Depends(get_db)):
    try:
        user = authenticate(db, req.email, req.password)
    except AuthenticationError as exc:
        raise HTTPException(status_code=401, detail=str(exc))

    _start_session(request, db, user)
    return {"user_id": user.id, "email": user.email}


@router.post("/logout")
def logout(request: Request):
    request.session.clear()
    return {"status": "logged_out"}


@router.get("/me")
def me(request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return {"user_id": user.id, "email": user.email}
