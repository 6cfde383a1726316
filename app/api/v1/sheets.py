"""
Google Sheets export API
"""
import logging

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, result_response, today
from app.application.results import OperationResult, run_operation
from app.application.sheets_export import SheetsExportError, SheetsExportService
from app.domain.progress import month_key
from app.infrastructure.crypto import TokenCipherError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/sheets", tags=["sheets"])


class ExchangeCodeRequest(BaseModel):
    code: str


class CreateSheetRequest(BaseModel):
    title: str | None = None


class ExportRequest(BaseModel):
    data_type: str
    month: str | None = None


def _sheets_call(db: Session, operation):
    """run_operation + Google/token failures reported as a failed result"""
    try:
        return result_response(run_operation(db, operation))
    except (SheetsExportError, TokenCipherError) as exc:
        db.rollback()
        logger.warning("Sheets operation failed: %s", exc)
        return result_response(OperationResult.fail(str(exc)))


@router.get("/status")
def sheets_status(request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return SheetsExportService(db).status(user.id)


@router.get("/auth-url")
def auth_url(request: Request, db: Session = Depends(get_db)):
    get_current_user(request, db)
    return _sheets_call(db, lambda: {"auth_url": SheetsExportService(db).auth_url()})


@router.post("/exchange-code")
def exchange_code(request: Request, req: ExchangeCodeRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return _sheets_call(db, lambda: SheetsExportService(db).exchange_code(user.id, req.code))


@router.post("/spreadsheet")
def create_sheet(request: Request, req: CreateSheetRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return _sheets_call(db, lambda: SheetsExportService(db).create_sheet(user.id, req.title))


@router.post("/export")
def export_data(request: Request, req: ExportRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    month = req.month or month_key(today())
    return _sheets_call(db, lambda: SheetsExportService(db).export_data(user.id, req.data_type, month))
