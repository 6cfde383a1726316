"""
Google Sheets export.

Flow: auth_url -> user consents -> exchange_code (tokens stored encrypted)
-> create_sheet -> export_data(data_type, month) overwrites "<Sheet>!A1"
with a header row plus one row per record.
"""
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleRequest
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from oauthlib.oauth2.rfc6749.errors import OAuth2Error
from sqlalchemy.orm import Session

from app.application.opportunities import list_opportunities
from app.application.revenue import list_revenue_entries
from app.application.tracking import get_goals, list_actuals
from app.config import get_settings
from app.infrastructure.crypto import TokenCipher
from app.infrastructure.db.models import SheetsIntegration

logger = logging.getLogger(__name__)

OAUTH_SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.file",
]
TOKEN_REFRESH_MARGIN = timedelta(minutes=1)
DEFAULT_TOKEN_LIFETIME = timedelta(hours=1)

SHEET_MONTHLY_GOALS = "Monthly Goals"
SHEET_DAILY_PROGRESS = "Daily Progress"
SHEET_OPPORTUNITIES = "Opportunities"
SHEET_REVENUE = "Revenue"
SHEET_TITLES = (SHEET_MONTHLY_GOALS, SHEET_DAILY_PROGRESS, SHEET_OPPORTUNITIES, SHEET_REVENUE)

DATA_TYPES = ("monthly_goals", "daily_progress", "opportunities", "revenue")


class SheetsValidationError(ValueError):
    pass


class SheetsExportError(Exception):
    """Google API or token failure."""


def _load_credentials(raw: str) -> dict[str, Any]:
    if not (raw or "").strip():
        raise SheetsExportError("GOOGLE_OAUTH_CREDENTIALS is not configured")
    try:
        web = json.loads(raw)["web"]
    except (ValueError, KeyError, TypeError) as exc:
        raise SheetsExportError(f"Invalid GOOGLE_OAUTH_CREDENTIALS format: {exc}") from exc
    for key in ("client_id", "client_secret", "auth_uri", "token_uri"):
        if not web.get(key):
            raise SheetsExportError(f"Invalid Google OAuth credentials: missing {key!r}")
    if not web.get("redirect_uris"):
        raise SheetsExportError("Invalid Google OAuth credentials: missing redirect_uris")
    return web


def _num(value: Any) -> float | int:
    if value is None:
        return 0
    return float(value) if not isinstance(value, int) else value


def build_export_values(db: Session, account_id: int, data_type: str, month: str) -> tuple[str, list[list[Any]]]:
    """
    Header + rows for one sheet.

    Returns:
        (range, values), e.g. ("Monthly Goals!A1", [[...header], [...row]])
    """
    if data_type == "monthly_goals":
        goal = get_goals(db, account_id, month)
        rows = [[
            goal.month, _num(goal.revenue_forecast), _num(goal.cost_budget),
            goal.workshops_target, goal.advisory_target, goal.lectures_target, goal.pr_target,
        ]] if goal else []
        header = ["Month", "Revenue Forecast", "Cost Budget", "Workshops Target",
                  "Advisory Target", "Lectures Target", "PR Target"]
        return f"{SHEET_MONTHLY_GOALS}!A1", [header, *rows]

    if data_type == "daily_progress":
        header = ["Date", "Gross Revenue", "Total Costs", "Site Visits", "Social Followers",
                  "PR Articles", "Workshop Customers", "Advisory Customers", "Lectures", "Notes"]
        rows = [
            [a.date.isoformat(), _num(a.gross_revenue), _num(a.total_costs), a.site_visits,
             a.social_followers, a.pr_articles, a.workshop_customers, a.advisory_customers,
             a.lectures, a.notes or ""]
            for a in list_actuals(db, account_id, month)
        ]
        return f"{SHEET_DAILY_PROGRESS}!A1", [header, *rows]

    if data_type == "opportunities":
        header = ["Title", "Type", "Stage", "Probability", "Estimated Value",
                  "Company", "Contact", "Estimated Close", "Notes"]
        rows = [
            [o.title, o.type, o.stage, o.probability, _num(o.estimated_value), o.company or "",
             o.contact_person or "", o.estimated_close_date.isoformat() if o.estimated_close_date else "",
             o.notes or ""]
            for o in list_opportunities(db, account_id, month=month)
        ]
        return f"{SHEET_OPPORTUNITIES}!A1", [header, *rows]

    if data_type == "revenue":
        header = ["Date", "Amount", "Source", "Description"]
        rows = [
            [e.date.isoformat(), _num(e.amount), e.source, e.description or ""]
            for e in reversed(list_revenue_entries(db, account_id, month))
        ]
        return f"{SHEET_REVENUE}!A1", [header, *rows]

    raise SheetsValidationError(f"Invalid data type: {data_type!r}")


class SheetsExportService:
    def __init__(
        self,
        db: Session,
        credentials: dict[str, Any] | None = None,
        cipher: TokenCipher | None = None,
    ):
        self.db = db
        self._credentials = credentials
        self._cipher = cipher

    @property
    def credentials(self) -> dict[str, Any]:
        if self._credentials is None:
            self._credentials = _load_credentials(get_settings().GOOGLE_OAUTH_CREDENTIALS)
        return self._credentials

    @property
    def cipher(self) -> TokenCipher:
        if self._cipher is None:
            self._cipher = TokenCipher()
        return self._cipher

    def _integration(self, account_id: int) -> SheetsIntegration:
        integration = self.db.query(SheetsIntegration).filter(
            SheetsIntegration.account_id == account_id
        ).first()
        if integration is None or not integration.access_token_encrypted:
            raise SheetsValidationError("No Google Sheets integration found")
        return integration

    # ── OAuth ──

    def _flow(self) -> Flow:
        web = self.credentials
        return Flow.from_client_config(
            {"web": web},
            scopes=OAUTH_SCOPES,
            redirect_uri=web["redirect_uris"][0],
            autogenerate_code_verifier=False,
        )

    def auth_url(self) -> str:
        url, _state = self._flow().authorization_url(access_type="offline", prompt="consent")
        return url

    def exchange_code(self, account_id: int, code: str, now: datetime | None = None) -> None:
        code = (code or "").strip()
        if not code:
            raise SheetsValidationError("Authorization code is required")
        now = now or datetime.now(timezone.utc)

        flow = self._flow()
        try:
            flow.fetch_token(code=code)
        except (OAuth2Error, requests.RequestException, ValueError) as exc:
            raise SheetsExportError(f"Token request failed: {exc}") from exc
        creds = flow.credentials

        integration = self.db.query(SheetsIntegration).filter(
            SheetsIntegration.account_id == account_id
        ).first()
        if integration is None:
            integration = SheetsIntegration(account_id=account_id, sync_enabled=True)
            self.db.add(integration)

        integration.access_token_encrypted = self.cipher.encrypt(creds.token)
        if creds.refresh_token:
            integration.refresh_token_encrypted = self.cipher.encrypt(creds.refresh_token)
        integration.token_expires_at = _expiry(creds, now)
        integration.sync_status = "success"
        integration.sync_error = None
        self.db.commit()
        logger.info("Google Sheets connected for account %s", account_id)

    def _google_credentials(self, integration: SheetsIntegration, now: datetime) -> Credentials:
        """Credentials for the stored tokens, refreshed first when the access token is about to expire."""
        web = self.credentials
        refresh_token = (
            self.cipher.decrypt(integration.refresh_token_encrypted)
            if integration.refresh_token_encrypted else None
        )
        creds = Credentials(
            token=self.cipher.decrypt(integration.access_token_encrypted),
            refresh_token=refresh_token,
            token_uri=web["token_uri"],
            client_id=web["client_id"],
            client_secret=web["client_secret"],
            scopes=OAUTH_SCOPES,
        )

        expires_at = integration.token_expires_at
        if expires_at is not None and expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        if expires_at is None or expires_at - TOKEN_REFRESH_MARGIN > now:
            return creds

        if refresh_token is None:
            raise SheetsExportError("Access token expired and no refresh token is stored")
        try:
            creds.refresh(GoogleRequest())
        except GoogleAuthError as exc:
            raise SheetsExportError(f"Token refresh failed: {exc}") from exc
        integration.access_token_encrypted = self.cipher.encrypt(creds.token)
        integration.token_expires_at = _expiry(creds, now)
        self.db.flush()
        return creds

    # ── Sheets ──

    def _spreadsheets(self, integration: SheetsIntegration, now: datetime):
        creds = self._google_credentials(integration, now)
        return build("sheets", "v4", credentials=creds, cache_discovery=False).spreadsheets()

    def create_sheet(self, account_id: int, title: str | None = None, now: datetime | None = None) -> dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        integration = self._integration(account_id)

        body = {
            "properties": {"title": (title or "").strip() or "Business Tracker Data"},
            "sheets": [{"properties": {"title": t}} for t in SHEET_TITLES],
        }
        sheet = _execute(self._spreadsheets(integration, now).create(body=body))
        integration.google_sheet_id = sheet["spreadsheetId"]
        integration.sheet_name = sheet.get("properties", {}).get("title")
        self.db.commit()
        return {"spreadsheet_id": sheet["spreadsheetId"], "url": sheet.get("spreadsheetUrl")}

    def export_data(self, account_id: int, data_type: str, month: str, now: datetime | None = None) -> dict[str, Any]:
        """
        Overwrite one sheet with the month's data.

        Raises:
            SheetsValidationError: unknown data type, no integration or no sheet
            SheetsExportError: Google API failure (recorded in sync_status)
        """
        if data_type not in DATA_TYPES:
            raise SheetsValidationError(f"Invalid data type: {data_type!r}")
        now = now or datetime.now(timezone.utc)
        integration = self._integration(account_id)
        if not integration.google_sheet_id:
            raise SheetsValidationError("Create a spreadsheet before exporting")

        cell_range, values = build_export_values(self.db, account_id, data_type, month)
        try:
            result = _execute(self._spreadsheets(integration, now).values().update(
                spreadsheetId=integration.google_sheet_id,
                range=cell_range,
                valueInputOption="RAW",
                body={"values": values},
            ))
        except SheetsExportError as exc:
            logger.warning("Sheets export failed for account %s: %s", account_id, exc)
            integration.sync_status = "error"
            integration.sync_error = str(exc)
            self.db.commit()
            raise

        integration.sync_status = "success"
        integration.sync_error = None
        integration.last_sync_at = now
        self.db.commit()
        return {"updated_cells": result.get("updatedCells", 0), "rows": len(values) - 1}

    def status(self, account_id: int) -> dict[str, Any]:
        integration = self.db.query(SheetsIntegration).filter(
            SheetsIntegration.account_id == account_id
        ).first()
        if integration is None:
            return {"connected": False}
        return {
            "connected": bool(integration.access_token_encrypted),
            "google_sheet_id": integration.google_sheet_id,
            "sheet_name": integration.sheet_name,
            "sync_enabled": integration.sync_enabled,
            "sync_status": integration.sync_status,
            "sync_error": integration.sync_error,
            "last_sync_at": integration.last_sync_at.isoformat() if integration.last_sync_at else None,
        }


def _expiry(creds: Credentials, now: datetime) -> datetime:
    # google-auth keeps expiry as naive UTC
    if creds.expiry is None:
        return now + DEFAULT_TOKEN_LIFETIME
    return creds.expiry.replace(tzinfo=timezone.utc)


def _execute(request) -> dict[str, Any]:
    try:
        return request.execute()
    except HttpError as exc:
        raise SheetsExportError(exc.reason or f"Google Sheets error {exc.status_code}") from exc
