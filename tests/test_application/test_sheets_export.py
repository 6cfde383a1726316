"""Tests for Google Sheets export (Google client libraries mocked)."""
from datetime import date, datetime, timedelta, timezone
from unittest.mock import Mock, patch

import pytest
from cryptography.fernet import Fernet
from google.oauth2.credentials import Credentials
from googleapiclient.errors import HttpError
from oauthlib.oauth2.rfc6749.errors import InvalidGrantError

from app.application.sheets_export import (
    SheetsExportError,
    SheetsExportService,
    SheetsValidationError,
    build_export_values,
    _load_credentials,
)
from app.application.tracking import SaveDailyActualsUseCase, UpsertMonthlyGoalsUseCase
from app.infrastructure.crypto import TokenCipher, TokenCipherError
from app.infrastructure.db.models import SheetsIntegration

ACCOUNT = 1
NOW = datetime(2026, 9, 15, 9, 0, tzinfo=timezone.utc)
TOKEN_EXPIRY = datetime(2026, 9, 15, 10, 0)  # naive UTC, as google-auth reports it
CREDENTIALS = {
    "client_id": "client-123",
    "client_secret": "s3cret",
    "auth_uri": "https://accounts.google.com/o/oauth2/auth",
    "token_uri": "https://oauth2.googleapis.com/token",
    "redirect_uris": ["https://app.example.com/sheets/callback"],
}


@pytest.fixture
def cipher():
    return TokenCipher(Fernet.generate_key())


@pytest.fixture
def service(db_session, cipher):
    return SheetsExportService(db_session, credentials=CREDENTIALS, cipher=cipher)


@pytest.fixture
def connected(service):
    with patch("app.application.sheets_export.Flow") as flow_cls:
        flow = flow_cls.from_client_config.return_value
        flow.credentials = Mock(token="access-1", refresh_token="refresh-1", expiry=TOKEN_EXPIRY)
        service.exchange_code(ACCOUNT, "auth-code", now=NOW)
    return service


@pytest.fixture
def sheets_api():
    with patch("app.application.sheets_export.build") as build:
        yield build


def _with_sheet(db_session):
    db_session.get(SheetsIntegration, ACCOUNT).google_sheet_id = "sheet-1"
    db_session.commit()


class TestCredentials:
    def test_missing(self):
        with pytest.raises(SheetsExportError, match="not configured"):
            _load_credentials("")

    def test_web_section_required(self):
        with pytest.raises(SheetsExportError, match="format"):
            _load_credentials('{"installed": {}}')

    def test_auth_url(self, service):
        url = service.auth_url()
        assert url.startswith("https://accounts.google.com/o/oauth2/auth?")
        assert "client_id=client-123" in url
        assert "access_type=offline" in url
        assert "prompt=consent" in url


class TestTokenCipher:
    def test_round_trip_and_tamper(self, cipher):
        token = cipher.encrypt("secret")
        assert token != "secret"
        assert cipher.decrypt(token) == "secret"
        with pytest.raises(TokenCipherError):
            TokenCipher(Fernet.generate_key()).decrypt(token)

    def test_bad_key(self):
        with pytest.raises(TokenCipherError):
            TokenCipher("not-a-key")


class TestOAuth:
    def test_exchange_stores_encrypted_tokens(self, db_session, connected, cipher):
        integration = db_session.get(SheetsIntegration, ACCOUNT)
        assert integration.access_token_encrypted != "access-1"
        assert cipher.decrypt(integration.access_token_encrypted) == "access-1"
        assert cipher.decrypt(integration.refresh_token_encrypted) == "refresh-1"
        assert integration.token_expires_at.replace(tzinfo=None) == TOKEN_EXPIRY
        assert connected.status(ACCOUNT)["connected"] is True

    def test_exchange_uses_redirect_uri_and_code(self, service):
        with patch("app.application.sheets_export.Flow") as flow_cls:
            flow = flow_cls.from_client_config.return_value
            flow.credentials = Mock(token="access-1", refresh_token=None, expiry=None)
            service.exchange_code(ACCOUNT, " auth-code ", now=NOW)

        kwargs = flow_cls.from_client_config.call_args.kwargs
        assert kwargs["redirect_uri"] == "https://app.example.com/sheets/callback"
        assert kwargs["autogenerate_code_verifier"] is False
        flow.fetch_token.assert_called_once_with(code="auth-code")

    def test_exchange_error(self, service):
        with patch("app.application.sheets_export.Flow") as flow_cls:
            flow_cls.from_client_config.return_value.fetch_token.side_effect = InvalidGrantError()
            with pytest.raises(SheetsExportError, match="invalid_grant"):
                service.exchange_code(ACCOUNT, "bad-code", now=NOW)

    def test_empty_code(self, service):
        with pytest.raises(SheetsValidationError):
            service.exchange_code(ACCOUNT, " ")

    def test_expired_token_is_refreshed(self, db_session, connected, cipher, sheets_api):
        def refresh(creds, request):
            creds.token = "access-2"
            creds.expiry = datetime(2026, 9, 15, 12, 0)

        sheets_api.return_value.spreadsheets.return_value.create.return_value.execute.return_value = {
            "spreadsheetId": "sheet-1", "spreadsheetUrl": "https://docs.google.com/sheet-1",
            "properties": {"title": "Tracker"},
        }
        with patch.object(Credentials, "refresh", autospec=True, side_effect=refresh) as refresh_mock:
            result = connected.create_sheet(ACCOUNT, "Tracker", now=NOW + timedelta(hours=2))

        assert refresh_mock.call_args.args[0].refresh_token == "refresh-1"
        assert sheets_api.call_args.args == ("sheets", "v4")
        assert sheets_api.call_args.kwargs["credentials"].token == "access-2"
        assert result == {"spreadsheet_id": "sheet-1", "url": "https://docs.google.com/sheet-1"}
        integration = db_session.get(SheetsIntegration, ACCOUNT)
        assert cipher.decrypt(integration.access_token_encrypted) == "access-2"
        assert integration.token_expires_at.replace(tzinfo=None) == datetime(2026, 9, 15, 12, 0)

    def test_fresh_token_is_not_refreshed(self, connected, sheets_api):
        sheets_api.return_value.spreadsheets.return_value.create.return_value.execute.return_value = {
            "spreadsheetId": "sheet-1", "properties": {"title": "Business Tracker Data"},
        }
        with patch.object(Credentials, "refresh", autospec=True) as refresh_mock:
            connected.create_sheet(ACCOUNT, now=NOW)

        refresh_mock.assert_not_called()
        body = sheets_api.return_value.spreadsheets.return_value.create.call_args.kwargs["body"]
        assert [s["properties"]["title"] for s in body["sheets"]] == [
            "Monthly Goals", "Daily Progress", "Opportunities", "Revenue",
        ]

    def test_expired_without_refresh_token(self, db_session, connected, sheets_api):
        db_session.get(SheetsIntegration, ACCOUNT).refresh_token_encrypted = None
        db_session.commit()

        with pytest.raises(SheetsExportError, match="no refresh token"):
            connected.create_sheet(ACCOUNT, now=NOW + timedelta(hours=2))
        sheets_api.assert_not_called()


class TestExport:
    def test_export_requires_integration(self, service):
        with pytest.raises(SheetsValidationError, match="No Google Sheets"):
            service.export_data(ACCOUNT, "daily_progress", "2026-09", now=NOW)

    def test_unknown_data_type(self, connected):
        with pytest.raises(SheetsValidationError, match="Invalid data type"):
            connected.export_data(ACCOUNT, "tax_returns", "2026-09", now=NOW)

    def test_export_requires_sheet(self, connected):
        with pytest.raises(SheetsValidationError, match="spreadsheet"):
            connected.export_data(ACCOUNT, "daily_progress", "2026-09", now=NOW)

    def test_export_daily_progress(self, db_session, connected, sheets_api):
        SaveDailyActualsUseCase(db_session).execute(
            ACCOUNT, date(2026, 9, 15), {"gross_revenue": 2000, "lectures": 1},
            notes="Good day", today=date(2026, 9, 15), now=NOW,
        )
        _with_sheet(db_session)
        update = sheets_api.return_value.spreadsheets.return_value.values.return_value.update
        update.return_value.execute.return_value = {"updatedCells": 20}

        result = connected.export_data(ACCOUNT, "daily_progress", "2026-09", now=NOW)

        kwargs = update.call_args.kwargs
        values = kwargs["body"]["values"]
        assert kwargs["spreadsheetId"] == "sheet-1"
        assert kwargs["range"] == "Daily Progress!A1"
        assert kwargs["valueInputOption"] == "RAW"
        assert values[0][0] == "Date"
        assert values[1][:2] == ["2026-09-15", 2000.0]
        assert values[1][-1] == "Good day"
        assert result == {"updated_cells": 20, "rows": 1}
        assert connected.status(ACCOUNT)["sync_status"] == "success"

    def test_google_failure_is_recorded(self, db_session, connected, sheets_api):
        _with_sheet(db_session)
        update = sheets_api.return_value.spreadsheets.return_value.values.return_value.update
        update.return_value.execute.side_effect = HttpError(
            Mock(status=403, reason="Forbidden"), b'{"error": {"message": "Permission denied"}}',
        )

        with pytest.raises(SheetsExportError, match="Permission denied"):
            connected.export_data(ACCOUNT, "revenue", "2026-09", now=NOW)

        status = connected.status(ACCOUNT)
        assert status["sync_status"] == "error"
        assert status["sync_error"] == "Permission denied"


def test_monthly_goals_values(db_session):
    UpsertMonthlyGoalsUseCase(db_session).execute(ACCOUNT, "2026-09", revenue_forecast=50000, pr_target=4)
    cell_range, values = build_export_values(db_session, ACCOUNT, "monthly_goals", "2026-09")
    assert cell_range == "Monthly Goals!A1"
    assert values[1] == ["2026-09", 50000.0, 0.0, 0, 0, 0, 4]
