"""Tests for the background insight jobs."""
from unittest.mock import patch

from app.application.scheduler import generate_insights_for_all
from app.config import get_settings
from app.infrastructure.db.models import User, UserInsight


def _users(db, *emails):
    for email in emails:
        db.add(User(email=email, password_hash="x"))
    db.commit()


def test_generates_for_every_account(db_session, monkeypatch):
    monkeypatch.setattr(get_settings(), "AI_API_KEY", "")
    _users(db_session, "a@example.com", "b@example.com")

    with patch("app.application.insights.InsightGenerationService.generate", return_value=[object()]) as generate:
        assert generate_insights_for_all(db_session) == 2

    assert [c.args[0] for c in generate.call_args_list] == [1, 2]


def test_one_failing_account_does_not_stop_the_rest(db_session, monkeypatch):
    monkeypatch.setattr(get_settings(), "AI_API_KEY", "")
    _users(db_session, "a@example.com", "b@example.com")

    with patch(
        "app.application.insights.InsightGenerationService.generate",
        side_effect=[RuntimeError("boom"), [object(), object()]],
    ):
        assert generate_insights_for_all(db_session) == 2

    assert db_session.query(UserInsight).count() == 0


def test_job_uses_scoped_session_and_survives_failure(db_engine, monkeypatch):
    from sqlalchemy.orm import sessionmaker

    from app.application import scheduler
    from app.infrastructure.db import session as session_module

    monkeypatch.setattr(session_module, "_SessionLocal", sessionmaker(bind=db_engine, autoflush=False))

    with patch.object(scheduler, "generate_insights_for_all", side_effect=RuntimeError("db down")) as job:
        scheduler._run_insight_generation()

    assert job.call_count == 1
