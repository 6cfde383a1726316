"""
Tests for the HTTP API (session auth, tracking, pipeline, insights, advisor, chat sessions, analytics)
"""
from datetime import date, datetime, timezone

import pytest

from app.config import get_settings

TODAY = date(2026, 9, 15)


@pytest.fixture
def fixed_today(monkeypatch):
    for module in ("tracking", "pipeline", "insights", "advisor"):
        monkeypatch.setattr(f"app.api.v1.{module}.today", lambda: TODAY)
    return TODAY


@pytest.fixture
def no_ai(monkeypatch):
    monkeypatch.setattr(get_settings(), "AI_API_KEY", "")


class TestAuth:
    def test_requires_login(self, client):
        assert client.get("/api/v1/tracking/goals/2026-09").status_code == 401

    def test_register_login_logout(self, client):
        resp = client.post("/api/v1/auth/register", json={"email": "A@Example.com", "password": "longenough"})
        assert resp.json()["data"]["email"] == "a@example.com"
        assert client.get("/api/v1/auth/me").json()["email"] == "a@example.com"

        client.post("/api/v1/auth/logout")
        assert client.get("/api/v1/auth/me").status_code == 401

        resp = client.post("/api/v1/auth/login", json={"email": "a@example.com", "password": "longenough"})
        assert resp.status_code == 200
        assert client.get("/api/v1/profile/").json()["profile"]["total_sessions"] == 2

    def test_wrong_password(self, auth_client):
        resp = auth_client.post("/api/v1/auth/login", json={"email": "founder@example.com", "password": "nope"})
        assert resp.status_code == 401

    def test_duplicate_registration(self, auth_client):
        resp = auth_client.post(
            "/api/v1/auth/register", json={"email": "founder@example.com", "password": "correct-horse"},
        )
        assert resp.status_code == 422
        assert resp.json() == {"success": False, "error": "Email is already registered"}


class TestTracking:
    def test_goals_and_dashboard(self, auth_client, fixed_today):
        resp = auth_client.put("/api/v1/tracking/goals/2026-09", json={"revenue_forecast": 50000})
        assert resp.status_code == 200
        assert resp.json()["success"] is True

        resp = auth_client.put("/api/v1/tracking/daily/2026-09-15", json={"gross_revenue": 2000})
        body = resp.json()
        assert body["data"]["unlocked_achievements"] == ["first_entry"]
        assert body["data"]["streak"]["current_streak"] == 1

        dashboard = auth_client.get("/api/v1/tracking/dashboard", params={"month": "2026-09"}).json()["data"]
        revenue = next(m for m in dashboard["metrics"] if m["name"] == "Revenue")
        assert revenue["progress"]["percentage"] == pytest.approx(8)
        assert revenue["progress"]["status"] == "behind"

        daily = auth_client.get("/api/v1/tracking/daily", params={"month": "2026-09"}).json()
        assert [d["date"] for d in daily] == ["2026-09-15"]

    def test_invalid_month_is_failed_result(self, auth_client):
        resp = auth_client.put("/api/v1/tracking/goals/2026-99", json={})
        assert resp.status_code == 422
        assert resp.json()["success"] is False
        assert "Invalid month" in resp.json()["error"]

    def test_month_mismatch_is_failed_result(self, auth_client, fixed_today):
        resp = auth_client.put("/api/v1/tracking/daily/2026-09-15", json={"month": "2026-08"})
        assert resp.status_code == 422
        assert "does not match" in resp.json()["error"]


class TestPipeline:
    def test_create_move_and_summarize(self, auth_client, fixed_today):
        auth_client.put("/api/v1/tracking/goals/2026-09", json={"workshops_target": 2})
        created = auth_client.post("/api/v1/opportunities/", json={
            "title": "Offsite", "type": "workshop", "estimated_value": 3000, "probability": 40,
        }).json()
        opp_id = created["data"]["id"]

        resp = auth_client.patch(f"/api/v1/opportunities/{opp_id}", json={"stage": "won"})
        assert resp.json() == {"success": True}

        summary = auth_client.get("/api/v1/opportunities/summary").json()["data"]
        workshop = next(t for t in summary["types"] if t["type"] == "workshop")
        assert summary["month"] == "2026-09"
        assert workshop["achieved"] == 1
        assert workshop["progress"] == 50

    def test_unknown_type_is_failed_result(self, auth_client, fixed_today):
        resp = auth_client.post("/api/v1/opportunities/", json={"title": "X", "type": "webinar"})
        assert resp.status_code == 422
        assert resp.json()["success"] is False


class TestInsightsAndAdvisor:
    def test_generate_without_ai_uses_rules(self, auth_client, fixed_today, no_ai):
        auth_client.put("/api/v1/tracking/goals/2026-09", json={"revenue_forecast": 50000})
        auth_client.put("/api/v1/tracking/daily/2026-09-15", json={"gross_revenue": 2000})

        generated = auth_client.post("/api/v1/insights/generate").json()["data"]
        assert "Revenue Target at Risk" in [i["title"] for i in generated]

        insight_id = generated[0]["id"]
        assert auth_client.post(f"/api/v1/insights/{insight_id}/dismiss").json() == {"success": True}
        second = auth_client.post(f"/api/v1/insights/{insight_id}/dismiss")
        assert second.status_code == 422

    def test_advisor_apologises_without_ai(self, auth_client, fixed_today, no_ai):
        resp = auth_client.post("/api/v1/advisor/ask", json={"question": "How do I grow?"})
        assert resp.status_code == 200
        assert resp.json()["data"]["response"].startswith("Sorry")

        history = auth_client.get("/api/v1/advisor/conversations").json()
        assert history[0]["question"] == "How do I grow?"

    def test_advisor_empty_question(self, auth_client, fixed_today, no_ai):
        resp = auth_client.post("/api/v1/advisor/ask", json={"question": " "})
        assert resp.status_code == 422

    def test_chat_session_without_ai(self, auth_client, fixed_today, no_ai):
        session_id = auth_client.post("/api/v1/advisor/sessions", json={}).json()["data"]["id"]
        for question in ("Where should I focus?", "And next quarter?"):
            resp = auth_client.post(f"/api/v1/advisor/sessions/{session_id}/messages", json={"content": question})
            assert resp.json()["data"]["response"].startswith("Sorry")

        messages = auth_client.get(f"/api/v1/advisor/sessions/{session_id}/messages").json()["data"]
        assert [m["role"] for m in messages] == ["user", "assistant", "user", "assistant"]

        summary = auth_client.post(f"/api/v1/advisor/sessions/{session_id}/summary")
        assert summary.status_code == 422
        assert summary.json()["error"] == "Failed to create summary"
        assert auth_client.get("/api/v1/advisor/sessions").json()[0]["is_active"] is True


class TestCustomerAnalytics:
    def test_record_and_report(self, auth_client):
        auth_client.post("/api/v1/analytics/sessions", json={"tool_type": "idea_blueprint", "session_duration": 240})
        auth_client.post("/api/v1/analytics/leads", json={
            "customer_email": "lead@example.com", "lead_source": "idea_blueprint", "lead_temperature": "hot",
        })
        bad = auth_client.post("/api/v1/analytics/sessions", json={"tool_type": "horoscope"})
        assert bad.status_code == 422

        month = datetime.now(timezone.utc).strftime("%Y-%m")
        report = auth_client.get(f"/api/v1/analytics/?month={month}").json()["data"]
        blueprint = next(t for t in report["tools"] if t["tool_type"] == "idea_blueprint")
        assert blueprint["sessions"] == 1
        assert report["leads"]["hot_leads"] == 1


class TestNetworkAndBehavior:
    def test_contact_and_referral(self, auth_client):
        contact = auth_client.post("/api/v1/network/contacts", json={"name": "Dana"}).json()["data"]
        resp = auth_client.post("/api/v1/network/referrals", json={
            "talent_contact_id": contact["id"], "client_name": "Acme", "referred_date": "2026-09-01",
        })
        assert resp.json()["success"] is True

        stats = auth_client.get(f"/api/v1/network/contacts/{contact['id']}/stats").json()
        assert stats["total_referrals"] == 1

    def test_behavior_events(self, auth_client):
        resp = auth_client.post("/api/v1/behavior/events", json={"events": [
            {"event_type": "click", "event_category": "nav", "event_action": "open", "component_name": "pipeline"},
        ]})
        assert resp.json() == {"success": True, "data": {"recorded": 1}}


def test_health(client):
    assert client.get("/health").text == "ok"
