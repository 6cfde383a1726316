"""Tests for insight generation, fallback, dedupe and lifecycle."""
import json
from datetime import date, datetime, timedelta, timezone

import pytest

from app.application.insights import (
    ActionInsightUseCase,
    DismissInsightUseCase,
    ExpireInsightsUseCase,
    InsightGenerationService,
    InsightValidationError,
    LlmInsightStrategy,
    RuleBasedInsightStrategy,
    list_insights,
)
from app.application.tracking import SaveDailyActualsUseCase, UpsertMonthlyGoalsUseCase
from app.infrastructure.ai.client import AiServiceError
from app.infrastructure.db.models import UserInsight

ACCOUNT = 1
TODAY = date(2026, 9, 15)
NOW = datetime(2026, 9, 15, 6, 0, tzinfo=timezone.utc)


class BrokenLlm:
    insight_type = "ai_generated"

    def generate(self, context, now):
        raise AiServiceError("rate limited")


class SilentLlm:
    insight_type = "ai_generated"

    def generate(self, context, now):
        return []


class CrashingLlm:
    insight_type = "ai_generated"

    def generate(self, context, now):
        raise RuntimeError("unexpected provider payload")


class FakeChatClient:
    def __init__(self, message):
        self.message = message
        self.calls = []

    def chat_completion(self, **kwargs):
        self.calls.append(kwargs)
        return self.message


def _behind_on_revenue(db):
    UpsertMonthlyGoalsUseCase(db).execute(ACCOUNT, "2026-09", revenue_forecast=50000)
    SaveDailyActualsUseCase(db).execute(ACCOUNT, TODAY, {"gross_revenue": 2000}, today=TODAY, now=NOW)


def _service(db, llm=None):
    return InsightGenerationService(db, llm=llm or SilentLlm(), rules=RuleBasedInsightStrategy(ttl_days=7))


class TestGeneration:
    def test_ai_failure_falls_back_to_rules(self, db_session):
        _behind_on_revenue(db_session)

        created = _service(db_session, llm=BrokenLlm()).generate(ACCOUNT, today=TODAY, now=NOW)

        risk = [i for i in created if i.category == "risk_alert"]
        assert len(risk) == 1
        assert risk[0].title == "Revenue Target at Risk"
        assert risk[0].insight_type == "rule_based"
        assert risk[0].supporting_data["schema_version"] == "insights.v1"

    def test_unexpected_ai_error_falls_back_to_rules(self, db_session):
        _behind_on_revenue(db_session)
        created = _service(db_session, llm=CrashingLlm()).generate(ACCOUNT, today=TODAY, now=NOW)
        assert "Revenue Target at Risk" in [i.title for i in created]

    def test_non_text_ai_fields_fall_back_to_rules(self, db_session):
        _behind_on_revenue(db_session)
        arguments = json.dumps({"insights": [{
            "category": "productivity", "title": 123, "description": ["not", "text"],
            "priority": "high",
        }]})
        client = FakeChatClient({"tool_calls": [{"function": {"name": "generate_insights", "arguments": arguments}}]})
        llm = LlmInsightStrategy(client, model="test-model")

        created = _service(db_session, llm=llm).generate(ACCOUNT, today=TODAY, now=NOW)

        risk = [i for i in created if i.category == "risk_alert"]
        assert [i.insight_type for i in risk] == ["rule_based"]

    def test_empty_ai_result_falls_back_to_rules(self, db_session):
        _behind_on_revenue(db_session)
        created = _service(db_session).generate(ACCOUNT, today=TODAY, now=NOW)
        assert {i.insight_type for i in created} == {"rule_based"}

    def test_regeneration_skips_active_duplicates(self, db_session):
        _behind_on_revenue(db_session)
        service = _service(db_session, llm=BrokenLlm())

        first = service.generate(ACCOUNT, today=TODAY, now=NOW)
        second = service.generate(ACCOUNT, today=TODAY, now=NOW + timedelta(hours=1))

        assert first
        assert second == []
        assert db_session.query(UserInsight).count() == len(first)

    def test_expired_insight_can_be_regenerated(self, db_session):
        _behind_on_revenue(db_session)
        service = _service(db_session, llm=BrokenLlm())
        first = service.generate(ACCOUNT, today=TODAY, now=NOW)

        later = NOW + timedelta(days=8)
        again = service.generate(ACCOUNT, today=TODAY, now=later)

        assert {i.title for i in again} == {i.title for i in first}
        db_session.refresh(first[0])
        assert first[0].status == "expired"

    def test_ai_insights_are_stored_as_ai_generated(self, db_session):
        arguments = json.dumps({"insights": [{
            "category": "productivity", "title": "Batch your proposals",
            "description": "Write proposals on Mondays.", "priority": "medium",
            "suggestedActions": ["Block Monday mornings"], "confidenceScore": 0.7,
        }]})
        client = FakeChatClient({"tool_calls": [{"function": {"name": "generate_insights", "arguments": arguments}}]})
        llm = LlmInsightStrategy(client, model="test-model", ttl_days=3)

        created = _service(db_session, llm=llm).generate(ACCOUNT, today=TODAY, now=NOW)

        assert [(i.insight_type, i.title) for i in created] == [("ai_generated", "Batch your proposals")]
        assert client.calls[0]["tool_choice"]["function"]["name"] == "generate_insights"


class TestLlmStrategy:
    def test_missing_tool_call_is_service_error(self, db_session):
        llm = LlmInsightStrategy(FakeChatClient({"content": "hello"}), model="m")
        context = _service(db_session).build_context(ACCOUNT, TODAY, NOW)
        with pytest.raises(AiServiceError):
            llm.generate(context, NOW)

    def test_non_dict_message_is_service_error(self, db_session):
        llm = LlmInsightStrategy(FakeChatClient("plain text answer"), model="m")
        context = _service(db_session).build_context(ACCOUNT, TODAY, NOW)
        with pytest.raises(AiServiceError):
            llm.generate(context, NOW)

    def test_malformed_arguments_are_service_error(self, db_session):
        llm = LlmInsightStrategy(
            FakeChatClient({"tool_calls": [{"function": {"arguments": "{oops"}}]}), model="m",
        )
        context = _service(db_session).build_context(ACCOUNT, TODAY, NOW)
        with pytest.raises(AiServiceError):
            llm.generate(context, NOW)


class TestLifecycle:
    @pytest.fixture
    def insight_id(self, db_session):
        _behind_on_revenue(db_session)
        created = _service(db_session, llm=BrokenLlm()).generate(ACCOUNT, today=TODAY, now=NOW)
        return created[0].id

    def test_dismiss(self, db_session, insight_id):
        DismissInsightUseCase(db_session).execute(insight_id, ACCOUNT, now=NOW)
        insight = db_session.get(UserInsight, insight_id)
        assert insight.status == "dismissed"
        assert insight.dismissed_at is not None
        assert insight_id not in [i.id for i in list_insights(db_session, ACCOUNT)]

    def test_action(self, db_session, insight_id):
        ActionInsightUseCase(db_session).execute(insight_id, ACCOUNT, now=NOW)
        assert db_session.get(UserInsight, insight_id).status == "actioned"

    def test_cannot_dismiss_twice(self, db_session, insight_id):
        DismissInsightUseCase(db_session).execute(insight_id, ACCOUNT, now=NOW)
        with pytest.raises(InsightValidationError, match="already dismissed"):
            ActionInsightUseCase(db_session).execute(insight_id, ACCOUNT, now=NOW)

    def test_other_account_cannot_dismiss(self, db_session, insight_id):
        with pytest.raises(InsightValidationError, match="not found"):
            DismissInsightUseCase(db_session).execute(insight_id, ACCOUNT + 1, now=NOW)

    def test_expire(self, db_session, insight_id):
        assert ExpireInsightsUseCase(db_session).execute(now=NOW + timedelta(days=1)) == 0
        expired = ExpireInsightsUseCase(db_session).execute(now=NOW + timedelta(days=8))
        assert expired >= 1
        assert list_insights(db_session, ACCOUNT) == []


def test_list_orders_high_priority_first(db_session):
    _behind_on_revenue(db_session)
    _service(db_session, llm=BrokenLlm()).generate(ACCOUNT, today=TODAY, now=NOW)
    priorities = [i.priority for i in list_insights(db_session, ACCOUNT)]
    assert priorities == sorted(priorities, key=["high", "medium", "low"].index)
