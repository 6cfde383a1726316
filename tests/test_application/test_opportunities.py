"""Tests for pipeline opportunities and the pipeline summary."""
from datetime import date

import pytest

from app.application.opportunities import (
    CreateOpportunityUseCase,
    DeleteOpportunityUseCase,
    OpportunityValidationError,
    PipelineService,
    UpdateOpportunityUseCase,
    list_opportunities,
)
from app.application.tracking import UpsertMonthlyGoalsUseCase
from app.infrastructure.db.models import Opportunity

ACCOUNT = 1
MONTH = "2026-09"


def _create(db, **kwargs):
    values = dict(title="Leadership workshop", type="workshop", month=MONTH)
    values.update(kwargs)
    return CreateOpportunityUseCase(db).execute(ACCOUNT, **values)


class TestCreateOpportunity:
    def test_defaults(self, db_session):
        opp = db_session.get(Opportunity, _create(db_session, company=" Acme "))
        assert opp.stage == "lead"
        assert opp.probability == 0
        assert opp.company == "Acme"

    def test_empty_title(self, db_session):
        with pytest.raises(OpportunityValidationError, match="Title"):
            _create(db_session, title=" ")

    def test_unknown_type(self, db_session):
        with pytest.raises(OpportunityValidationError, match="type"):
            _create(db_session, type="webinar")

    @pytest.mark.parametrize("probability", [-1, 101, "likely"])
    def test_probability_bounds(self, db_session, probability):
        with pytest.raises(OpportunityValidationError, match="Probability"):
            _create(db_session, probability=probability)

    def test_negative_value(self, db_session):
        with pytest.raises(OpportunityValidationError, match="Estimated value"):
            _create(db_session, estimated_value=-10)


class TestUpdateOpportunity:
    def test_move_stage(self, db_session):
        oid = _create(db_session)
        UpdateOpportunityUseCase(db_session).execute(
            oid, ACCOUNT, stage="won", estimated_close_date=date(2026, 9, 30),
        )
        opp = db_session.get(Opportunity, oid)
        assert opp.stage == "won"
        assert opp.estimated_close_date == date(2026, 9, 30)

    def test_unknown_stage(self, db_session):
        oid = _create(db_session)
        with pytest.raises(OpportunityValidationError, match="stage"):
            UpdateOpportunityUseCase(db_session).execute(oid, ACCOUNT, stage="maybe")

    def test_other_account(self, db_session):
        oid = _create(db_session)
        with pytest.raises(OpportunityValidationError, match="not found"):
            DeleteOpportunityUseCase(db_session).execute(oid, ACCOUNT + 1)

    def test_delete(self, db_session):
        oid = _create(db_session)
        DeleteOpportunityUseCase(db_session).execute(oid, ACCOUNT)
        assert list_opportunities(db_session, ACCOUNT) == []


class TestPipelineSummary:
    def test_summary(self, db_session):
        UpsertMonthlyGoalsUseCase(db_session).execute(
            ACCOUNT, MONTH, revenue_forecast=10000, workshops_target=2,
        )
        _create(db_session, stage="won", estimated_value=4000)
        _create(db_session, stage="lead", estimated_value=1000, probability=50)
        _create(db_session, stage="proposal", estimated_value=2000, probability=25)
        _create(db_session, type="lecture", stage="won", estimated_value=1000, month="2026-08")

        summary = PipelineService(db_session).get_summary(ACCOUNT, MONTH)
        workshop = next(t for t in summary["types"] if t["type"] == "workshop")

        assert workshop["achieved"] == 1
        assert workshop["progress"] == 50
        assert workshop["weighted_pipeline_value"] == pytest.approx(1000)
        assert summary["revenue"]["total_revenue"] == 4000
        assert summary["health"]["total_opportunities"] == 3

    def test_filters(self, db_session):
        _create(db_session, stage="won")
        _create(db_session, type="pr", title="Podcast")
        assert [o.title for o in list_opportunities(db_session, ACCOUNT, type="pr")] == ["Podcast"]
        assert len(list_opportunities(db_session, ACCOUNT, month=MONTH, stage="won")) == 1

    def test_bad_month(self, db_session):
        with pytest.raises(OpportunityValidationError):
            PipelineService(db_session).get_summary(ACCOUNT, "September")
