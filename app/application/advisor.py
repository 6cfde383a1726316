"""
AI advisor: answers business questions with the account's metrics as context.

    quick_insight       synchronous chat completion, 2-3 sentences
    strategic_analysis  background run, polled until terminal
    chat                synchronous completion, one turn of a chat session
    summary             synchronous completion summarizing a chat session

Provider failures never reach the caller: they get an apology message.
Every exchange is stored in ai_conversations.
"""
import json
import logging
import time
from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.application.progress_state import SqlProgressStateStore
from app.application.tracking import goals_to_dict, get_goals, list_actuals, streak_to_dict
from app.config import get_settings
from app.domain.assistant_run import COMPLETED, poll_run
from app.domain.pipeline import aggregate_pipeline, revenue_progress
from app.domain.progress import METRICS, month_key, month_progress_pct, sum_actuals
from app.infrastructure.ai.client import AiClient, AiServiceError
from app.infrastructure.db.models import AiConversation, Opportunity, UserProfile

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "advisor.v1"

QUICK_INSIGHT = "quick_insight"
STRATEGIC_ANALYSIS = "strategic_analysis"
CHAT = "chat"
SUMMARY = "summary"
CONVERSATION_TYPES = (QUICK_INSIGHT, STRATEGIC_ANALYSIS, CHAT, SUMMARY)

QUICK_MAX_TOKENS = 150
STRATEGIC_MAX_TOKENS = 1000
HISTORY_LIMIT = 5

APOLOGY = (
    "Sorry, I couldn't analyze your question right now. "
    "Please try again in a few minutes."
)


class AdvisorValidationError(ValueError):
    pass


@dataclass
class AdvisorContext:
    """Business context sent to the model. Serialized only via to_payload()."""
    month: str
    metrics: dict[str, float] = field(default_factory=dict)
    goals: dict[str, Any] | None = None
    profile: dict[str, Any] | None = None
    pipeline: list[dict[str, Any]] = field(default_factory=list)
    revenue: dict[str, Any] | None = None
    streak: dict[str, Any] | None = None
    month_progress_pct: float | None = None
    conversation_history: list[dict[str, str]] = field(default_factory=list)
    schema_version: str = SCHEMA_VERSION

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)


def _system_prompt(conversation_type: str, context: AdvisorContext) -> str:
    payload = json.dumps(context.to_payload(), default=str)
    if conversation_type == SUMMARY:
        return (
            "You are a strategic business advisor. Summarize the conversation you are given "
            "in 2-3 sentences: the main question, the advice given and any agreed next steps.\n\n"
            f"Context about the user's business metrics: {payload}"
        )
    if conversation_type == QUICK_INSIGHT:
        return (
            "You are a strategic business advisor providing quick, actionable insights.\n\n"
            f"Context about the user's business metrics: {payload}\n\n"
            "Provide a brief, actionable response (2-3 sentences max) that directly addresses their "
            "question while considering their current metrics. Focus on immediate, practical advice."
        )
    return (
        "You are a strategic business advisor providing comprehensive analysis and recommendations.\n\n"
        f"Context about the user's business metrics: {payload}\n\n"
        "Provide detailed, strategic analysis with specific recommendations. Consider trends, patterns, "
        "and long-term implications. Be thorough but practical."
    )


class AdvisorService:
    def __init__(
        self,
        db: Session,
        client: AiClient | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.db = db
        self.client = client or AiClient()
        self.sleep = sleep
        self.settings = get_settings()

    def load_business_context(self, account_id: int, today: date) -> dict[str, Any]:
        """Structured business profile for the advisor and the dashboard chat."""
        month = month_key(today)
        goals = get_goals(self.db, account_id, month)
        actuals = list_actuals(self.db, account_id, month)
        opportunities = self.db.query(Opportunity).filter(
            Opportunity.account_id == account_id,
            Opportunity.month == month,
        ).all()
        profile = self.db.query(UserProfile).filter(UserProfile.account_id == account_id).first()
        state = SqlProgressStateStore(self.db).load(account_id)

        return {
            "month": month,
            "metrics": {m.actual_field: sum_actuals(actuals, m.actual_field) for m in METRICS},
            "goals": goals_to_dict(goals),
            "profile": {
                "business_type": profile.business_type,
                "industry": profile.industry,
                "service_types": profile.service_types or [],
                "currency": profile.currency,
            } if profile else None,
            "pipeline": [p.to_dict() for p in aggregate_pipeline(opportunities, goals)],
            "revenue": revenue_progress(opportunities, goals),
            "streak": streak_to_dict(state.streak),
            "month_progress_pct": round(month_progress_pct(today), 1),
        }

    def build_context(self, account_id: int, today: date) -> AdvisorContext:
        data = self.load_business_context(account_id, today)
        history = self.db.query(AiConversation).filter(
            AiConversation.account_id == account_id,
        ).order_by(AiConversation.created_at.desc(), AiConversation.id.desc()).limit(HISTORY_LIMIT).all()
        data["conversation_history"] = [
            {"question": c.question, "response": c.response} for c in reversed(history)
        ]
        return AdvisorContext(**data)

    def _completion(self, question: str, context: AdvisorContext, conversation_type: str) -> str:
        message = self.client.chat_completion(
            model=self.settings.AI_ADVISOR_MODEL,
            messages=[
                {"role": "system", "content": _system_prompt(conversation_type, context)},
                {"role": "user", "content": question},
            ],
            max_tokens=QUICK_MAX_TOKENS if conversation_type == QUICK_INSIGHT else STRATEGIC_MAX_TOKENS,
            temperature=0.7,
        )
        content = (message.get("content") or "").strip() if isinstance(message, dict) else ""
        if not content:
            raise AiServiceError("Empty AI response")
        return content

    def _strategic_analysis(self, question: str, context: AdvisorContext) -> str:
        run_id = self.client.start_background_response(
            model=self.settings.AI_ADVISOR_MODEL,
            instructions=_system_prompt(STRATEGIC_ANALYSIS, context),
            prompt=question,
            max_output_tokens=STRATEGIC_MAX_TOKENS,
        )
        run = poll_run(
            self.client.get_background_response,
            run_id,
            max_attempts=self.settings.ASSISTANT_POLL_MAX_ATTEMPTS,
            base_delay=self.settings.ASSISTANT_POLL_BASE_DELAY,
            max_delay=self.settings.ASSISTANT_POLL_MAX_DELAY,
            sleep=self.sleep,
        )
        if run.state != COMPLETED or not run.output:
            raise AiServiceError(f"Run {run_id} ended as {run.state}: {run.error or 'no output'}")
        return str(run.output).strip()

    def answer(self, question: str, context: AdvisorContext, conversation_type: str) -> str:
        """
        Model answer without the apology fallback or storage.

        Raises:
            AiServiceError: provider failure, empty answer or unfinished run
        """
        if conversation_type == STRATEGIC_ANALYSIS:
            return self._strategic_analysis(question, context)
        return self._completion(question, context, conversation_type)

    def invoke(
        self,
        account_id: int,
        question: str,
        context: AdvisorContext,
        conversation_type: str = QUICK_INSIGHT,
    ) -> dict[str, Any]:
        """
        Ask the advisor.

        Returns:
            {"response": str, "conversation_type": str}

        Raises:
            AdvisorValidationError: empty question or unknown conversation type
        """
        question = (question or "").strip()
        if not question:
            raise AdvisorValidationError("Question cannot be empty")
        if conversation_type not in CONVERSATION_TYPES:
            raise AdvisorValidationError(f"Unknown conversation type: {conversation_type!r}")

        try:
            response = self.answer(question, context, conversation_type)
        except AiServiceError as exc:
            logger.warning("Advisor request failed for account %s: %s", account_id, exc)
            response = APOLOGY

        self.store(account_id, question, response, context, conversation_type)
        return {"response": response, "conversation_type": conversation_type}

    def store(self, account_id: int, question: str, response: str, context: AdvisorContext, conversation_type: str) -> None:
        try:
            self.db.add(AiConversation(
                account_id=account_id,
                question=question,
                response=response,
                context=context.to_payload(),
                conversation_type=conversation_type,
            ))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to store advisor conversation for account %s", account_id)


def list_conversations(db: Session, account_id: int, limit: int = 20) -> list[AiConversation]:
    return db.query(AiConversation).filter(
        AiConversation.account_id == account_id,
    ).order_by(AiConversation.created_at.desc(), AiConversation.id.desc()).limit(limit).all()
