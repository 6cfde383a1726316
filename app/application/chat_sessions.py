"""
Strategic chat sessions: multi-turn conversations with the advisor.

A session collects user/assistant messages. Once it has at least
MIN_SUMMARY_MESSAGES messages it can be summarized, which stores the summary,
closes the session and adds the summary to the advisor history.
"""
import logging
from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from app.application.advisor import CHAT, HISTORY_LIMIT, SUMMARY, AdvisorService
from app.infrastructure.ai.client import AiServiceError
from app.infrastructure.db.models import ChatMessage, ConversationSession

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Strategic Chat"
MIN_SUMMARY_MESSAGES = 4
SUMMARY_HISTORY_QUESTION = "Strategic Chat Session Summary"

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"


class ChatSessionValidationError(ValueError):
    pass


def _get_owned(db: Session, session_id: int, account_id: int) -> ConversationSession:
    session = db.query(ConversationSession).filter(
        ConversationSession.id == session_id,
        ConversationSession.account_id == account_id,
    ).first()
    if not session:
        raise ChatSessionValidationError("Chat session not found")
    return session


def _messages(db: Session, session_id: int) -> list[ChatMessage]:
    return db.query(ChatMessage).filter(
        ChatMessage.session_id == session_id,
    ).order_by(ChatMessage.id).all()


def transcript(messages: list[ChatMessage]) -> str:
    return "\n\n".join(
        f"{'User' if m.role == ROLE_USER else 'AI'}: {m.content}" for m in messages
    )


class StartChatSessionUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, account_id: int, title: str | None = None) -> int:
        session = ConversationSession(
            account_id=account_id,
            title=(title or "").strip() or DEFAULT_TITLE,
            is_active=True,
            message_count=0,
        )
        self.db.add(session)
        self.db.flush()
        self.db.commit()
        return session.id


class SendChatMessageUseCase:
    """One chat turn: store the user message, ask the advisor, store the reply."""

    def __init__(self, db: Session, advisor: AdvisorService | None = None):
        self.db = db
        self.advisor = advisor or AdvisorService(db)

    def execute(self, account_id: int, session_id: int, content: str, today: date) -> dict[str, Any]:
        content = (content or "").strip()
        if not content:
            raise ChatSessionValidationError("Message cannot be empty")
        session = _get_owned(self.db, session_id, account_id)
        if not session.is_active:
            raise ChatSessionValidationError("Chat session is closed")

        recent = _messages(self.db, session.id)[-HISTORY_LIMIT:]
        self.db.add(ChatMessage(session_id=session.id, account_id=account_id, role=ROLE_USER, content=content))
        session.message_count += 1
        self.db.commit()

        context = self.advisor.build_context(account_id, today)
        context.conversation_history = [{"role": m.role, "content": m.content} for m in recent]
        reply = self.advisor.invoke(account_id, content, context, conversation_type=CHAT)["response"]

        self.db.add(ChatMessage(session_id=session.id, account_id=account_id, role=ROLE_ASSISTANT, content=reply))
        session.message_count += 1
        self.db.commit()
        return {"response": reply, "message_count": session.message_count}


class SummarizeChatSessionUseCase:
    def __init__(self, db: Session, advisor: AdvisorService | None = None):
        self.db = db
        self.advisor = advisor or AdvisorService(db)

    def execute(self, account_id: int, session_id: int, today: date) -> str:
        """
        Summarize and close a session.

        Raises:
            ChatSessionValidationError: unknown or closed session, too few
                messages, or the advisor could not produce a summary
        """
        session = _get_owned(self.db, session_id, account_id)
        if not session.is_active:
            raise ChatSessionValidationError("Chat session is closed")
        messages = _messages(self.db, session.id)
        if len(messages) < MIN_SUMMARY_MESSAGES:
            raise ChatSessionValidationError(f"Need at least {MIN_SUMMARY_MESSAGES} messages for a summary")

        context = self.advisor.build_context(account_id, today)
        question = (
            "Please create a concise summary of this strategic business conversation "
            f"in 2-3 sentences: {transcript(messages)}"
        )
        try:
            summary = self.advisor.answer(question, context, SUMMARY)
        except AiServiceError as exc:
            logger.warning("Chat summary failed for session %s: %s", session.id, exc)
            raise ChatSessionValidationError("Failed to create summary") from exc

        session.summary = summary
        session.is_active = False
        self.db.commit()

        self.advisor.store(account_id, SUMMARY_HISTORY_QUESTION, summary, context, SUMMARY)
        return summary


def list_chat_sessions(db: Session, account_id: int, limit: int = 20) -> list[ConversationSession]:
    return db.query(ConversationSession).filter(
        ConversationSession.account_id == account_id,
    ).order_by(ConversationSession.id.desc()).limit(limit).all()


def list_chat_messages(db: Session, account_id: int, session_id: int) -> list[ChatMessage]:
    """Raises ChatSessionValidationError for another account's session."""
    return _messages(db, _get_owned(db, session_id, account_id).id)


def chat_session_to_dict(session: ConversationSession) -> dict[str, Any]:
    return {
        "id": session.id,
        "title": session.title,
        "is_active": session.is_active,
        "message_count": session.message_count,
        "summary": session.summary,
        "created_at": session.created_at.isoformat() if session.created_at else None,
    }
