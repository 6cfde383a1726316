"""
AI advisor API
"""
from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, result_response, today
from app.application.advisor import QUICK_INSIGHT, AdvisorService, list_conversations
from app.application.chat_sessions import (
    SendChatMessageUseCase,
    StartChatSessionUseCase,
    SummarizeChatSessionUseCase,
    chat_session_to_dict,
    list_chat_messages,
    list_chat_sessions,
)
from app.application.results import run_operation


router = APIRouter(prefix="/api/v1/advisor", tags=["advisor"])


class AskRequest(BaseModel):
    question: str
    conversation_type: str = QUICK_INSIGHT


class StartSessionRequest(BaseModel):
    title: str | None = None


class ChatMessageRequest(BaseModel):
    content: str
@router.post("/ask")
def ask(request: Request, req: AskRequest, db: Session = Depends(get_db)):
    """Ask the advisor; provider failures come back as an apology response"""
    user = get_current_user(request, db)
    service = AdvisorService(db)

    def _ask():
        context = service.build_context(user.id, today())
        return service.invoke(user.id, req.question, context, req.conversation_type)

    return result_response(run_operation(db, _ask))


@router.get("/context")
def business_context(request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return AdvisorService(db).load_business_context(user.id, today())


@router.get("/conversations")
def conversations(request: Request, limit: int = Query(20, ge=1, le=100), db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return [
        {
            "id": c.id,
            "question": c.question,
            "response": c.response,
            "conversation_type": c.conversation_type,
            "created_at": c.created_at.isoformat() if c.created_at else None,
        }
        for c in list_conversations(db, user.id, limit)
    ]


@router.post("/sessions")
def start_session(request: Request, req: StartSessionRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return result_response(run_operation(
        db, lambda: {"id": StartChatSessionUseCase(db).execute(user.id, req.title)},
    ))


@router.get("/sessions")
def sessions(request: Request, limit: int = Query(20, ge=1, le=100), db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return [chat_session_to_dict(s) for s in list_chat_sessions(db, user.id, limit)]


@router.get("/sessions/{session_id}/messages")
def session_messages(request: Request, session_id: int, db: Session = Depends(get_db)):
    user = get_current_user(request, db)

    def _messages():
        return [
            {"id": m.id, "role": m.role, "content": m.content}
            for m in list_chat_messages(db, user.id, session_id)
        ]

    return result_response(run_operation(db, _messages))


@router.post("/sessions/{session_id}/messages")
def send_message(request: Request, session_id: int, req: ChatMessageRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return result_response(run_operation(
        db, lambda: SendChatMessageUseCase(db).execute(user.id, session_id, req.content, today()),
    ))


@router.post("/sessions/{session_id}/summary")
def summarize_session(request: Request, session_id: int, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return result_response(run_operation(
        db, lambda: {"summary": SummarizeChatSessionUseCase(db).execute(user.id, session_id, today())},
    ))
