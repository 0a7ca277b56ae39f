from __future__ import annotations

from fastapi import APIRouter

from dealcard.api.deps import LLM, CurrentUser, DBSession
from dealcard.schemas.chat import ChatRequest, ChatResponse, ChoreSuggestionRequest, ChoreSuggestionResponse
from dealcard.services.chat import generate_chat_reply, suggest_chore_compensation

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.post("", response_model=ChatResponse)
def chat(payload: ChatRequest, db: DBSession, llm: LLM, user: CurrentUser) -> ChatResponse:
    response, session_id = generate_chat_reply(
        db,
        llm,
        user=user,
        message=payload.message,
        session_id=payload.session_id,
        kid_id=payload.kid_id,
    )
    return ChatResponse(response=response, session_id=session_id)


@router.post("/chore-suggestion", response_model=ChoreSuggestionResponse)
def chore_suggestion(payload: ChoreSuggestionRequest, llm: LLM, _: CurrentUser) -> ChoreSuggestionResponse:
    suggestion = suggest_chore_compensation(
        llm,
        chore_name=payload.chore_name,
        description=payload.description,
        kid_age=payload.kid_age,
    )
    return ChoreSuggestionResponse(suggested_amount=suggestion.suggested_amount, reasoning=suggestion.reasoning)
