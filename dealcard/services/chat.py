from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from secrets import token_urlsafe
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from dealcard.core.exceptions import LLMProviderError
from dealcard.models import ChatMessage, ChatRole, Kid, User
from dealcard.services.llm_provider import ChatTurn, LLMProvider

logger = logging.getLogger("dealcard.api.chat")

HISTORY_LIMIT = 20
PARENT_MAX_TOKENS = 1024
KID_MAX_TOKENS = 500
CHORE_MAX_TOKENS = 300

PARENT_SYSTEM_PROMPT = "You are a helpful financial education assistant for families."

CHORE_SYSTEM_PROMPT = (
    "You are a helpful assistant that suggests fair allowance amounts for children's chores.\n"
    "Consider the complexity, time required, and age-appropriateness of the task.\n"
    'Respond in JSON format with: { "suggestedAmount": number, "reasoning": string }'
)

FALLBACK_CHORE_AMOUNT = 5.0
FALLBACK_CHORE_REASONING = "Unable to analyze - defaulting to $5"


def kid_system_prompt(age: int) -> str:
    return (
        "You are a friendly financial educator for children.\n"
        f"Explain financial concepts in a way that a {age}-year-old can understand.\n"
        "Use simple language, examples, and encouragement. Keep responses under 200 words."
    )


def new_chat_session_id() -> str:
    return f"session-{token_urlsafe(12)}"


@dataclass(slots=True)
class ChoreSuggestion:
    suggested_amount: float
    reasoning: str


def load_history(db: Session, *, user_id: str, session_id: str, limit: int = HISTORY_LIMIT) -> list[ChatTurn]:
    recent = db.scalars(
        select(ChatMessage)
        .where(ChatMessage.user_id == user_id, ChatMessage.session_id == session_id)
        .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
        .limit(limit),
    ).all()
    return [{"role": item.role.value, "content": item.content} for item in reversed(recent)]


def _require_reply(reply: str | None) -> str:
    if reply is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "LLM_UNAVAILABLE", "message": "AI assistant is not available"},
        )
    return reply


def generate_chat_reply(
    db: Session,
    llm: LLMProvider,
    *,
    user: User,
    message: str,
    session_id: str | None = None,
    kid_id: str | None = None,
) -> tuple[str, str]:
    actual_session_id = session_id or new_chat_session_id()

    kid: Kid | None = None
    if kid_id:
        kid = db.scalar(select(Kid).where(Kid.id == kid_id, Kid.user_id == user.id))

    metadata: dict[str, Any] | None = None
    if kid is not None and kid.age:
        mode = "kid"
        reply = llm.complete(
            [{"role": "user", "content": f"Explain this financial concept to me: {message}"}],
            system_prompt=kid_system_prompt(kid.age),
            max_tokens=KID_MAX_TOKENS,
        )
        metadata = {"kidId": kid.id, "kidName": kid.name}
    else:
        mode = "parent"
        history = load_history(db, user_id=user.id, session_id=actual_session_id)
        history.append({"role": "user", "content": message})
        reply = llm.complete(history, system_prompt=PARENT_SYSTEM_PROMPT, max_tokens=PARENT_MAX_TOKENS)
    response = _require_reply(reply)

    # The reply must sort after its prompt when history is replayed.
    asked_at = datetime.now(UTC)
    db.add_all(
        [
            ChatMessage(
                user_id=user.id,
                session_id=actual_session_id,
                role=ChatRole.USER,
                content=message,
                metadata_json=metadata,
                created_at=asked_at,
            ),
            ChatMessage(
                user_id=user.id,
                session_id=actual_session_id,
                role=ChatRole.ASSISTANT,
                content=response,
                metadata_json=metadata,
                created_at=asked_at + timedelta(microseconds=1),
            ),
        ],
    )
    db.commit()

    logger.info(
        "chat.reply.generated",
        extra={
            "user_id": user.id,
            "kid_id": kid.id if metadata else None,
            "chat_session_id": actual_session_id,
            "chat_mode": mode,
            "provider": llm.key,
        },
    )
    return response, actual_session_id


def _parse_chore_suggestion(raw: str) -> ChoreSuggestion | None:
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    amount = data.get("suggestedAmount")
    reasoning = data.get("reasoning")
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not math.isfinite(amount):
        return None
    if not isinstance(reasoning, str):
        return None
    return ChoreSuggestion(suggested_amount=float(amount), reasoning=reasoning)


def suggest_chore_compensation(
    llm: LLMProvider,
    *,
    chore_name: str,
    description: str,
    kid_age: int,
) -> ChoreSuggestion:
    prompt = (
        f"Chore: {chore_name}\n"
        f"Description: {description}\n"
        f"Child's age: {kid_age}\n\n"
        "What would be a fair payment for this chore?"
    )
    fallback = ChoreSuggestion(suggested_amount=FALLBACK_CHORE_AMOUNT, reasoning=FALLBACK_CHORE_REASONING)
    try:
        raw = llm.complete(
            [{"role": "user", "content": prompt}],
            system_prompt=CHORE_SYSTEM_PROMPT,
            max_tokens=CHORE_MAX_TOKENS,
        )
    except LLMProviderError:
        logger.warning("chat.chore_suggestion.fallback", extra={"provider": llm.key, "reason": "provider_error"})
        return fallback
    if raw is None:
        logger.info("chat.chore_suggestion.fallback", extra={"provider": llm.key, "reason": "provider_disabled"})
        return fallback

    suggestion = _parse_chore_suggestion(raw)
    if suggestion is None:
        logger.warning("chat.chore_suggestion.fallback", extra={"provider": llm.key, "reason": "unparseable"})
        return fallback
    return suggestion
