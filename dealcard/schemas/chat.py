from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(min_length=1, max_length=1000)
    session_id: str | None = Field(default=None, alias="sessionId", min_length=1, max_length=100)
    kid_id: str | None = Field(default=None, alias="kidId")


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response: str
    session_id: str = Field(alias="sessionId")


class ChoreSuggestionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chore_name: str = Field(alias="choreName", min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)
    kid_age: int = Field(alias="kidAge", ge=1, le=18)


class ChoreSuggestionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    suggested_amount: float = Field(alias="suggestedAmount")
    reasoning: str
