from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from dealcard.schemas.kids import KidPublicOut
from dealcard.schemas.transactions import TransactionOut


class KidSessionCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kid_id: str = Field(alias="kidId", min_length=1)
    pin: str = Field(min_length=1, max_length=32)


class KidSessionCreateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    session_id: str = Field(alias="sessionId")
    kid: KidPublicOut


class KidSessionKidOut(KidPublicOut):
    transactions: list[TransactionOut]


class KidSessionStatusResponse(BaseModel):
    authenticated: bool
    kid: KidSessionKidOut | None = None
