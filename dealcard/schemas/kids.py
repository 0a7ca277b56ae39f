from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from dealcard.core.security import PIN_PATTERN
from dealcard.models import Kid


class KidCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    age: int | None = Field(default=None, ge=1, le=18)
    pin: str | None = Field(default=None, pattern=PIN_PATTERN)


class KidPinUpdateRequest(BaseModel):
    pin: str = Field(pattern=PIN_PATTERN)


class KidPublicOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    age: int | None
    avatar_url: str | None = Field(alias="avatarUrl")
    balance: float


class KidOut(KidPublicOut):
    has_pin: bool = Field(alias="hasPin")
    created_at: datetime = Field(alias="createdAt")


class KidResponse(BaseModel):
    kid: KidOut


class KidListResponse(BaseModel):
    kids: list[KidOut]


class SuccessResponse(BaseModel):
    success: bool


def kid_public_out(kid: Kid) -> KidPublicOut:
    return KidPublicOut(
        id=kid.id,
        name=kid.name,
        age=kid.age,
        avatar_url=kid.avatar_url,
        balance=float(kid.balance),
    )


def kid_out(kid: Kid) -> KidOut:
    return KidOut(
        id=kid.id,
        name=kid.name,
        age=kid.age,
        avatar_url=kid.avatar_url,
        balance=float(kid.balance),
        has_pin=bool(kid.pin_hash),
        created_at=kid.created_at,
    )
