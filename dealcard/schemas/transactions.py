from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dealcard.models import Transaction, TransactionType

CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("9999999999.99")


def to_cents(value: Decimal) -> Decimal:
    """Round a money input half-up to whole cents, within the Numeric(12, 2) column range."""
    cents = value.quantize(CENT, rounding=ROUND_HALF_UP)
    if abs(cents) > MAX_AMOUNT:
        raise ValueError(f"must be between -{MAX_AMOUNT} and {MAX_AMOUNT}")
    return cents


class TransactionCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kid_id: str = Field(alias="kidId", min_length=1)
    type: TransactionType
    amount: Decimal = Field(allow_inf_nan=False)
    description: str = Field(min_length=1, max_length=500)
    category: str | None = Field(default=None, max_length=100)
    metadata: dict[str, Any] | None = None

    @field_validator("amount")
    @classmethod
    def amount_to_cents(cls, value: Decimal) -> Decimal:
        return to_cents(value)


class TransactionKidOut(BaseModel):
    name: str


class TransactionOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    kid_id: str = Field(alias="kidId")
    user_id: str = Field(alias="userId")
    type: TransactionType
    amount: float
    description: str
    category: str | None
    metadata: dict[str, Any] | None
    status: str
    created_at: datetime = Field(alias="createdAt")
    kid: TransactionKidOut | None = None


class TransactionResponse(BaseModel):
    transaction: TransactionOut


class TransactionListResponse(BaseModel):
    transactions: list[TransactionOut]


def transaction_out(tx: Transaction, kid_name: str | None = None) -> TransactionOut:
    return TransactionOut(
        id=tx.id,
        kid_id=tx.kid_id,
        user_id=tx.user_id,
        type=tx.type,
        amount=float(tx.amount),
        description=tx.description,
        category=tx.category,
        metadata=tx.metadata_json,
        status=tx.status.value,
        created_at=tx.created_at,
        kid=TransactionKidOut(name=kid_name) if kid_name is not None else None,
    )
