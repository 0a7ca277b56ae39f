from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dealcard.models import ClaimStatus
from dealcard.schemas.transactions import TransactionOut, to_cents


class RewardCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    cost: Decimal = Field(allow_inf_nan=False)
    image_url: str | None = Field(default=None, alias="imageUrl", max_length=500)

    @field_validator("cost")
    @classmethod
    def cost_to_cents(cls, value: Decimal) -> Decimal:
        cents = to_cents(value)
        if cents <= 0:
            raise ValueError("must be at least 0.01")
        return cents


class RewardClaimOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    reward_id: str = Field(alias="rewardId")
    kid_id: str = Field(alias="kidId")
    kid_name: str = Field(alias="kidName")
    status: ClaimStatus
    transaction_id: str | None = Field(alias="transactionId")
    claimed_at: datetime = Field(alias="claimedAt")
    decided_at: datetime | None = Field(alias="decidedAt")
    fulfilled_at: datetime | None = Field(default=None, alias="fulfilledAt")


class RewardOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: str | None
    cost: float
    image_url: str | None = Field(alias="imageUrl")
    available: bool
    created_at: datetime = Field(alias="createdAt")
    claims: list[RewardClaimOut] = Field(default_factory=list)


class RewardResponse(BaseModel):
    reward: RewardOut


class RewardListResponse(BaseModel):
    rewards: list[RewardOut]


class RewardClaimResponse(BaseModel):
    claim: RewardClaimOut


class RewardClaimApprovalResponse(BaseModel):
    claim: RewardClaimOut
    transaction: TransactionOut
