from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request, Response, status
from sqlalchemy import select

from dealcard.api.deps import CurrentUser, DBSession, KidSessions
from dealcard.models import Kid, Reward, RewardClaim
from dealcard.schemas.rewards import (
    RewardClaimApprovalResponse,
    RewardClaimOut,
    RewardClaimResponse,
    RewardCreateRequest,
    RewardListResponse,
    RewardOut,
    RewardResponse,
)
from dealcard.schemas.transactions import transaction_out
from dealcard.services.rewards import approve_claim, claim_reward, fulfill_claim, reject_claim

router = APIRouter(prefix="/api", tags=["rewards"])
logger = logging.getLogger("dealcard.api.rewards")


def _claim_out(claim: RewardClaim, kid_name: str) -> RewardClaimOut:
    return RewardClaimOut(
        id=claim.id,
        reward_id=claim.reward_id,
        kid_id=claim.kid_id,
        kid_name=kid_name,
        status=claim.status,
        transaction_id=claim.transaction_id,
        claimed_at=claim.claimed_at,
        decided_at=claim.decided_at,
        fulfilled_at=claim.fulfilled_at,
    )


def _reward_out(reward: Reward, claims: list[RewardClaimOut] | None = None) -> RewardOut:
    return RewardOut(
        id=reward.id,
        title=reward.title,
        description=reward.description,
        cost=float(reward.cost),
        image_url=reward.image_url,
        available=reward.available,
        created_at=reward.created_at,
        claims=claims or [],
    )


@router.get("/rewards", response_model=RewardListResponse)
def list_rewards(db: DBSession, user: CurrentUser) -> RewardListResponse:
    rewards = db.scalars(
        select(Reward)
        .where(Reward.user_id == user.id)
        .order_by(Reward.created_at.desc(), Reward.id.desc()),
    ).all()

    claims_by_reward: dict[str, list[RewardClaimOut]] = {reward.id: [] for reward in rewards}
    if rewards:
        rows = db.execute(
            select(RewardClaim, Kid.name)
            .join(Kid, Kid.id == RewardClaim.kid_id)
            .where(RewardClaim.reward_id.in_(list(claims_by_reward)))
            .order_by(RewardClaim.claimed_at.desc(), RewardClaim.id.desc()),
        ).all()
        for claim, kid_name in rows:
            claims_by_reward[claim.reward_id].append(_claim_out(claim, kid_name))

    return RewardListResponse(rewards=[_reward_out(reward, claims_by_reward[reward.id]) for reward in rewards])


@router.post("/rewards", response_model=RewardResponse, status_code=status.HTTP_201_CREATED)
def create_reward(payload: RewardCreateRequest, db: DBSession, user: CurrentUser) -> RewardResponse:
    reward = Reward(
        user_id=user.id,
        title=payload.title,
        description=payload.description,
        cost=payload.cost,
        image_url=payload.image_url,
        available=True,
    )
    db.add(reward)
    db.commit()
    logger.info("reward.created", extra={"user_id": user.id, "reward_id": reward.id})
    return RewardResponse(reward=_reward_out(reward))


@router.post(
    "/rewards/{reward_id}/claims",
    response_model=RewardClaimResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_reward_claim(
    reward_id: str,
    request: Request,
    response: Response,
    db: DBSession,
    sessions: KidSessions,
) -> RewardClaimResponse:
    info = sessions.read(db, request, response)
    if info is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Kid session required")

    claim = claim_reward(db, kid=info.kid, reward_id=reward_id)
    return RewardClaimResponse(claim=_claim_out(claim, info.kid.name))


@router.post("/reward-claims/{claim_id}/approve", response_model=RewardClaimApprovalResponse)
def approve_reward_claim(claim_id: str, db: DBSession, user: CurrentUser) -> RewardClaimApprovalResponse:
    claim, kid, tx = approve_claim(db, user_id=user.id, claim_id=claim_id)
    return RewardClaimApprovalResponse(claim=_claim_out(claim, kid.name), transaction=transaction_out(tx))


@router.post("/reward-claims/{claim_id}/reject", response_model=RewardClaimResponse)
def reject_reward_claim(claim_id: str, db: DBSession, user: CurrentUser) -> RewardClaimResponse:
    claim, kid = reject_claim(db, user_id=user.id, claim_id=claim_id)
    return RewardClaimResponse(claim=_claim_out(claim, kid.name))


@router.post("/reward-claims/{claim_id}/fulfill", response_model=RewardClaimResponse)
def fulfill_reward_claim(claim_id: str, db: DBSession, user: CurrentUser) -> RewardClaimResponse:
    claim, kid = fulfill_claim(db, user_id=user.id, claim_id=claim_id)
    return RewardClaimResponse(claim=_claim_out(claim, kid.name))
