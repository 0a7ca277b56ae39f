from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dealcard.core.exceptions import LedgerWriteError
from dealcard.models import ClaimStatus, Kid, Reward, RewardClaim, Transaction, TransactionType
from dealcard.services.ledger import apply_transaction

logger = logging.getLogger("dealcard.api.rewards")


def claim_reward(db: Session, *, kid: Kid, reward_id: str) -> RewardClaim:
    reward = db.scalar(
        select(Reward).where(
            Reward.id == reward_id,
            Reward.user_id == kid.user_id,
            Reward.available.is_(True),
        ),
    )
    if reward is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reward not found")
    if kid.balance < reward.cost:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Insufficient balance")

    claim = RewardClaim(reward_id=reward.id, kid_id=kid.id, status=ClaimStatus.PENDING)
    db.add(claim)
    db.commit()
    logger.info(
        "reward.claim.created",
        extra={"kid_id": kid.id, "reward_id": reward.id, "claim_id": claim.id},
    )
    return claim


def get_owned_claim_or_404(
    db: Session,
    *,
    user_id: str,
    claim_id: str,
    lock: bool = False,
) -> tuple[RewardClaim, Reward, Kid]:
    """Load a claim with its reward and kid, scoped to the owning parent.

    With ``lock=True`` the claim and kid rows stay locked until the caller's
    commit or rollback, so concurrent decisions on one kid run one at a time.
    """
    query = (
        select(RewardClaim, Reward, Kid)
        .join(Reward, Reward.id == RewardClaim.reward_id)
        .join(Kid, Kid.id == RewardClaim.kid_id)
        .where(RewardClaim.id == claim_id, Reward.user_id == user_id)
    )
    if lock:
        query = query.with_for_update(of=(RewardClaim, Kid)).execution_options(populate_existing=True)
    row = db.execute(query).first()
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Claim not found")
    claim, reward, kid = row
    return claim, reward, kid


def _conflict(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


def _transition(
    db: Session,
    *,
    claim_id: str,
    expected: ClaimStatus,
    target: ClaimStatus,
    **values: object,
) -> bool:
    """Move a claim from ``expected`` to ``target``; False when another writer got there first."""
    result = db.execute(
        update(RewardClaim)
        .where(RewardClaim.id == claim_id, RewardClaim.status == expected)
        .values(status=target, **values)
        .execution_options(synchronize_session=False),
    )
    return result.rowcount == 1


def approve_claim(db: Session, *, user_id: str, claim_id: str) -> tuple[RewardClaim, Kid, Transaction]:
    claim, reward, kid = get_owned_claim_or_404(db, user_id=user_id, claim_id=claim_id, lock=True)
    if claim.status != ClaimStatus.PENDING:
        db.rollback()
        raise _conflict("Claim already decided")
    if kid.balance < reward.cost:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Insufficient balance")

    try:
        if not _transition(
            db,
            claim_id=claim.id,
            expected=ClaimStatus.PENDING,
            target=ClaimStatus.APPROVED,
            decided_at=datetime.now(UTC),
        ):
            db.rollback()
            raise _conflict("Claim already decided")
        tx = apply_transaction(
            db,
            user_id=user_id,
            kid_id=kid.id,
            type=TransactionType.PURCHASE,
            amount=-reward.cost,
            description=f"Reward: {reward.title}",
            category="reward",
            metadata={"rewardId": reward.id, "claimId": claim.id},
        )
        db.execute(
            update(RewardClaim)
            .where(RewardClaim.id == claim.id)
            .values(transaction_id=tx.id)
            .execution_options(synchronize_session=False),
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("reward.claim.approve_failed", extra={"user_id": user_id, "claim_id": claim_id})
        raise LedgerWriteError("Failed to approve reward claim") from exc

    logger.info(
        "reward.claim.approved",
        extra={
            "user_id": user_id,
            "kid_id": kid.id,
            "claim_id": claim.id,
            "transaction_id": tx.id,
            "amount": str(-reward.cost),
        },
    )
    return claim, kid, tx


def reject_claim(db: Session, *, user_id: str, claim_id: str) -> tuple[RewardClaim, Kid]:
    claim, _, kid = get_owned_claim_or_404(db, user_id=user_id, claim_id=claim_id, lock=True)
    if not _transition(
        db,
        claim_id=claim.id,
        expected=ClaimStatus.PENDING,
        target=ClaimStatus.REJECTED,
        decided_at=datetime.now(UTC),
    ):
        db.rollback()
        raise _conflict("Claim already decided")
    db.commit()
    logger.info("reward.claim.rejected", extra={"user_id": user_id, "claim_id": claim.id})
    return claim, kid


def fulfill_claim(db: Session, *, user_id: str, claim_id: str) -> tuple[RewardClaim, Kid]:
    """Mark an approved claim as handed over to the kid."""
    claim, _, kid = get_owned_claim_or_404(db, user_id=user_id, claim_id=claim_id, lock=True)
    if not _transition(
        db,
        claim_id=claim.id,
        expected=ClaimStatus.APPROVED,
        target=ClaimStatus.FULFILLED,
        fulfilled_at=datetime.now(UTC),
    ):
        db.rollback()
        raise _conflict("Only approved claims can be fulfilled")
    db.commit()
    logger.info("reward.claim.fulfilled", extra={"user_id": user_id, "claim_id": claim.id})
    return claim, kid
