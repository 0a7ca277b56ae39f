from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dealcard.core.exceptions import LedgerWriteError
from dealcard.models import Kid, Transaction, TransactionStatus, TransactionType

logger = logging.getLogger("dealcard.api.ledger")

LIST_LIMIT = 50


def get_owned_kid_or_404(db: Session, *, user_id: str, kid_id: str) -> Kid:
    # Missing and foreign kids look identical to the caller.
    kid = db.scalar(select(Kid).where(Kid.id == kid_id, Kid.user_id == user_id))
    if kid is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Kid not found")
    return kid


def _increment_balance(db: Session, *, kid_id: str, amount: Decimal) -> None:
    db.execute(
        update(Kid)
        .where(Kid.id == kid_id)
        .values(balance=Kid.balance + amount)
        .execution_options(synchronize_session=False),
    )


def apply_transaction(
    db: Session,
    *,
    user_id: str,
    kid_id: str,
    type: TransactionType,
    amount: Decimal,
    description: str,
    category: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> Transaction:
    """Stage a transaction row and its balance increment without committing.

    Callers own the commit, so the pair lands atomically with whatever else
    they write in the same unit of work.
    """
    tx = Transaction(
        kid_id=kid_id,
        user_id=user_id,
        type=type,
        amount=amount,
        description=description,
        category=category,
        metadata_json=metadata,
        status=TransactionStatus.APPROVED,
    )
    db.add(tx)
    db.flush()
    _increment_balance(db, kid_id=kid_id, amount=amount)
    return tx


def record_transaction(
    db: Session,
    *,
    user_id: str,
    kid_id: str,
    type: TransactionType,
    amount: Decimal,
    description: str,
    category: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> Transaction:
    get_owned_kid_or_404(db, user_id=user_id, kid_id=kid_id)

    try:
        tx = apply_transaction(
            db,
            user_id=user_id,
            kid_id=kid_id,
            type=type,
            amount=amount,
            description=description,
            category=category,
            metadata=metadata,
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(
            "ledger.transaction.failed",
            extra={"user_id": user_id, "kid_id": kid_id, "transaction_type": type.value},
        )
        raise LedgerWriteError("Failed to record transaction") from exc

    logger.info(
        "ledger.transaction.recorded",
        extra={
            "user_id": user_id,
            "kid_id": kid_id,
            "transaction_id": tx.id,
            "transaction_type": type.value,
            "amount": str(amount),
        },
    )
    return tx


def list_transactions(
    db: Session,
    *,
    user_id: str,
    kid_id: str | None = None,
    limit: int = LIST_LIMIT,
) -> list[tuple[Transaction, str]]:
    query = (
        select(Transaction, Kid.name)
        .join(Kid, Kid.id == Transaction.kid_id)
        .where(Transaction.user_id == user_id)
    )
    if kid_id:
        query = query.where(Transaction.kid_id == kid_id)
    rows = db.execute(
        query.order_by(Transaction.created_at.desc(), Transaction.id.desc()).limit(limit),
    ).all()
    return [(tx, kid_name) for tx, kid_name in rows]


def recent_transactions_for_kid(db: Session, *, kid_id: str, limit: int = 10) -> list[Transaction]:
    return list(
        db.scalars(
            select(Transaction)
            .where(Transaction.kid_id == kid_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .limit(limit),
        ).all(),
    )
