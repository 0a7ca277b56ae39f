from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, status

from dealcard.api.deps import CurrentUser, DBSession
from dealcard.schemas.transactions import (
    TransactionCreateRequest,
    TransactionListResponse,
    TransactionResponse,
    transaction_out,
)
from dealcard.services.ledger import list_transactions, record_transaction

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@router.get("", response_model=TransactionListResponse)
def get_transactions(
    db: DBSession,
    user: CurrentUser,
    kid_id: Annotated[str | None, Query(alias="kidId")] = None,
) -> TransactionListResponse:
    rows = list_transactions(db, user_id=user.id, kid_id=kid_id)
    return TransactionListResponse(transactions=[transaction_out(tx, kid_name) for tx, kid_name in rows])


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def create_transaction(payload: TransactionCreateRequest, db: DBSession, user: CurrentUser) -> TransactionResponse:
    tx = record_transaction(
        db,
        user_id=user.id,
        kid_id=payload.kid_id,
        type=payload.type,
        amount=payload.amount,
        description=payload.description,
        category=payload.category,
        metadata=payload.metadata,
    )
    return TransactionResponse(transaction=transaction_out(tx))
