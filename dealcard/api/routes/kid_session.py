from __future__ import annotations

from fastapi import APIRouter, Request, Response

from dealcard.api.deps import DBSession, KidSessions
from dealcard.schemas.kid_session import (
    KidSessionCreateRequest,
    KidSessionCreateResponse,
    KidSessionKidOut,
    KidSessionStatusResponse,
)
from dealcard.schemas.kids import SuccessResponse, kid_public_out
from dealcard.schemas.transactions import transaction_out
from dealcard.services.ledger import recent_transactions_for_kid

router = APIRouter(prefix="/api/kid-session", tags=["kid-session"])

KID_VIEW_TRANSACTIONS = 10


@router.get("", response_model=KidSessionStatusResponse, response_model_exclude_unset=True)
def get_kid_session(
    request: Request,
    response: Response,
    db: DBSession,
    sessions: KidSessions,
) -> KidSessionStatusResponse:
    info = sessions.read(db, request, response)
    if info is None:
        return KidSessionStatusResponse(authenticated=False)

    kid = info.kid
    transactions = recent_transactions_for_kid(db, kid_id=kid.id, limit=KID_VIEW_TRANSACTIONS)
    public = kid_public_out(kid)
    return KidSessionStatusResponse(
        authenticated=True,
        kid=KidSessionKidOut(
            **public.model_dump(),
            transactions=[transaction_out(tx) for tx in transactions],
        ),
    )


@router.post("", response_model=KidSessionCreateResponse)
def create_kid_session(
    payload: KidSessionCreateRequest,
    response: Response,
    db: DBSession,
    sessions: KidSessions,
) -> KidSessionCreateResponse:
    session_id, kid = sessions.create(db, response, kid_id=payload.kid_id, pin=payload.pin)
    return KidSessionCreateResponse(success=True, session_id=session_id, kid=kid_public_out(kid))


@router.delete("", response_model=SuccessResponse)
def delete_kid_session(response: Response, sessions: KidSessions) -> SuccessResponse:
    sessions.clear(response)
    return SuccessResponse(success=True)
