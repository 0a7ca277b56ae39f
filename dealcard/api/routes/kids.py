from __future__ import annotations

import logging

from fastapi import APIRouter, status
from sqlalchemy import select

from dealcard.api.deps import CurrentUser, DBSession
from dealcard.core.security import hash_pin
from dealcard.models import Kid
from dealcard.schemas.kids import (
    KidCreateRequest,
    KidListResponse,
    KidPinUpdateRequest,
    KidResponse,
    SuccessResponse,
    kid_out,
)
from dealcard.services.ledger import get_owned_kid_or_404

router = APIRouter(prefix="/api/kids", tags=["kids"])
logger = logging.getLogger("dealcard.api.kids")


@router.get("", response_model=KidListResponse)
def list_kids(db: DBSession, user: CurrentUser) -> KidListResponse:
    kids = db.scalars(
        select(Kid).where(Kid.user_id == user.id).order_by(Kid.created_at.asc(), Kid.id.asc()),
    ).all()
    return KidListResponse(kids=[kid_out(kid) for kid in kids])


@router.post("", response_model=KidResponse, status_code=status.HTTP_201_CREATED)
def create_kid(payload: KidCreateRequest, db: DBSession, user: CurrentUser) -> KidResponse:
    kid = Kid(
        user_id=user.id,
        name=payload.name,
        age=payload.age,
        pin_hash=hash_pin(payload.pin) if payload.pin else None,
    )
    db.add(kid)
    db.commit()
    logger.info("kid.created", extra={"user_id": user.id, "kid_id": kid.id})
    return KidResponse(kid=kid_out(kid))


@router.put("/{kid_id}/pin", response_model=SuccessResponse)
def set_kid_pin(kid_id: str, payload: KidPinUpdateRequest, db: DBSession, user: CurrentUser) -> SuccessResponse:
    kid = get_owned_kid_or_404(db, user_id=user.id, kid_id=kid_id)
    kid.pin_hash = hash_pin(payload.pin)
    db.commit()
    logger.info("kid.pin.updated", extra={"user_id": user.id, "kid_id": kid.id})
    return SuccessResponse(success=True)
