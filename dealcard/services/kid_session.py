"""PIN-gated kid-mode sessions.

A kid session is stateless: the ``kid-session`` cookie carries a signed
``{kidId, sessionId, createdAt}`` payload and nothing is stored server side.
Sessions live for one hour from creation and are never renewed; once expired
the child has to present the PIN again.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from fastapi import HTTPException, Request, Response, status
from jwt import PyJWTError
from sqlalchemy.orm import Session

from dealcard.core.security import (
    KID_SESSION_COOKIE_NAME,
    KID_SESSION_SECONDS,
    generate_session_id,
    sign_kid_session,
    unsign_kid_session,
    verify_pin,
)
from dealcard.models import Kid

logger = logging.getLogger("dealcard.api.kid_session")


def _epoch_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class KidSessionInfo:
    kid_id: str
    session_id: str
    created_at: int
    kid: Kid


def _parse_claims(claims: dict[str, Any]) -> tuple[str, str, int] | None:
    kid_id = claims.get("kidId")
    session_id = claims.get("sessionId")
    created_at = claims.get("createdAt")
    if not isinstance(kid_id, str) or not kid_id:
        return None
    if not isinstance(session_id, str) or not session_id:
        return None
    # bool is an int subclass; reject it explicitly.
    if not isinstance(created_at, int) or isinstance(created_at, bool):
        return None
    return kid_id, session_id, created_at


class KidSessionManager:
    def __init__(
        self,
        *,
        secret: str,
        secure: bool = True,
        domain: str | None = None,
        clock: Callable[[], int] = _epoch_ms,
    ) -> None:
        self.secret = secret
        self.secure = secure
        self.domain = domain
        self.clock = clock

    def create(self, db: Session, response: Response, *, kid_id: str, pin: str) -> tuple[str, Kid]:
        kid = db.get(Kid, kid_id)
        if kid is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Kid not found")
        if not kid.pin_hash:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="PIN not set for this kid")
        if not verify_pin(pin, kid.pin_hash):
            logger.info("kid_session.rejected", extra={"kid_id": kid.id})
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid PIN")

        session_id = generate_session_id()
        token = sign_kid_session(
            {"kidId": kid.id, "sessionId": session_id, "createdAt": self.clock()},
            self.secret,
        )
        response.set_cookie(
            key=KID_SESSION_COOKIE_NAME,
            value=token,
            max_age=KID_SESSION_SECONDS,
            path="/",
            domain=self.domain,
            secure=self.secure,
            httponly=True,
            samesite="lax",
        )
        logger.info("kid_session.created", extra={"kid_id": kid.id})
        return session_id, kid

    def read(self, db: Session, request: Request, response: Response) -> KidSessionInfo | None:
        raw = request.cookies.get(KID_SESSION_COOKIE_NAME)
        if not raw:
            return None

        try:
            parsed = _parse_claims(unsign_kid_session(raw, self.secret))
        except PyJWTError:
            parsed = None
        if parsed is None:
            self.clear(response)
            return None

        kid_id, session_id, created_at = parsed
        if self.clock() - created_at > KID_SESSION_SECONDS * 1000:
            self.clear(response)
            return None

        kid = db.get(Kid, kid_id)
        if kid is None:
            self.clear(response)
            return None

        request.state.kid_id = kid.id
        return KidSessionInfo(kid_id=kid.id, session_id=session_id, created_at=created_at, kid=kid)

    def clear(self, response: Response) -> None:
        response.delete_cookie(
            key=KID_SESSION_COOKIE_NAME,
            path="/",
            domain=self.domain,
            secure=self.secure,
            httponly=True,
            samesite="lax",
        )
