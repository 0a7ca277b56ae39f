from __future__ import annotations

from collections.abc import Iterator
from typing import Annotated, Any

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dealcard.core.config import settings
from dealcard.core.security import decode_identity_token
from dealcard.models import User
from dealcard.services.kid_session import KidSessionManager
from dealcard.services.llm_provider import LLMProvider

auth_scheme = HTTPBearer(auto_error=False)


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


DBSession = Annotated[Session, Depends(get_db)]


def get_kid_session_manager() -> KidSessionManager:
    return KidSessionManager(
        secret=settings.kid_session_secret,
        secure=settings.auth_cookie_secure,
        domain=settings.auth_cookie_domain,
    )


KidSessions = Annotated[KidSessionManager, Depends(get_kid_session_manager)]


def get_llm(request: Request) -> LLMProvider:
    return request.app.state.llm


LLM = Annotated[LLMProvider, Depends(get_llm)]


def _display_name(claims: dict[str, Any]) -> str | None:
    metadata = claims.get("user_metadata")
    if isinstance(metadata, dict):
        name = metadata.get("name") or metadata.get("full_name")
        if isinstance(name, str) and name.strip():
            return name.strip()
    return None


def get_current_user(
    db: DBSession,
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(auth_scheme)],
) -> User:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )

    try:
        claims = decode_identity_token(credentials.credentials)
    except jwt.PyJWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        ) from exc

    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject",
        )

    user = db.scalar(select(User).where(User.auth_subject == subject))
    if user is None:
        # First authenticated request for this identity: mirror it locally.
        email = claims.get("email")
        if not isinstance(email, str) or not email:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token claims",
            )
        user = User(auth_subject=subject, email=email, name=_display_name(claims))
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # A concurrent request created the same identity first.
            db.rollback()
            user = db.scalar(select(User).where(User.auth_subject == subject))
            if user is None:
                raise

    request.state.user_id = user.id
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
