from __future__ import annotations

from secrets import token_urlsafe
from typing import Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from dealcard.core.config import settings

KID_SESSION_COOKIE_NAME = "kid-session"
KID_SESSION_SECONDS = 60 * 60
PIN_PATTERN = r"^[0-9]{4}$"

_pin_hasher = PasswordHasher()


def hash_pin(pin: str) -> str:
    return _pin_hasher.hash(pin)


def verify_pin(pin: str, pin_hash: str) -> bool:
    try:
        return _pin_hasher.verify(pin_hash, pin)
    except (VerificationError, InvalidHashError):
        return False


def decode_identity_token(token: str) -> dict[str, Any]:
    """Validate a parent access token issued by the identity provider."""
    return jwt.decode(
        token,
        settings.auth_jwt_secret,
        algorithms=["HS256"],
        audience=settings.auth_jwt_audience,
        options={"require": ["sub", "exp"]},
    )


def sign_kid_session(claims: dict[str, Any], secret: str) -> str:
    return jwt.encode(claims, secret, algorithm="HS256")


def unsign_kid_session(value: str, secret: str) -> dict[str, Any]:
    # Expiry is judged from createdAt by the session manager, not by an exp claim.
    return jwt.decode(value, secret, algorithms=["HS256"], options={"verify_exp": False})


def generate_session_id() -> str:
    return token_urlsafe(16)
