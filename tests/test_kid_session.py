from __future__ import annotations

from typing import Any

import jwt
import pytest
from fastapi import HTTPException
from starlette.requests import Request
from starlette.responses import Response

from dealcard.core.security import KID_SESSION_COOKIE_NAME, KID_SESSION_SECONDS, sign_kid_session
from dealcard.services.kid_session import KidSessionManager

SECRET = "unit-test-kid-session-secret-0123456789"
T0 = 1_700_000_000_000


class _Clock:
    def __init__(self, now: int) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


def _manager(clock: _Clock) -> KidSessionManager:
    return KidSessionManager(secret=SECRET, secure=False, clock=clock)


def _request(token: str | None) -> Request:
    headers: list[tuple[bytes, bytes]] = []
    if token is not None:
        headers.append((b"cookie", f"{KID_SESSION_COOKIE_NAME}={token}".encode()))
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


def _set_cookie_headers(response: Response) -> list[str]:
    return [item for item in response.headers.getlist("set-cookie") if item.startswith(KID_SESSION_COOKIE_NAME)]


def _cookie_value(response: Response) -> str:
    header = _set_cookie_headers(response)[0]
    return header.split(";", 1)[0].split("=", 1)[1]


def _was_cleared(response: Response) -> bool:
    return any("Max-Age=0" in item for item in _set_cookie_headers(response))


def test_correct_pin_sets_http_only_cookie(db: Any, add_user: Any, add_kid: Any) -> None:
    kid = add_kid(add_user(), pin="4821")
    response = Response()

    session_id, session_kid = _manager(_Clock(T0)).create(db, response, kid_id=kid.id, pin="4821")

    assert session_id
    assert session_kid.id == kid.id
    header = _set_cookie_headers(response)[0]
    assert "HttpOnly" in header
    assert f"Max-Age={KID_SESSION_SECONDS}" in header
    assert "samesite=lax" in header.lower()
    assert "Path=/" in header

    claims = jwt.decode(_cookie_value(response), SECRET, algorithms=["HS256"])
    assert claims == {"kidId": kid.id, "sessionId": session_id, "createdAt": T0}


def test_wrong_pin_is_rejected_without_cookie(db: Any, add_user: Any, add_kid: Any) -> None:
    kid = add_kid(add_user(), pin="4821")
    response = Response()

    with pytest.raises(HTTPException) as exc_info:
        _manager(_Clock(T0)).create(db, response, kid_id=kid.id, pin="0000")

    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Invalid PIN"
    assert _set_cookie_headers(response) == []


def test_unknown_kid_is_not_found(db: Any) -> None:
    with pytest.raises(HTTPException) as exc_info:
        _manager(_Clock(T0)).create(db, Response(), kid_id="missing", pin="1234")
    assert exc_info.value.status_code == 404


def test_kid_without_pin_cannot_start_session(db: Any, add_user: Any, add_kid: Any) -> None:
    kid = add_kid(add_user(), pin=None)
    with pytest.raises(HTTPException) as exc_info:
        _manager(_Clock(T0)).create(db, Response(), kid_id=kid.id, pin="1234")
    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "PIN not set for this kid"


def test_session_is_valid_until_one_hour_after_creation(db: Any, add_user: Any, add_kid: Any) -> None:
    kid = add_kid(add_user())
    clock = _Clock(T0)
    manager = _manager(clock)
    created = Response()
    session_id, _ = manager.create(db, created, kid_id=kid.id, pin="1234")
    token = _cookie_value(created)

    clock.now = T0 + 3599 * 1000
    info = manager.read(db, _request(token), Response())
    assert info is not None
    assert info.kid_id == kid.id
    assert info.session_id == session_id
    assert info.kid.name == kid.name

    clock.now = T0 + 3601 * 1000
    expired = Response()
    assert manager.read(db, _request(token), expired) is None
    assert _was_cleared(expired)


def test_missing_cookie_reads_as_no_session(db: Any) -> None:
    response = Response()
    assert _manager(_Clock(T0)).read(db, _request(None), response) is None
    assert _set_cookie_headers(response) == []


def test_tampered_cookie_is_cleared(db: Any, add_user: Any, add_kid: Any) -> None:
    kid = add_kid(add_user())
    manager = _manager(_Clock(T0))
    created = Response()
    manager.create(db, created, kid_id=kid.id, pin="1234")
    header, payload, signature = _cookie_value(created).split(".")

    forged = sign_kid_session({"kidId": "someone-else", "sessionId": "x", "createdAt": T0}, SECRET)
    tampered = f"{header}.{forged.split('.')[1]}.{signature}"

    response = Response()
    assert manager.read(db, _request(tampered), response) is None
    assert _was_cleared(response)


def test_cookie_signed_with_other_secret_is_cleared(db: Any, add_user: Any, add_kid: Any) -> None:
    kid = add_kid(add_user())
    token = sign_kid_session({"kidId": kid.id, "sessionId": "s", "createdAt": T0}, "another-secret-0123456789abcdef")

    response = Response()
    assert _manager(_Clock(T0)).read(db, _request(token), response) is None
    assert _was_cleared(response)


def test_cookie_with_malformed_claims_is_cleared(db: Any) -> None:
    token = sign_kid_session({"kidId": "k", "sessionId": "s", "createdAt": "yesterday"}, SECRET)

    response = Response()
    assert _manager(_Clock(T0)).read(db, _request(token), response) is None
    assert _was_cleared(response)


def test_session_for_deleted_kid_is_cleared(db: Any) -> None:
    token = sign_kid_session({"kidId": "gone", "sessionId": "s", "createdAt": T0}, SECRET)

    response = Response()
    assert _manager(_Clock(T0)).read(db, _request(token), response) is None
    assert _was_cleared(response)


def test_kid_session_http_flow(client: Any, add_user: Any, add_kid: Any) -> None:
    kid = add_kid(add_user(), name="Ava", pin="2468")

    anonymous = client.get("/api/kid-session")
    assert anonymous.status_code == 200
    assert anonymous.json() == {"authenticated": False}

    rejected = client.post("/api/kid-session", json={"kidId": kid.id, "pin": "1111"})
    assert rejected.status_code == 401
    assert rejected.json()["code"] == "UNAUTHORIZED"

    created = client.post("/api/kid-session", json={"kidId": kid.id, "pin": "2468"})
    assert created.status_code == 200
    body = created.json()
    assert body["success"] is True
    assert body["sessionId"]
    assert body["kid"]["name"] == "Ava"
    assert body["kid"]["balance"] == 0
    assert "pinHash" not in body["kid"]

    status = client.get("/api/kid-session")
    assert status.status_code == 200
    assert status.json()["authenticated"] is True
    assert status.json()["kid"]["id"] == kid.id
    assert status.json()["kid"]["transactions"] == []

    assert client.delete("/api/kid-session").json() == {"success": True}
    assert client.delete("/api/kid-session").json() == {"success": True}
    assert client.get("/api/kid-session").json() == {"authenticated": False}
