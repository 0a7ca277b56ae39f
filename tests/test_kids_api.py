from __future__ import annotations

from typing import Any

import pytest

from dealcard.core.security import verify_pin
from dealcard.models import Kid, User


def test_kids_require_parent_token(client: Any) -> None:
    response = client.get("/api/kids")
    assert response.status_code == 401
    assert response.json() == {"code": "UNAUTHORIZED", "message": "Unauthorized"}


def test_invalid_parent_token_is_rejected(client: Any) -> None:
    response = client.get("/api/kids", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token"


def test_new_parent_has_no_kids(client: Any, auth_headers: Any, db: Any) -> None:
    response = client.get("/api/kids", headers=auth_headers("fresh-parent", "fresh@example.com"))
    assert response.status_code == 200
    assert response.json() == {"kids": []}
    # The identity is mirrored on first use.
    assert db.query(User).filter_by(auth_subject="fresh-parent").count() == 1


@pytest.mark.parametrize("pin", ["12a4", "12345", "123"])
def test_create_kid_rejects_malformed_pin(client: Any, auth_headers: Any, pin: str) -> None:
    response = client.post("/api/kids", json={"name": "Sam", "age": 9, "pin": pin}, headers=auth_headers())
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["details"][0]["loc"][-1] == "pin"


def test_create_kid_with_pin(client: Any, auth_headers: Any, db: Any) -> None:
    response = client.post("/api/kids", json={"name": "Sam", "age": 9, "pin": "1234"}, headers=auth_headers())

    assert response.status_code == 201
    kid = response.json()["kid"]
    assert kid["name"] == "Sam"
    assert kid["age"] == 9
    assert kid["balance"] == 0
    assert kid["hasPin"] is True
    assert "pin" not in kid and "pinHash" not in kid

    stored = db.get(Kid, kid["id"])
    assert stored.pin_hash != "1234"
    assert verify_pin("1234", stored.pin_hash)


def test_create_kid_rejects_out_of_range_age(client: Any, auth_headers: Any) -> None:
    response = client.post("/api/kids", json={"name": "Sam", "age": 30}, headers=auth_headers())
    assert response.status_code == 400


def test_list_shows_only_own_kids(client: Any, auth_headers: Any, add_user: Any, add_kid: Any) -> None:
    mine = add_kid(add_user("parent-1", "parent@example.com"), name="Mine")
    add_kid(add_user("parent-2", "other@example.com"), name="Theirs")

    response = client.get("/api/kids", headers=auth_headers("parent-1"))

    assert response.status_code == 200
    assert [kid["id"] for kid in response.json()["kids"]] == [mine.id]


def test_set_pin_for_own_kid(client: Any, auth_headers: Any, add_user: Any, add_kid: Any, db: Any) -> None:
    kid = add_kid(add_user(), pin=None)

    response = client.put(f"/api/kids/{kid.id}/pin", json={"pin": "9876"}, headers=auth_headers())

    assert response.status_code == 200
    assert response.json() == {"success": True}
    db.expire_all()
    assert verify_pin("9876", db.get(Kid, kid.id).pin_hash)


def test_set_pin_for_other_parents_kid_is_not_found(
    client: Any,
    auth_headers: Any,
    add_user: Any,
    add_kid: Any,
) -> None:
    add_user("parent-1", "parent@example.com")
    kid = add_kid(add_user("parent-2", "other@example.com"))

    response = client.put(f"/api/kids/{kid.id}/pin", json={"pin": "9876"}, headers=auth_headers("parent-1"))

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"
