from __future__ import annotations

import json
import logging
from typing import Any

import pytest
from sqlalchemy.exc import OperationalError

from dealcard.core.logging import JsonFormatter
from dealcard.services import ledger


def test_ledger_failure_is_a_generic_500(
    client: Any,
    auth_headers: Any,
    add_user: Any,
    add_kid: Any,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    kid = add_kid(add_user())

    def _boom(*_args: Any, **_kwargs: Any) -> None:
        raise OperationalError("UPDATE kids", {}, Exception("database is locked"))

    monkeypatch.setattr(ledger, "_increment_balance", _boom)

    response = client.post(
        "/api/transactions",
        json={"kidId": kid.id, "type": "CHORE", "amount": 3, "description": "Laundry"},
        headers=auth_headers(),
    )

    assert response.status_code == 500
    assert response.json() == {"code": "INTERNAL_ERROR", "message": "Internal server error"}


def test_json_formatter_keeps_context_fields() -> None:
    record = logging.LogRecord("dealcard.test", logging.INFO, __file__, 1, "ledger.transaction.recorded", None, None)
    record.kid_id = "kid-1"
    record.transaction_type = "CHORE"
    record.unrelated = "dropped"

    line = json.loads(JsonFormatter().format(record))

    assert line["message"] == "ledger.transaction.recorded"
    assert line["service"] == "dealcard-api"
    assert line["kid_id"] == "kid-1"
    assert line["transaction_type"] == "CHORE"
    assert "unrelated" not in line
    assert "request_id" not in line
