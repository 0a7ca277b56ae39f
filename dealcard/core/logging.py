from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from dealcard.core.config import settings

# Attributes passed through ``extra=`` that end up in the JSON line.
CONTEXT_FIELDS: tuple[str, ...] = (
    "request_id",
    "route",
    "method",
    "status_code",
    "execution_time_ms",
    "user_id",
    "kid_id",
    "reward_id",
    "claim_id",
    "transaction_id",
    "transaction_type",
    "amount",
    "chat_session_id",
    "chat_mode",
    "provider",
    "reason",
)


class JsonFormatter(logging.Formatter):
    service_name = "dealcard-api"

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "environment": settings.app_env,
        }
        payload.update(
            {name: value for name in CONTEXT_FIELDS if (value := getattr(record, name, None)) is not None},
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


def setup_json_logging(level: str | None = None) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel((level or settings.log_level).upper())

    # Request lines come from RequestLoggingMiddleware instead.
    logging.getLogger("uvicorn.access").disabled = True
