from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from dealcard.core.config import settings

logger = logging.getLogger("dealcard.api.rate_limit")


@dataclass(frozen=True)
class RateLimitRule:
    key_prefix: str
    limit: int
    window_seconds: int

    def key(self, ip: str) -> str:
        return f"rate:{self.key_prefix}:{ip}"


GLOBAL_RULE = RateLimitRule(
    key_prefix="global",
    limit=settings.rate_limit_global_requests,
    window_seconds=settings.rate_limit_global_window_seconds,
)
KID_PIN_RULE = RateLimitRule(
    key_prefix="kid_pin",
    limit=settings.rate_limit_kid_pin_attempts,
    window_seconds=settings.rate_limit_kid_pin_window_seconds,
)

# Extra budgets on top of the global one, keyed by (method, path).
ROUTE_RULES: dict[tuple[str, str], RateLimitRule] = {
    ("POST", "/api/kid-session"): KID_PIN_RULE,
}


def client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def consume(redis: Redis, rule: RateLimitRule, ip: str) -> bool:
    """Count one hit in the current fixed window; False once the limit is passed."""
    key = rule.key(ip)
    hits = int(await redis.incr(key))
    if hits == 1:
        await redis.expire(key, rule.window_seconds)
    return hits <= rule.limit


def _too_many_requests(rule: RateLimitRule) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"code": "RATE_LIMIT", "message": "Too many requests"},
        headers={"Retry-After": str(rule.window_seconds)},
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        redis: Redis | None = getattr(request.app.state, "redis", None)
        if redis is None:
            return await call_next(request)

        ip = client_ip(request)
        rules = [GLOBAL_RULE]
        route_rule = ROUTE_RULES.get((request.method.upper(), request.url.path))
        if route_rule is not None:
            rules.append(route_rule)

        try:
            for rule in rules:
                if not await consume(redis, rule, ip):
                    logger.warning("rate_limit.exceeded", extra={"route": request.url.path, "reason": rule.key_prefix})
                    return _too_many_requests(rule)
        except RedisError:
            # Fail open while Redis is unreachable.
            logger.warning("rate_limit.unavailable", extra={"route": request.url.path})

        return await call_next(request)
