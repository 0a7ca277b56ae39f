from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis

from dealcard import models  # noqa: F401
from dealcard.api.routes.chat import router as chat_router
from dealcard.api.routes.kid_session import router as kid_session_router
from dealcard.api.routes.kids import router as kids_router
from dealcard.api.routes.rewards import router as rewards_router
from dealcard.api.routes.transactions import router as transactions_router
from dealcard.core.config import settings
from dealcard.core.exceptions import register_exception_handlers
from dealcard.core.logging import setup_json_logging
from dealcard.core.rate_limit import RateLimitMiddleware
from dealcard.core.request_logging import RequestLoggingMiddleware
from dealcard.db.session import build_session_factory, create_db_engine
from dealcard.services.llm_provider import get_llm_provider
from dealcard.services.providers.config_validation import (
    validate_llm_provider_config_on_boot,
    validate_runtime_security_on_boot,
)

setup_json_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    validate_llm_provider_config_on_boot()
    validate_runtime_security_on_boot()
    engine = create_db_engine(settings.database_url)
    app.state.session_factory = build_session_factory(engine)
    redis = Redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
    app.state.redis = redis
    llm = get_llm_provider(None)
    app.state.llm = llm
    try:
        yield
    finally:
        llm.close()
        await redis.aclose()
        engine.dispose()


app = FastAPI(title="dealcard api", lifespan=lifespan)
register_exception_handlers(app)
allowed_origins = [item.strip() for item in settings.cors_allowed_origins.split(",") if item.strip()]
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-Id"],
)
app.include_router(kid_session_router)
app.include_router(kids_router)
app.include_router(transactions_router)
app.include_router(chat_router)
app.include_router(rewards_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "env": settings.app_env}
