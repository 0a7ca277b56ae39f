"""Boot-time configuration checks run from the application lifespan."""

from __future__ import annotations

import logging

from dealcard.core.config import Settings, settings

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDER_KEYS = frozenset({"noop", "openai"})
MIN_SECRET_LENGTH = 32


def llm_provider_problems(config: Settings = settings) -> list[str]:
    provider = (config.llm_provider_key or "noop").strip().lower()
    if provider not in SUPPORTED_PROVIDER_KEYS:
        return [f"Unsupported LLM provider '{provider}'."]
    if provider != "openai":
        return []
    missing = [name for name, value in (("LLM_API_KEY", config.llm_api_key), ("LLM_MODEL", config.llm_model)) if not value]
    return [f"LLM_PROVIDER_KEY=openai configured but {name} is missing." for name in missing]


def validate_llm_provider_config_on_boot(config: Settings = settings) -> None:
    problems = llm_provider_problems(config)
    if not problems:
        logger.info("llm.config.valid", extra={"provider": config.llm_provider_key})
        return
    for problem in problems:
        logger.warning(problem)
    logger.warning("llm.config.disabled", extra={"reason": "Chat answers 503 until the provider is configured."})


def _secret_problems(config: Settings) -> list[str]:
    problems: list[str] = []
    for name, secret in (
        ("DEALCARD_KID_SESSION_SECRET", config.kid_session_secret),
        ("DEALCARD_AUTH_JWT_SECRET", config.auth_jwt_secret),
    ):
        if len(secret) < MIN_SECRET_LENGTH:
            problems.append(f"{name} must be at least {MIN_SECRET_LENGTH} characters.")
    return problems


def production_security_problems(config: Settings = settings) -> list[str]:
    origins = [item.strip() for item in (config.cors_allowed_origins or "").split(",") if item.strip()]
    problems: list[str] = []
    if not origins:
        problems.append("DEALCARD_CORS_ALLOWED_ORIGINS must be set.")
    if "*" in origins:
        problems.append("Wildcard CORS origin is not allowed.")
    if any("localhost" in origin or "127.0.0.1" in origin for origin in origins):
        problems.append("localhost/127.0.0.1 CORS origins are not allowed.")
    if not config.auth_cookie_secure:
        problems.append("DEALCARD_AUTH_COOKIE_SECURE must be true.")
    return problems + _secret_problems(config)


def validate_runtime_security_on_boot(config: Settings = settings) -> None:
    env = (config.app_env or "development").strip().lower()
    if env == "production":
        problems = production_security_problems(config)
        if problems:
            raise RuntimeError("Refusing to start in production: " + " ".join(problems))
        return
    for problem in _secret_problems(config):
        logger.warning(problem)
