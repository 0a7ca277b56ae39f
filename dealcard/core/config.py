from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DEALCARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    database_url: str
    redis_url: str

    # Parent identity tokens and kid-mode cookies
    auth_jwt_secret: str
    auth_jwt_audience: str = "authenticated"
    kid_session_secret: str
    auth_cookie_secure: bool = True
    auth_cookie_domain: str | None = None

    # HTTP surface
    app_env: str = "development"
    log_level: str = "INFO"
    cors_allowed_origins: str = "http://localhost:3000"
    rate_limit_global_requests: int = Field(default=100, ge=1)
    rate_limit_global_window_seconds: int = Field(default=60, ge=1)
    rate_limit_kid_pin_attempts: int = Field(default=10, ge=1)
    rate_limit_kid_pin_window_seconds: int = Field(default=300, ge=1)

    # Language model; the bare LLM_* names are honoured for shared deployments.
    llm_provider_key: str = Field(
        default="noop",
        validation_alias=AliasChoices("LLM_PROVIDER_KEY", "DEALCARD_LLM_PROVIDER_KEY"),
    )
    llm_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("LLM_API_KEY", "DEALCARD_LLM_API_KEY"),
    )
    llm_model: str | None = Field(
        default=None,
        validation_alias=AliasChoices("LLM_MODEL", "DEALCARD_LLM_MODEL"),
    )
    llm_timeout_seconds: float = Field(default=30.0, gt=0)


settings = Settings()
