from __future__ import annotations

import os

os.environ.setdefault("DEALCARD_DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("DEALCARD_REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("DEALCARD_AUTH_JWT_SECRET", "test-identity-secret-0123456789abcdef")
os.environ.setdefault("DEALCARD_KID_SESSION_SECRET", "test-kid-session-secret-0123456789abcdef")
os.environ.setdefault("DEALCARD_APP_ENV", "test")
os.environ.setdefault("DEALCARD_AUTH_COOKIE_SECURE", "false")

from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from dealcard.core.config import settings
from dealcard.core.security import hash_pin
from dealcard.db.base import Base
from dealcard.db.session import build_session_factory
from dealcard.main import app
from dealcard.models import Kid, User
from dealcard.services.providers.noop import NoopLLMProvider


@pytest.fixture()
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return build_session_factory(engine)


@pytest.fixture()
def db(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory: sessionmaker[Session]) -> Iterator[TestClient]:
    # The lifespan is not entered, so rate limiting has no Redis and
    # chat gets the noop provider.
    app.state.session_factory = session_factory
    app.state.llm = NoopLLMProvider()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def add_user(db: Session) -> Callable[..., User]:
    def _add(subject: str = "parent-1", email: str = "parent@example.com") -> User:
        user = User(auth_subject=subject, email=email, name="Parent")
        db.add(user)
        db.commit()
        return user

    return _add


@pytest.fixture()
def add_kid(db: Session) -> Callable[..., Kid]:
    def _add(
        user: User,
        *,
        name: str = "Sam",
        age: int | None = 9,
        pin: str | None = "1234",
        balance: Decimal = Decimal("0"),
    ) -> Kid:
        kid = Kid(
            user_id=user.id,
            name=name,
            age=age,
            pin_hash=hash_pin(pin) if pin else None,
            balance=balance,
        )
        db.add(kid)
        db.commit()
        return kid

    return _add


@pytest.fixture()
def auth_headers() -> Callable[..., dict[str, str]]:
    def _headers(subject: str = "parent-1", email: str = "parent@example.com") -> dict[str, str]:
        token = jwt.encode(
            {
                "sub": subject,
                "email": email,
                "aud": settings.auth_jwt_audience,
                "exp": datetime.now(UTC) + timedelta(hours=1),
                "user_metadata": {"name": "Parent"},
            },
            settings.auth_jwt_secret,
            algorithm="HS256",
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
