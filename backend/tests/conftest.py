from __future__ import annotations

import os
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("LEARNPATH_DATABASE_URL", "sqlite://")
os.environ.setdefault("ENV_FILE", "/nonexistent/.env")

from app.config import Settings  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db import models  # noqa: E402,F401


@pytest.fixture
def settings() -> Settings:
    return Settings(
        llm_api_key="test-key",
        liveness_retries=2,
        liveness_backoff_seconds=0,
        validation_concurrency=0,
    )


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = factory()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
