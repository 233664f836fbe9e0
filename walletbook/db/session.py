from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from walletbook.core.config import settings


def build_engine(url: str | None = None) -> Engine:
    url = url or settings.database_url
    kwargs: dict = {"echo": settings.database_echo, "future": True}

    if url.startswith("sqlite"):
        # Request handlers run in a threadpool; SQLite must allow cross-thread use.
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # Keep one connection so every session sees the same in-memory database.
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True

    return create_engine(url, **kwargs)


engine = build_engine()

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
