# Copyright (c) US Inc. All rights reserved.
"""Database engine and session lifecycle"""

import os
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings

Base = declarative_base()


class Database:
    """Owns one engine and its session factory.

    Passed explicitly to whatever needs sessions; the application opens it on
    startup and disposes it on shutdown.
    """

    def __init__(self, url: str, **engine_kwargs: Any):
        self.url = url
        kwargs: Dict[str, Any] = {"pool_pre_ping": True}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
                # one shared connection, otherwise every session sees an empty database
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_recycle"] = 300
        kwargs.update(engine_kwargs)
        self.engine = create_engine(url, **kwargs)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def init(self) -> None:
        """Create tables for every registered model."""
        from ..models import db_models  # noqa: F401

        if self.url.startswith("sqlite:///"):
            db_dir = os.path.dirname(self.url[len("sqlite:///"):])
            if db_dir:
                os.makedirs(db_dir, exist_ok=True)
        Base.metadata.create_all(bind=self.engine)

    def new_session(self) -> Session:
        return self._session_factory()

    def dispose(self) -> None:
        self.engine.dispose()


_database: Optional[Database] = None


def get_database() -> Database:
    """Return the application database, creating it from settings on first use."""
    global _database
    if _database is None:
        _database = Database(settings.DATABASE_URL)
    return _database


def set_database(database: Optional[Database]) -> None:
    global _database
    _database = database


def get_db() -> Iterator[Session]:
    db = get_database().new_session()
    try:
        yield db
    finally:
        db.close()
