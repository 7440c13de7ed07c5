from __future__ import annotations

from collections.abc import Callable

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

SessionFactory = Callable[[], Session]


def create_engine_from_url(database_url: str) -> Engine:
    return create_engine(database_url, future=True, pool_pre_ping=True)


def create_sqlalchemy_session_factory(bind: Engine | str) -> SessionFactory:
    """Build a factory producing SQLAlchemy sessions.

    ``bind`` is either an engine (tests share one in-memory SQLite engine)
    or a database URL. Sessions do not expire on commit so that repositories
    can map rows to domain objects after committing.
    """

    engine = create_engine_from_url(bind) if isinstance(bind, str) else bind
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, class_=Session)

    def _factory() -> Session:
        return SessionLocal()

    return _factory
