from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from habit_auth.core.config import get_settings


def make_engine(database_url: str, echo: bool = False) -> Engine:
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, pool_pre_ping=True, future=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    in_memory = ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///")
    if in_memory:
        kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, echo=echo, future=True, **kwargs)

    # Every session on an in-memory engine shares the one StaticPool connection,
    # so an explicit BEGIN from a second open session would nest. Nothing can run
    # concurrently against it anyway; leave pysqlite's own transaction handling.
    if in_memory:
        return engine

    # pysqlite defers BEGIN until the first write, so read-then-write sequences
    # would interleave. Take the write lock up front instead.
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def make_sessionmaker(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)


settings = get_settings()
engine = make_engine(settings.database_url, echo=settings.db_echo)
SessionLocal = make_sessionmaker(engine)


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """Run a unit of work as one transaction: commit on success, roll back on any error."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
