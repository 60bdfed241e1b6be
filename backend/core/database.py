from __future__ import annotations

import time
from typing import Iterable

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine import make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from core.config import settings


class DatabaseUnavailableError(RuntimeError):
    """Raised when the database is temporarily unreachable (transient connectivity failure)."""


_RETRY_DELAYS_SECONDS: list[float] = [0.2, 0.5, 1.0]


def _iter_exception_messages(exc: BaseException) -> Iterable[str]:
    seen: set[int] = set()
    cur: BaseException | None = exc
    while cur is not None and id(cur) not in seen:
        seen.add(id(cur))
        msg = str(cur)
        if msg:
            yield msg
        cur = getattr(cur, "__cause__", None) or getattr(cur, "__context__", None)


# Lower-cased message fragments that mean "try again", never "bad SQL".
_TRANSIENT_MARKERS: tuple[str, ...] = (
    # DNS
    "getaddrinfo failed",
    "could not translate host name",
    "name or service not known",
    # refused / reset / dropped
    "connection refused",
    "actively refused",
    "connection reset",
    "server closed the connection unexpectedly",
    # timeouts
    "timeout",
    "timed out",
    # SQLite writer contention
    "database is locked",
)


def is_transient_db_connectivity_error(exc: BaseException) -> bool:
    """True for connectivity or lock-contention failures anywhere in the exception chain.

    Constraint, validation and SQL errors are not transient.
    """
    joined = "\n".join(m.lower() for m in _iter_exception_messages(exc))
    return any(marker in joined for marker in _TRANSIENT_MARKERS)


def normalize_database_url(url: str) -> str:
    url = url.strip()

    # Normalize common Postgres URLs to SQLAlchemy's psycopg2 dialect.
    if url.startswith("postgresql://"):
        url = "postgresql+psycopg2://" + url.removeprefix("postgresql://")
    elif url.startswith("postgres://"):
        url = "postgresql+psycopg2://" + url.removeprefix("postgres://")
    elif url.startswith("postgresql+psycopg://"):
        url = "postgresql+psycopg2://" + url.removeprefix("postgresql+psycopg://")
    return url


def get_engine(url: str | None = None) -> Engine:
    url = normalize_database_url(url or settings.database_url)

    connect_args: dict[str, object] = {}
    backend = make_url(url).get_backend_name()
    if backend == "sqlite":
        # FastAPI runs sync endpoints in a threadpool.
        connect_args["check_same_thread"] = False
    elif backend == "postgresql":
        # connect_timeout keeps outages from hanging requests (used by retries and /health).
        connect_args["connect_timeout"] = 3

    # pool_pre_ping helps with stale pooled connections.
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


ENGINE = get_engine()
SessionLocal = sessionmaker(bind=ENGINE, autoflush=False, autocommit=False, expire_on_commit=False)


def _open_session() -> Session:
    """A session that has answered `SELECT 1`, retrying transient failures."""
    last_exc: OperationalError | None = None
    for delay in [*_RETRY_DELAYS_SECONDS, None]:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
            return db
        except OperationalError as exc:
            db.close()
            last_exc = exc
            if delay is None or not is_transient_db_connectivity_error(exc):
                break
            time.sleep(delay)

    raise DatabaseUnavailableError("Database temporarily unavailable") from last_exc


def get_db():
    db = _open_session()
    # Errors raised by the endpoint (409/422/...) propagate untouched.
    try:
        yield db
    finally:
        db.close()
