import time
from contextvars import ContextVar

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from app.marbete.core.config import settings

# Accumulated cursor time for the current request; None outside a request.
_request_db_ms: ContextVar[float | None] = ContextVar("request_db_ms", default=None)


def start_db_timer() -> object:
    return _request_db_ms.set(0.0)


def stop_db_timer(token) -> None:
    _request_db_ms.reset(token)


def get_db_time_ms() -> float | None:
    return _request_db_ms.get()


connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.DATABASE_URL, echo=False, future=True, connect_args=connect_args)


@event.listens_for(engine, "before_cursor_execute")
def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    if _request_db_ms.get() is None:
        return
    conn.info["query_start_time"] = time.perf_counter()


@event.listens_for(engine, "after_cursor_execute")
def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    current = _request_db_ms.get()
    start = conn.info.pop("query_start_time", None)
    if current is None or start is None:
        return
    _request_db_ms.set(current + (time.perf_counter() - start) * 1000)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
