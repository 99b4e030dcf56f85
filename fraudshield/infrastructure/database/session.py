"""Engine and session factory for the ledger store"""

from typing import Any, Dict, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session
from fraudshield.config import settings


def engine_options(database_url: str) -> Dict[str, Any]:
    """
    Connection settings per backend.

    PostgreSQL gets a bounded pool (20 connections at most, recycled hourly).
    SQLite is used for local runs and tests; its connections may be shared
    across the request threadpool.
    """
    if make_url(database_url).get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 10,
        "pool_recycle": 3600,
    }


engine = create_engine(settings.database_url, **engine_options(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """Request-scoped session; the services own commit and rollback"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
