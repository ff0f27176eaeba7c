"""
Database configuration and session factory
"""
from typing import Any, Dict, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from transit_booking.config import settings

Base = declarative_base()


def _connect_args(database_url: str, timeout: float) -> Dict[str, Any]:
    """Bound how long a connection attempt may take"""
    if database_url.startswith("sqlite"):
        return {"timeout": timeout, "check_same_thread": False}
    if database_url.startswith("postgresql"):
        return {"connect_timeout": int(max(timeout, 1))}
    return {}


def build_engine(database_url: Optional[str] = None, timeout: Optional[float] = None, **kwargs: Any) -> Engine:
    database_url = database_url or settings.DATABASE_URL
    timeout = settings.STORAGE_TIMEOUT_SECONDS if timeout is None else timeout
    options: Dict[str, Any] = {"pool_pre_ping": True, "connect_args": _connect_args(database_url, timeout)}
    if not database_url.startswith("sqlite"):
        options["pool_timeout"] = timeout
    options.update(kwargs)
    return create_engine(database_url, **options)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create the tables used by the relational backend"""
    # Registers the ORM models on Base.metadata
    from transit_booking import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
