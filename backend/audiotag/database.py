import logging
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import sessionmaker, declarative_base

from audiotag.config import get_settings
from audiotag.errors import DatabaseUnavailable

logger = logging.getLogger(__name__)

Base = declarative_base()

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def get_engine() -> Engine:
    """Create the engine on first use; an unset DATABASE_URL is reported, not fatal."""
    global _engine, _SessionLocal
    if _engine is None:
        db_url = get_settings().database_url
        if not db_url:
            raise DatabaseUnavailable("DATABASE_URL not set")
        try:
            _engine = create_engine(db_url, pool_pre_ping=True)
        except (ArgumentError, ImportError) as e:
            logger.error("Could not create database engine: %s", e)
            raise DatabaseUnavailable(f"Database not available: {e}") from e
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)
    return _engine


def get_sessionmaker() -> sessionmaker:
    get_engine()
    return _SessionLocal


def get_db():
    db = get_sessionmaker()()
    try:
        yield db
    finally:
        db.close()
