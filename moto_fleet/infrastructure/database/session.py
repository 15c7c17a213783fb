"""Engine and session factory for the fleet database"""

from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from moto_fleet.config import settings


def build_engine(database_url: str) -> Engine:
    """
    Create an engine for Postgres (pooled) or SQLite (local runs and tests).

    SQLite connections are shared across FastAPI's worker threads, and it has
    no row locks, so slot safety there rests on the yard lock registry alone.
    """
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_recycle=3600,
    )


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """One session per request, closed when the response is sent"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
