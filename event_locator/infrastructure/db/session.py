"""
Database engine and session management (SQLAlchemy)
"""
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from event_locator.config import Settings


class Base(DeclarativeBase):
    """
    SQLAlchemy declarative base for all ORM models
    """
    pass


def build_engine(settings: Settings) -> Engine:
    """Engine for the configured DATABASE_URL (one per process, owned by the container)."""
    return create_engine(settings.get_sqlalchemy_url(), pool_pre_ping=True)


def build_session_factory(engine: Engine) -> sessionmaker:
    # expire_on_commit=False: services hand committed rows to the pipeline
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def check_db_connection(engine: Engine) -> None:
    """
    Readiness check - round trip to the database

    Raises:
        sqlalchemy.exc.OperationalError: if the database is unavailable
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
