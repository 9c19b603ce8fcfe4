from __future__ import annotations

import logging
import os

from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from shiftboard.errors import ConflictError, StorageError

logger = logging.getLogger(__name__)


def get_database_url() -> str:
    raw_url = os.getenv("DATABASE_URL", "sqlite:///./shiftboard.db")
    if raw_url.startswith("postgres://"):
        return raw_url.replace("postgres://", "postgresql+psycopg://", 1)
    if raw_url.startswith("postgresql://") and "+" not in raw_url.split("://", 1)[0]:
        return raw_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return raw_url


def build_engine(url: str) -> Engine:
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    built = create_engine(url, connect_args=connect_args, pool_pre_ping=True)
    if url.startswith("sqlite"):
        # SQLite leaves FK enforcement off per connection.
        @event.listens_for(built, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return built


DATABASE_URL = get_database_url()
engine = build_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
Base = declarative_base()


def configure_engine(url: str | None = None) -> Engine:
    """Rebind the module-level engine and session factory, e.g. to a per-test SQLite file."""
    global DATABASE_URL, engine, SessionLocal
    engine.dispose()
    DATABASE_URL = url or get_database_url()
    engine = build_engine(DATABASE_URL)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
    return engine


def init_db() -> None:
    from shiftboard import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit(db: Session, action: str) -> None:
    """Commit the unit of work or roll it back whole; nothing partial survives a failure."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Integrity conflict while trying to %s: %s", action, exc.orig)
        raise ConflictError(f"Could not {action}: the record was changed concurrently, try again") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Storage failure while trying to %s", action)
        raise StorageError(f"Could not {action}") from exc
