"""Database configuration, session management and the unit-of-work helper."""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import BigInteger, Integer, create_engine, event
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .core.config import settings
from .exceptions import ConflictError, UnavailableError

logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url

# 64-bit ids on PostgreSQL; SQLite only autoincrements INTEGER PRIMARY KEY.
BigIntId = BigInteger().with_variant(Integer, "sqlite")


def is_sqlite() -> bool:
    return DATABASE_URL.startswith("sqlite")


if is_sqlite():
    _sqlite_kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, otherwise every checkout sees an empty database.
        _sqlite_kwargs["poolclass"] = StaticPool
    engine = create_engine(DATABASE_URL, **_sqlite_kwargs)

    # SQLite defaults foreign_keys to OFF.
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
else:
    engine = create_engine(
        DATABASE_URL,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
        pool_pre_ping=True,
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db() -> None:
    """Create all tables that do not exist yet."""
    from . import models  # noqa: F401  (registers mappers on Base.metadata)

    Base.metadata.create_all(bind=engine)


def get_db():
    """FastAPI dependency yielding a session.

    Rolls back on unhandled exceptions so the connection goes back to the
    pool in a clean state.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def transaction(db: Session, conflict_message: str = "Resource already exists") -> Iterator[Session]:
    """Run a block as one all-or-nothing unit and commit it.

    Constraint violations become ``ConflictError`` and transport failures
    become ``UnavailableError``; the session is rolled back in every
    failure case so prior state is left untouched.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.info("Integrity violation: %s", e.orig)
        raise ConflictError(conflict_message) from e
    except OperationalError as e:
        db.rollback()
        logger.warning("Database unavailable: %s", e.orig)
        raise UnavailableError("Database unavailable", e) from e
    except Exception:
        db.rollback()
        raise
