"""
Database Connection
"""
import logging
from functools import lru_cache
from typing import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from bidhouse.core.config import get_settings

logger = logging.getLogger(__name__)

# PostgreSQL serialization_failure, deadlock_detected, lock_not_available
CONFLICT_PGCODES = {"40001", "40P01", "55P03"}


def create_db_engine(database_url: str) -> Engine:
    """
    Create an engine for the given URL

    PostgreSQL: pooled, READ COMMITTED, bids serialize on FOR UPDATE row locks.
    SQLite: every transaction starts with BEGIN IMMEDIATE so writers are
    serialized by the database file lock, and foreign keys are enforced.
    """
    settings = get_settings()

    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            echo=settings.DEBUG,
            connect_args={
                "check_same_thread": False,
                "timeout": settings.SQLITE_BUSY_TIMEOUT,
            },
        )

        @event.listens_for(engine, "connect")
        def _sqlite_on_connect(dbapi_connection, connection_record):
            # Let the begin hook below own transaction boundaries
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _sqlite_on_begin(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        isolation_level="READ COMMITTED",
        echo=settings.DEBUG,
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to an engine"""
    return sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


@lru_cache()
def get_engine() -> Engine:
    """Engine for the configured DATABASE_URL (created on first use)"""
    return create_db_engine(get_settings().DATABASE_URL)


@lru_cache()
def get_session_factory() -> sessionmaker:
    return make_session_factory(get_engine())


def init_db(engine: Engine = None):
    """Create database tables"""
    from bidhouse.models import Base

    engine = engine or get_engine()
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")


def get_db() -> Generator[Session, None, None]:
    """Get database session (dependency)"""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def check_database_health(engine: Engine = None) -> bool:
    """Check database connection"""
    engine = engine or get_engine()
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except DBAPIError as e:
        logger.error(f"Database health check failed: {e}")
        return False


def is_conflict_error(exc: BaseException) -> bool:
    """
    True when a failed write lost a race with another transaction

    Covers optimistic version mismatches, PostgreSQL serialization/deadlock
    failures and SQLite lock contention. Anything else is a store failure.
    """
    if isinstance(exc, StaleDataError):
        return True

    if isinstance(exc, DBAPIError):
        pgcode = getattr(exc.orig, "pgcode", None)
        if pgcode in CONFLICT_PGCODES:
            return True
        if "database is locked" in str(exc.orig):
            return True

    return False
