import logging
import os
import time
from contextlib import contextmanager
from typing import Any, Optional, Union

from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import DATABASE_URL
from .errors import ConflictError, TransientStoreError

logger = logging.getLogger(__name__)

# Get environment-specific pool settings
POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))
POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "300"))
STATEMENT_TIMEOUT_MS = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "15000"))
ENABLE_QUERY_LOGGING = os.getenv("DB_LOG_SLOW_QUERIES", "true").lower() == "true"
SLOW_QUERY_THRESHOLD = float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0"))

IS_SQLITE = DATABASE_URL.startswith("sqlite")


def _engine_options(url: str) -> dict:
    """Pool and timeout options for the configured backend."""
    if url.startswith("sqlite"):
        # SQLite uses its own pool class; `timeout` bounds the wait on a locked file
        return {
            "connect_args": {"check_same_thread": False, "timeout": POOL_TIMEOUT},
        }

    options = {
        "pool_pre_ping": True,  # Test connections before using
        "pool_recycle": POOL_RECYCLE,
        "pool_size": POOL_SIZE,
        "max_overflow": MAX_OVERFLOW,
        "pool_timeout": POOL_TIMEOUT,  # Connection acquisition timeout
    }
    if url.startswith("postgresql"):
        options["connect_args"] = {"options": f"-c statement_timeout={STATEMENT_TIMEOUT_MS}"}
    elif url.startswith("mysql"):
        options["connect_args"] = {"read_timeout": max(1, STATEMENT_TIMEOUT_MS // 1000)}
    return options


try:
    engine = create_engine(DATABASE_URL, echo=False, **_engine_options(DATABASE_URL))
    logger.info("✅ Database engine created successfully")
    if not IS_SQLITE:
        logger.info(
            f"📊 Connection pool: size={POOL_SIZE}, max_overflow={MAX_OVERFLOW}, timeout={POOL_TIMEOUT}s"
        )
except Exception as e:
    logger.error(f"❌ Failed to create database engine: {e}")
    raise


def install_query_logging(target_engine) -> None:
    """Attach slow query logging to an engine."""

    @event.listens_for(target_engine, "before_cursor_execute")
    def before_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())

    @event.listens_for(target_engine, "after_cursor_execute")
    def after_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        total = time.time() - conn.info["query_start_time"].pop(-1)
        if total > SLOW_QUERY_THRESHOLD:
            logger.warning(f"🐌 Slow query ({total:.2f}s): {statement[:200]}...")


if ENABLE_QUERY_LOGGING:
    install_query_logging(engine)
    logger.info(f"📊 Slow query logging enabled (threshold: {SLOW_QUERY_THRESHOLD}s)")

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session):
    """
    Run a unit of work: commit on success, roll back on any error.

    Integrity violations surface as ConflictError and other driver failures
    as TransientStoreError. Domain errors raised inside the block propagate
    unchanged after the rollback.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"⚠️ Integrity violation, transaction rolled back: {e.orig}")
        raise ConflictError("Record conflicts with existing data") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Database error, transaction rolled back: {e}")
        raise TransientStoreError() from e
    except BaseException:
        db.rollback()
        raise


def execute(db: Session, query: str, params: Optional[dict] = None) -> Union[list[dict[str, Any]], int]:
    """
    Run a raw parameterized statement.

    Returns the rows as dicts for queries, otherwise the id of the inserted
    row when the driver reports one, else the number of affected rows.
    """
    try:
        result = db.execute(text(query), params or {})
    except SQLAlchemyError as e:
        logger.error(f"❌ Query failed: {e}")
        raise TransientStoreError() from e

    if result.returns_rows:
        return [dict(row._mapping) for row in result]

    if query.lstrip().upper().startswith("INSERT"):
        last_id = getattr(result, "lastrowid", None)
        if last_id:
            return last_id
    return result.rowcount
