# app/core/database.py
from typing import Callable, Generator, TypeVar
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.core.errors import StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _build_engine(url: str):
    if url.startswith("sqlite"):
        # In-memory databases must share one connection across threads
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_size=10,
        max_overflow=20,
        connect_args={"options": f"-c statement_timeout={settings.db_statement_timeout_ms}"},
    )


engine = _build_engine(settings.database_url)

if engine.dialect.name == "sqlite":

    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def run_in_transaction(
    db: Session, work: Callable[[], T], max_retries: int = None
) -> T:
    """
    Run ``work`` and commit it as one unit.

    Any exception rolls the whole unit back. Transient storage failures
    (OperationalError) replay ``work`` from the start; after the retry budget
    is spent a StorageError is raised. Everything else propagates unchanged.
    """
    if max_retries is None:
        max_retries = settings.transaction_max_retries

    attempt = 0
    while True:
        try:
            result = work()
            db.commit()
            return result
        except OperationalError as e:
            db.rollback()
            attempt += 1
            if attempt > max_retries:
                logger.error(f"Transaction failed after {attempt} attempts: {e}")
                raise StorageError("The data store is temporarily unavailable") from e
            logger.warning(f"Transient storage error, retrying ({attempt}/{max_retries}): {e}")
        except Exception:
            db.rollback()
            raise
