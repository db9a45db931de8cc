import logging
import os

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from tasktracker.config import settings

logger = logging.getLogger(__name__)

# Default to a local SQLite database if no DATABASE_URL is provided
BASE_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(BASE_DIR, ".."))
DEFAULT_DB_PATH = os.path.join(PROJECT_ROOT, "tasktracker.db")


def _build_engine() -> Engine:
    """Create the SQLAlchemy engine, preferring the configured DATABASE_URL."""
    database_url = settings.DATABASE_URL or f"sqlite:///{DEFAULT_DB_PATH}"

    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    logger.info("Using database %s", database_url.split("@")[-1])
    return create_engine(database_url, connect_args=connect_args)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):  # pragma: no cover - driver callback
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on."""
    module = type(dbapi_connection).__module__
    if not module.startswith("sqlite3"):
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = _build_engine()

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for the models
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit(db: Session) -> None:
    """Commit, rolling back and re-raising on storage failures."""
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Commit failed")
        raise
