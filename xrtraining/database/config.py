"""
Database configuration and session management

One engine per process, one Session per request (see api/deps.py).
SQLite is supported for development and tests; foreign keys are switched on
for every SQLite connection so ON DELETE CASCADE behaves as on PostgreSQL.
"""
import logging
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ..core.config import get_settings
from .base import Base

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def configure_engine(engine: Engine) -> Engine:
    """Apply dialect-specific connection hooks to an engine"""
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


class DatabaseConfig:
    """Engine + session factory for one database URL"""

    def __init__(self, database_url: Optional[str] = None, echo: Optional[bool] = None):
        settings = get_settings()
        self.database_url = database_url or settings.database_url
        self.echo = settings.db_echo if echo is None else echo

        connect_args = {}
        if self.database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False

        self.engine = configure_engine(
            create_engine(self.database_url, echo=self.echo, connect_args=connect_args, future=True)
        )
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

        logger.info(
            "Database configured",
            extra={"dialect": self.engine.dialect.name, "echo": self.echo},
        )

    def create_all(self) -> None:
        # Import models so every table is registered on Base.metadata
        from . import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        from . import models  # noqa: F401

        Base.metadata.drop_all(bind=self.engine)

    def get_session(self) -> Session:
        return self.SessionLocal()


_db_config: Optional[DatabaseConfig] = None


def init_database(database_url: Optional[str] = None, create_tables: bool = False) -> DatabaseConfig:
    """Initialise the process-wide database configuration"""
    global _db_config
    _db_config = DatabaseConfig(database_url)
    if create_tables:
        _db_config.create_all()
    return _db_config


def get_db_config() -> DatabaseConfig:
    global _db_config
    if _db_config is None:
        _db_config = DatabaseConfig()
    return _db_config


def get_db_session() -> Generator[Session, None, None]:
    """Yield a session and always close it"""
    session = get_db_config().get_session()
    try:
        yield session
    finally:
        session.close()
