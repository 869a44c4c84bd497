"""
Database connection management for LoanShare.

Handles:
- Connection pooling for serverless functions
- Environment-based configuration
- Connection lifecycle management
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool, QueuePool

# Load environment variables from .env file
load_dotenv()

# Import models to ensure they're registered with Base
from .models import Base

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///loanshare.db"


class DatabaseConfig:
    """Database configuration from environment variables."""

    def __init__(self):
        self.database_url = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)

        # Log masked URL for debugging (hide password)
        if "@" in self.database_url:
            logger.info(f"Database: Connecting to {self.database_url.split('@')[1]}")
        else:
            logger.info("Database: Connection configured")

        # Connection pooling settings
        self.pool_size = int(os.getenv("DB_POOL_SIZE", "5"))
        self.max_overflow = int(os.getenv("DB_MAX_OVERFLOW", "10"))
        self.pool_timeout = int(os.getenv("DB_POOL_TIMEOUT", "30"))
        self.pool_recycle = int(os.getenv("DB_POOL_RECYCLE", "3600"))  # 1 hour
        self.echo = os.getenv("SQL_ECHO", "false").lower() == "true"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


class DatabaseManager:
    """Singleton database manager for connection pooling."""

    _instance: Optional["DatabaseManager"] = None
    _engine: Optional[Engine] = None
    _session_factory: Optional[sessionmaker] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._engine is None:
            self._initialize_engine()

    def _initialize_engine(self):
        """Initialize SQLAlchemy engine with connection pooling."""
        config = DatabaseConfig()

        is_serverless = bool(os.getenv("VERCEL"))

        if config.is_sqlite:
            self._engine = create_engine(
                config.database_url,
                connect_args={"check_same_thread": False},
                echo=config.echo,
            )
            logger.info("Database: Using SQLite")
        elif is_serverless:
            # Serverless: Use NullPool to avoid connection buildup
            self._engine = create_engine(
                config.database_url,
                poolclass=NullPool,
                echo=config.echo,
            )
            logger.info("Database: Using NullPool (serverless mode)")
        else:
            self._engine = create_engine(
                config.database_url,
                pool_size=config.pool_size,
                max_overflow=config.max_overflow,
                pool_timeout=config.pool_timeout,
                pool_recycle=config.pool_recycle,
                poolclass=QueuePool,
                pool_pre_ping=True,
                echo=config.echo,
            )
            logger.info(f"Database: Using QueuePool (pool_size={config.pool_size}, max_overflow={config.max_overflow})")

        if config.is_sqlite:
            self._configure_sqlite_events()

        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

    def _configure_sqlite_events(self):
        """SQLite ignores foreign keys (and ON DELETE CASCADE) unless asked."""

        @event.listens_for(self._engine, "connect")
        def enable_foreign_keys(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    @property
    def session_factory(self) -> sessionmaker:
        return self._session_factory

    def create_all(self):
        """Create all tables in the database."""
        Base.metadata.create_all(self._engine)
        logger.info("Database: All tables created")

    def dispose(self):
        """Dispose of the connection pool."""
        if self._engine:
            self._engine.dispose()
            logger.info("Database: Connection pool disposed")


# Convenience functions

def get_db_manager() -> DatabaseManager:
    """Get or create the database manager singleton."""
    return DatabaseManager()


def get_session_factory() -> sessionmaker:
    """
    FastAPI dependency returning the session factory used by the store.

    Overridden in tests to point at an in-memory database.
    """
    return get_db_manager().session_factory


def init_db():
    """
    Initialize database schema.

    Used by FastAPI lifespan; safe to call repeatedly.
    """
    get_db_manager().create_all()


def check_connection(factory: Optional[sessionmaker] = None) -> bool:
    """
    Check if database connection is healthy.

    Returns:
        True if connection successful, False otherwise
    """
    factory = factory or get_session_factory()
    session = factory()
    try:
        session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database connection check failed: {e}")
        return False
    finally:
        session.close()
