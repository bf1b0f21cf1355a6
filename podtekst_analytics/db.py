import logging
from contextlib import contextmanager
from typing import Generator, Optional
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError

from podtekst_analytics.models.db import Base
from podtekst_analytics.db_config import DatabaseManager

logger = logging.getLogger(__name__)

class Database:
    """Engine and session manager for the analysis store"""

    def __init__(self, connection_string: Optional[str] = None):
        self._engine = None
        self._SessionLocal: Optional[sessionmaker[Session]] = None
        self._connection_string = connection_string

    def _get_connection_string(self) -> str:
        if self._connection_string:
            return self._connection_string
        try:
            return DatabaseManager.initialize_from_env()
        except ValueError as e:
            logger.error(f"Failed to initialize database connection string: {e}")
            raise

    def init(self) -> None:
        """Initialize database connection and create tables."""
        if self._engine:
            logger.info("Database already initialized.")
            return
        try:
            self._engine = create_engine(self._get_connection_string())
            Base.metadata.create_all(self._engine, checkfirst=True)
            self._SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
            logger.info("Database initialized successfully and tables ensured.")
        except SQLAlchemyError as e:
            logger.error(f"Database initialization failed: {e}")
            raise

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        if not self._SessionLocal:
            logger.error("Database not initialized. Call init() first.")
            raise RuntimeError("Database not initialized. Call init() first.")

        session = self._SessionLocal()
        try:
            yield session
            session.commit()
            logger.debug("DB Session committed.")
        except Exception as e:
            logger.error(f"DB Session error, rolling back: {e}")
            session.rollback()
            raise
        finally:
            session.close()
            logger.debug("DB Session closed.")

    def get_session(self) -> Session:
        if not self._SessionLocal:
            logger.error("Database not initialized. Call init() first.")
            raise RuntimeError("Database not initialized. Call init() first.")
        return self._SessionLocal()

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    def dispose(self) -> None:
        if self._engine:
            self._engine.dispose()
            self._engine = None
            self._SessionLocal = None
            logger.info("Database engine disposed.")

# Global database instance
db = Database()
