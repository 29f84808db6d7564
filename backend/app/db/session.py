"""Database engine and session management"""
import logging
from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.models.base import Base

logger = logging.getLogger(__name__)


class Database:
    """Owns the engine and session factory for one process.

    Built once in the application lifespan and closed with ``dispose()`` on
    shutdown; request handlers reach it through ``get_db``.
    """

    def __init__(self, url: str):
        self.url = url
        if url.startswith("sqlite"):
            kwargs = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
                kwargs["poolclass"] = StaticPool
            self.engine = create_engine(url, **kwargs)
        else:
            self.engine = create_engine(
                url,
                pool_pre_ping=True,
                pool_recycle=3600
            )
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def init_db(self):
        """Initialize database (create all tables)"""
        # Import models so every table is registered on Base.metadata
        import app.models  # noqa: F401
        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        return self.session_factory()

    def dispose(self):
        self.engine.dispose()
        logger.info("Database engine disposed")


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency for FastAPI endpoints"""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
