"""
bot/database/database_service.py
Database engine lifecycle, schema creation and connection statistics
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from ..services.logging_service import LogLevel
from ..utils.config import Config
from .models.sqlalchemy_models import Base

logger = logging.getLogger(__name__)


class DatabaseService:
    """Owns the async engine; every query class borrows connections from it"""

    def __init__(self, config: Config):
        self.config = config
        self.engine: Optional[AsyncEngine] = None
        self.embed_logger = None
        self.connection_stats = {
            "connections_created": 0,
            "connections_failed": 0,
            "queries_executed": 0,
            "queries_failed": 0,
            "startup_time": None,
        }
        self.url = make_url(config.database_url)

    @property
    def dialect(self) -> str:
        return self.url.get_backend_name()

    def set_logger(self, embed_logger):
        """Set the embed logger for database operations"""
        self.embed_logger = embed_logger

    def _engine_kwargs(self) -> dict:
        if self.dialect != "sqlite":
            return {"pool_pre_ping": True, "pool_size": 5, "max_overflow": 10}
        kwargs = {"connect_args": {"timeout": 30}}
        if not self.url.database or self.url.database == ":memory:":
            # one shared connection, otherwise each checkout sees an empty database
            kwargs["poolclass"] = StaticPool
        return kwargs

    def _ensure_sqlite_dir(self):
        if self.dialect == "sqlite" and self.url.database and self.url.database != ":memory:":
            Path(self.url.database).parent.mkdir(parents=True, exist_ok=True)

    async def initialize(self) -> AsyncEngine:
        """Create the engine and any missing tables"""
        start_time = datetime.utcnow()
        self.connection_stats["startup_time"] = start_time
        logger.info(f"Initializing database service ({self.dialect})...")

        try:
            self._ensure_sqlite_dir()
            self.engine = create_async_engine(self.config.database_url, echo=False, **self._engine_kwargs())

            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
                await conn.execute(text("SELECT 1"))
            self.connection_stats["connections_created"] += 1

            init_time = (datetime.utcnow() - start_time).total_seconds()
            logger.info(f"Database service initialized successfully in {init_time:.2f}s")

            if self.embed_logger:
                await self.embed_logger.log_custom(
                    service="Database Service",
                    title="Database Ready",
                    description="Engine created and schema verified",
                    level=LogLevel.SUCCESS,
                    fields={
                        "Backend": self.dialect,
                        "Tables": str(len(Base.metadata.tables)),
                        "Initialization Time": f"{init_time:.2f}s",
                    },
                )
            return self.engine

        except Exception as e:
            self.connection_stats["connections_failed"] += 1
            init_time = (datetime.utcnow() - start_time).total_seconds()
            logger.error(f"Failed to initialize database after {init_time:.2f}s: {e}")
            if self.embed_logger:
                await self.embed_logger.log_error(
                    service="Database Service",
                    error=e,
                    context=f"Database initialization failed after {init_time:.2f}s",
                )
            raise

    def get_engine(self) -> AsyncEngine:
        if not self.engine:
            raise RuntimeError("Database not initialized")
        return self.engine

    async def close(self):
        """Dispose the engine and its pooled connections"""
        logger.info("Closing database connections...")
        if self.engine:
            try:
                await self.engine.dispose()
                logger.info("SQLAlchemy engine disposed")
            except Exception as e:
                logger.error(f"Error disposing SQLAlchemy engine: {e}")
            self.engine = None
        logger.info("Database service shutdown complete")

    async def health_check(self) -> bool:
        """Check database connection health"""
        if not self.engine:
            return False
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            self.connection_stats["queries_executed"] += 1
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            self.connection_stats["queries_failed"] += 1
            if self.embed_logger:
                await self.embed_logger.log_error(
                    service="Database Service", error=e, context="Database health check failed"
                )
            return False


# Global database service instance
database_service = DatabaseService(Config())


__all__ = [
    "DatabaseService",
    "database_service",
]
