"""Database connection management"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool
from buzzwin.config import DATABASE_URL

logger = logging.getLogger(__name__)


class Database:
    """
    Database connection pool manager

    Query functions take an optional connection so that several of them can
    share one transaction:

        async with db.transaction() as conn:
            await queries.create_ritual_completion(..., conn=conn)
            await queries.upsert_user_ritual_state(..., conn=conn)
    """

    def __init__(self, connection_string: str = DATABASE_URL):
        self.connection_string = connection_string
        self._pool: Optional[AsyncConnectionPool] = None

    async def init_pool(self) -> None:
        """Initialize connection pool"""
        logger.info("Initializing database connection pool")
        self._pool = AsyncConnectionPool(
            self.connection_string,
            min_size=2,
            max_size=10,
            open=False
        )
        await self._pool.open()

    async def close_pool(self) -> None:
        """Close connection pool"""
        if self._pool:
            logger.info("Closing database connection pool")
            await self._pool.close()
            self._pool = None

    @asynccontextmanager
    async def connection(
        self,
        conn: Optional[psycopg.AsyncConnection] = None
    ) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """
        Get a connection from the pool, or pass conn straight through

        A connection that is passed in belongs to the caller, who also owns
        committing it.
        """
        if conn is not None:
            yield conn
            return

        if not self._pool:
            raise RuntimeError("Database pool not initialized")

        async with self._pool.connection() as pooled:
            pooled.row_factory = dict_row
            yield pooled

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """Connection inside one transaction: committed on success, rolled back on error"""
        async with self.connection() as conn:
            async with conn.transaction():
                yield conn


# Global database instance
db = Database()
