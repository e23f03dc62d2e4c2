"""
PostgreSQL persistence layer for Calculator Service.
"""

from typing import List, Optional, Tuple

import asyncpg
from shared.logging import get_logger
from shared.errors import CalculatorException
from ..models import CallHistory
from .base import CallHistoryRepository


class PostgreSQLCallHistoryRepository(CallHistoryRepository):
    """PostgreSQL persistence layer for call history."""

    def __init__(self, dsn: str, min_size: int = 2, max_size: int = 10):
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.logger = get_logger("calculator.persistence.postgres")
        self.pool: Optional[asyncpg.Pool] = None

    async def start(self):
        """Start the persistence layer."""
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=self.min_size,
                max_size=self.max_size
            )

            await self._create_tables()

            self.logger.info("PostgreSQL persistence started")

        except Exception as e:
            self.logger.error("Failed to start PostgreSQL persistence", error=str(e))
            raise CalculatorException("POSTGRES_START_FAILED", str(e))

    async def stop(self):
        """Stop the persistence layer."""
        if self.pool:
            await self.pool.close()
            self.logger.info("PostgreSQL persistence stopped")

    async def _create_tables(self):
        """Create database tables."""
        async with self.pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS call_history (
                    id BIGSERIAL PRIMARY KEY,
                    date TIMESTAMP NOT NULL,
                    endpoint VARCHAR(255) NOT NULL,
                    parameters TEXT,
                    response_or_error VARCHAR(1000)
                );
            """)

    async def save(self, record: CallHistory) -> CallHistory:
        """Insert a call history row."""
        async with self.pool.acquire() as conn:
            record_id = await conn.fetchval("""
                INSERT INTO call_history (date, endpoint, parameters, response_or_error)
                VALUES ($1, $2, $3, $4)
                RETURNING id
            """, record.date, record.endpoint, record.parameters, record.response_or_error)

        record.id = record_id
        self.logger.debug("Call history saved", id=record_id, endpoint=record.endpoint)
        return record

    async def find_page(self, page: int, size: int) -> Tuple[List[CallHistory], int]:
        """Load a page of call history ordered by id."""
        offset = (page - 1) * size
        async with self.pool.acquire() as conn:
            total = await conn.fetchval("SELECT COUNT(*) FROM call_history")
            rows = await conn.fetch("""
                SELECT id, date, endpoint, parameters, response_or_error
                FROM call_history
                ORDER BY id ASC
                LIMIT $1 OFFSET $2
            """, size, offset)

        return [self._row_to_record(row) for row in rows], total

    def _row_to_record(self, row) -> CallHistory:
        return CallHistory(
            id=row["id"],
            date=row["date"],
            endpoint=row["endpoint"],
            parameters=row["parameters"],
            response_or_error=row["response_or_error"]
        )

    async def health_check(self) -> bool:
        """Check PostgreSQL health."""
        try:
            async with self.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            return True
        except Exception:
            return False
