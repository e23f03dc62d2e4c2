"""
Asynchronous audit recording for Calculator Service.
"""

import asyncio
from typing import Optional, Set

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..models import CallHistory
from ..persistence import CallHistoryRepository


MAX_RESPONSE_LENGTH = 1000


class AuditRecorder:
    """Persists call history on background tasks.

    ``record`` returns immediately; each write runs on its own task. Write
    failures are logged and counted, never raised to the caller.
    """

    def __init__(self, repository: CallHistoryRepository, metrics: Optional[MetricsCollector] = None):
        self.repository = repository
        self.metrics = metrics
        self.logger = get_logger("calculator.audit.recorder")
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of writes still in flight."""
        return len(self._pending)

    def record(self, endpoint: str, parameters: str, response_or_error: str) -> None:
        """Schedule an audit write. Must be called from a running event loop."""
        entry = CallHistory(
            endpoint=endpoint,
            parameters=parameters,
            response_or_error=(response_or_error or "")[:MAX_RESPONSE_LENGTH]
        )
        self.logger.info("Logging call asynchronously", endpoint=endpoint)

        task = asyncio.create_task(self._write(entry))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self, entry: CallHistory) -> None:
        try:
            saved = await self.repository.save(entry)
            self.logger.info("Call logged successfully", id=saved.id, endpoint=entry.endpoint)
            self._record_write("ok")
        except Exception as e:
            self.logger.error(
                "Failed to persist call history",
                endpoint=entry.endpoint,
                error=str(e),
                exc_info=True
            )
            self._record_write("error")

    def _record_write(self, status: str):
        if self.metrics:
            self.metrics.increment_counter("audit_writes_total", status=status)

    async def drain(self) -> None:
        """Wait for every in-flight write to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def stop(self) -> None:
        """Flush outstanding writes before shutdown."""
        if self._pending:
            self.logger.info("Flushing pending audit writes", pending=self.pending)
        await self.drain()
