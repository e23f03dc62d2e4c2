"""
Call history repository interface.
"""

from abc import ABC, abstractmethod
from typing import List, Tuple

from ..models import CallHistory


class CallHistoryRepository(ABC):
    """Append-only store of call history records."""

    async def start(self):
        """Open connections and prepare the schema."""

    async def stop(self):
        """Release connections."""

    @abstractmethod
    async def save(self, record: CallHistory) -> CallHistory:
        """Persist a record and return it with its assigned id."""

    @abstractmethod
    async def find_page(self, page: int, size: int) -> Tuple[List[CallHistory], int]:
        """Return one page of records ordered by id, and the total record count.

        ``page`` is 1-based.
        """

    async def health_check(self) -> bool:
        return True
