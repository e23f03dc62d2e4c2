"""
In-process call history store, used for local runs.
"""

import itertools
from typing import List, Tuple

from ..models import CallHistory
from .base import CallHistoryRepository


class InMemoryCallHistoryRepository(CallHistoryRepository):
    """Keeps call history in a list; ids are assigned sequentially from 1."""

    def __init__(self):
        self.records: List[CallHistory] = []
        self._ids = itertools.count(1)

    async def save(self, record: CallHistory) -> CallHistory:
        record.id = next(self._ids)
        self.records.append(record)
        return record

    async def find_page(self, page: int, size: int) -> Tuple[List[CallHistory], int]:
        ordered = sorted(self.records, key=lambda r: r.id)
        start = (page - 1) * size
        return ordered[start:start + size], len(ordered)
