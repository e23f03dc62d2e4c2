"""
Persistence package for Calculator Service.

Call history is append-only. PostgreSQL is the durable store; the in-memory
repository backs local runs without a database.
"""

from .base import CallHistoryRepository
from .memory import InMemoryCallHistoryRepository
from .postgres import PostgreSQLCallHistoryRepository

__all__ = ["CallHistoryRepository", "InMemoryCallHistoryRepository", "PostgreSQLCallHistoryRepository"]
