# purchase_intake/fallback_store.py
"""
Fallback store for requests that could not be relayed to the spreadsheet.

Records live for the lifetime of the process only. The relay depends on the
FallbackStore protocol, so a durable backend can replace the in-memory one
without touching relay logic.
"""

import threading
from typing import List, Protocol

from purchase_intake.schemas import RelayRecord


class FallbackStore(Protocol):
    def append(self, record: RelayRecord) -> int:
        """Store a record and return the new total."""
        ...

    def list(self) -> List[RelayRecord]:
        ...

    def count(self) -> int:
        ...


class InMemoryFallbackStore:
    """Thread-safe append-only list (per-process)."""

    def __init__(self):
        self._records: List[RelayRecord] = []
        self._lock = threading.Lock()

    def append(self, record: RelayRecord) -> int:
        with self._lock:
            self._records.append(record)
            return len(self._records)

    def list(self) -> List[RelayRecord]:
        with self._lock:
            return list(self._records)

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def reset(self):
        """Drop all records (useful for tests)."""
        with self._lock:
            self._records.clear()
