"""
records/store.py -- Thread-safe in-memory repository for business records.

Pattern: Repository. One RecordStore per record type, created by the app
factory and reached through app.state. Route code never touches the dict.

Concurrency guarantees:
  get/list/delete are atomic with respect to each other.
  put() computes the next id (max existing id + 1) and inserts under the same
  lock, so concurrent creates never receive duplicate ids.

Records are frozen dataclasses; put() stores a copy with the assigned id via
dataclasses.replace() instead of mutating the caller's object.
"""

from __future__ import annotations

import dataclasses
import threading
from collections.abc import Iterable
from typing import Generic, TypeVar

T = TypeVar("T")


class RecordStore(Generic[T]):
    """Usage:
    products = RecordStore(SEED_PRODUCTS)
    created = products.put(Product(name="Widget", price=1.0, stock=3))
    products.get(created.id)
    """

    def __init__(self, seed: Iterable[T] = ()) -> None:
        self._lock = threading.Lock()
        self._records: dict[int, T] = {}
        for record in seed:
            self.put(record)

    def list(self) -> list[T]:
        """Return all records ordered by id."""
        with self._lock:
            return [self._records[k] for k in sorted(self._records)]

    def get(self, record_id: int) -> T | None:
        with self._lock:
            return self._records.get(record_id)

    def put(self, record: T) -> T:
        """Insert or replace a record and return the stored version.

        A record whose id is None gets the next free id (max + 1, starting at 1).
        """
        with self._lock:
            record_id = record.id
            if record_id is None:
                record_id = max(self._records, default=0) + 1
                record = dataclasses.replace(record, id=record_id)
            self._records[record_id] = record
            return record

    def delete(self, record_id: int) -> bool:
        """Remove a record. Returns False if it did not exist."""
        with self._lock:
            return self._records.pop(record_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
