from __future__ import annotations

import itertools
import threading
from dataclasses import replace
from typing import Optional, Sequence

from ..core.enums import Precondition
from .model import PunchPatch, PunchRecord
from .repository import PunchRepository

_PRECONDITIONS = {
    Precondition.PUNCH_OUT_ABSENT: lambda r: r.punch_out_at is None,
}


class InMemoryPunchRepository(PunchRepository):
    """Process-local punch store for the ``memory`` backend and tests.

    Each key hashes onto one of ``stripes`` locks, so operations on the same
    key serialize while unrelated keys rarely share a lock.
    """

    def __init__(self, *, stripes: int = 64):
        self._locks = [threading.Lock() for _ in range(max(1, int(stripes)))]
        self._records: dict[tuple[str, str], PunchRecord] = {}
        self._key_by_id: dict[int, tuple[str, str]] = {}
        self._ids = itertools.count(1)

    def _lock_for(self, key: tuple[str, str]) -> threading.Lock:
        return self._locks[hash(key) % len(self._locks)]

    def insert_if_absent(self, record: PunchRecord) -> tuple[PunchRecord, bool]:
        key = record.key
        with self._lock_for(key):
            existing = self._records.get(key)
            if existing is not None:
                return existing, False
            stored = replace(record, record_id=next(self._ids))
            self._records[key] = stored
            self._key_by_id[stored.record_id] = key
            return stored, True

    def conditional_update(
        self,
        record_id: int,
        *,
        expected: Precondition,
        patch: PunchPatch,
    ) -> tuple[Optional[PunchRecord], bool]:
        key = self._key_by_id.get(int(record_id))
        if key is None:
            return None, False
        check = _PRECONDITIONS[expected]
        with self._lock_for(key):
            current = self._records[key]
            if not check(current):
                return current, False
            updated = patch.apply(current)
            self._records[key] = updated
            return updated, True

    def find_by_key(self, identity_id: str, day: str) -> Optional[PunchRecord]:
        return self._records.get((identity_id, day))

    def get_by_id(self, record_id: int) -> Optional[PunchRecord]:
        key = self._key_by_id.get(int(record_id))
        return self._records.get(key) if key else None

    def list_by_date_range(
        self,
        *,
        start_day: str,
        end_day: str,
        identity_id: Optional[str] = None,
    ) -> Sequence[PunchRecord]:
        items = [
            r
            for r in list(self._records.values())
            if start_day <= r.day <= end_day and (identity_id is None or r.identity_id == identity_id)
        ]
        items.sort(key=lambda r: r.identity_id)
        items.sort(key=lambda r: r.day, reverse=True)
        return items

    def put(self, record: PunchRecord) -> PunchRecord:
        """Store ``record`` as-is, replacing any row with the same key.

        Only for seeding fixtures; bypasses every invariant check.
        """
        with self._lock_for(record.key):
            stored = record if record.record_id is not None else replace(record, record_id=next(self._ids))
            self._records[stored.key] = stored
            self._key_by_id[stored.record_id] = stored.key
            return stored
