from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Precondition
from .model import PunchPatch, PunchRecord


class PunchRepository(Protocol):
    """Attendance record store.

    Every operation is linearizable per ``(identity_id, day)``: when two calls
    race on the same key exactly one insert wins and at most one qualifying
    conditional update wins. Different keys never contend.
    """

    def insert_if_absent(self, record: PunchRecord) -> tuple[PunchRecord, bool]:
        """Store ``record`` unless its key exists.

        Returns the stored record (the new one, or the one already there) and
        whether this call inserted it.
        """
        raise NotImplementedError

    def conditional_update(
        self,
        record_id: int,
        *,
        expected: Precondition,
        patch: PunchPatch,
    ) -> tuple[Optional[PunchRecord], bool]:
        """Apply ``patch`` only while ``expected`` holds for the stored row.

        Returns the record as stored after the attempt and whether the patch
        was applied.
        """
        raise NotImplementedError

    def find_by_key(self, identity_id: str, day: str) -> Optional[PunchRecord]:
        raise NotImplementedError

    def get_by_id(self, record_id: int) -> Optional[PunchRecord]:
        raise NotImplementedError

    def list_by_date_range(
        self,
        *,
        start_day: str,
        end_day: str,
        identity_id: Optional[str] = None,
    ) -> Sequence[PunchRecord]:
        raise NotImplementedError
