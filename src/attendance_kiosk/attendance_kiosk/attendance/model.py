from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import ClassVar, Optional, Union

from ..common.datetime_utils import to_utc
from ..core.enums import PunchOutcomeKind


@dataclass(frozen=True)
class PunchRecord:
    """Domain entity: one identity's attendance for one day.

    ``display_name``/``display_role`` are a snapshot taken at punch-in, not a join.
    """

    record_id: Optional[int]
    identity_id: str
    day: str
    punch_in_at: Optional[datetime]
    punch_out_at: Optional[datetime]
    display_name: str
    display_role: str

    @property
    def key(self) -> tuple[str, str]:
        return (self.identity_id, self.day)

    @property
    def duration(self) -> Optional[timedelta]:
        if self.punch_in_at is None or self.punch_out_at is None:
            return None
        return to_utc(self.punch_out_at) - to_utc(self.punch_in_at)


@dataclass(frozen=True)
class PunchPatch:
    """The only mutation the store accepts on an existing record."""

    punch_out_at: datetime

    def apply(self, record: PunchRecord) -> PunchRecord:
        return replace(record, punch_out_at=self.punch_out_at)


# --- Outcomes -----------------------------------------------------------------


@dataclass(frozen=True)
class PunchedIn:
    kind: ClassVar[PunchOutcomeKind] = PunchOutcomeKind.PUNCHED_IN

    record: PunchRecord


@dataclass(frozen=True)
class PunchedOut:
    kind: ClassVar[PunchOutcomeKind] = PunchOutcomeKind.PUNCHED_OUT

    record: PunchRecord
    by_concurrent_request: bool = False


@dataclass(frozen=True)
class TooSoon:
    kind: ClassVar[PunchOutcomeKind] = PunchOutcomeKind.TOO_SOON

    record: PunchRecord
    elapsed_seconds: int
    cooldown_seconds: int


@dataclass(frozen=True)
class AlreadyPunchedOut:
    kind: ClassVar[PunchOutcomeKind] = PunchOutcomeKind.ALREADY_PUNCHED_OUT

    record: PunchRecord


@dataclass(frozen=True)
class PunchFailed:
    """A punch that could not be completed; ``kind`` says why."""

    kind: PunchOutcomeKind
    identity_id: str
    message: str


PunchOutcome = Union[PunchedIn, PunchedOut, TooSoon, AlreadyPunchedOut, PunchFailed]
