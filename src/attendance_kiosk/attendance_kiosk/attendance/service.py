from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Callable

from ..common.datetime_utils import Clock, to_utc
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_PUNCH_RETRY_ATTEMPTS, DEFAULT_PUNCH_RETRY_BACKOFF_SECONDS
from ..core.enums import Precondition, PunchOutcomeKind
from ..core.exceptions import CorruptRecord, IdentityNotFound, StoreUnavailable, ValidationError
from ..identities.repository import IdentityRepository
from .model import (
    AlreadyPunchedOut,
    PunchedIn,
    PunchedOut,
    PunchFailed,
    PunchOutcome,
    PunchPatch,
    PunchRecord,
    TooSoon,
)
from .repository import PunchRepository

logger = logging.getLogger(__name__)


class PunchStateMachine:
    """Moves one (identity, day) record through punch-in -> punch-out.

    Every write is guarded by a precondition on the stored state (key absent
    for the insert, punch-out absent for the update), so concurrent calls for
    the same identity need no lock: the store decides the single winner and
    losers report what the winner persisted.
    """

    def __init__(
        self,
        punches: PunchRepository,
        identities: IdentityRepository,
        clock: Clock,
        *,
        cooldown_seconds: int,
    ):
        if int(cooldown_seconds) < 1:
            raise ValidationError("cooldown_seconds must be at least 1")
        self._punches = punches
        self._identities = identities
        self._clock = clock
        self._cooldown_seconds = int(cooldown_seconds)
        self._cooldown = timedelta(seconds=self._cooldown_seconds)

    def record_punch(self, identity_id: str) -> PunchOutcome:
        identity = self._identities.get_by_id(identity_id)
        if identity is None:
            raise IdentityNotFound(identity_id)

        now = to_utc(self._clock.now())
        day = self._clock.day_key_of(now)

        candidate = PunchRecord(
            record_id=None,
            identity_id=identity.identity_id,
            day=day,
            punch_in_at=now,
            punch_out_at=None,
            display_name=identity.name,
            display_role=identity.role.value,
        )
        current, inserted = self._punches.insert_if_absent(candidate)
        if inserted:
            return PunchedIn(record=current)

        self._check_shape(current, identity_id=identity.identity_id, day=day)

        if current.punch_out_at is not None:
            return AlreadyPunchedOut(record=current)

        elapsed = now - to_utc(current.punch_in_at)
        if elapsed < self._cooldown:
            return TooSoon(
                record=current,
                elapsed_seconds=max(0, int(elapsed.total_seconds())),
                cooldown_seconds=self._cooldown_seconds,
            )

        updated, succeeded = self._punches.conditional_update(
            current.record_id,
            expected=Precondition.PUNCH_OUT_ABSENT,
            patch=PunchPatch(punch_out_at=now),
        )
        if succeeded and updated is not None:
            return PunchedOut(record=updated)

        # Lost the race: report whatever the winning request persisted.
        latest = self._punches.find_by_key(identity.identity_id, day)
        if latest is None:
            raise CorruptRecord(
                "Punch record disappeared during punch-out",
                identity_id=identity.identity_id,
                day=day,
            )
        self._check_shape(latest, identity_id=identity.identity_id, day=day)
        if latest.punch_out_at is None:
            raise StoreUnavailable(
                f"Punch-out for {identity.identity_id} on {day} was rejected but no punch-out is stored"
            )
        logger.info("Punch-out for %s on %s settled by a concurrent request", identity.identity_id, day)
        return PunchedOut(record=latest, by_concurrent_request=True)

    @staticmethod
    def _check_shape(record: PunchRecord, *, identity_id: str, day: str) -> None:
        if record.identity_id != identity_id or record.day != day:
            raise CorruptRecord(
                f"Store returned record for {record.identity_id}/{record.day}",
                identity_id=identity_id,
                day=day,
            )
        if record.punch_in_at is None:
            raise CorruptRecord("Punch record has no punch-in time", identity_id=identity_id, day=day)
        if record.punch_out_at is not None and to_utc(record.punch_out_at) <= to_utc(record.punch_in_at):
            raise CorruptRecord("Punch-out is not after punch-in", identity_id=identity_id, day=day)
        if record.record_id is None:
            raise CorruptRecord("Punch record has no id", identity_id=identity_id, day=day)


class PunchService:
    """Use case: punch attendance for a resolved identity.

    Always answers with an outcome; failures come back as ``PunchFailed``.
    Only ``StoreUnavailable`` is retried, by re-running the whole state
    machine (each attempt takes a fresh "now").
    """

    def __init__(
        self,
        state_machine: PunchStateMachine,
        *,
        retry_attempts: int = DEFAULT_PUNCH_RETRY_ATTEMPTS,
        retry_backoff_seconds: float = DEFAULT_PUNCH_RETRY_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._machine = state_machine
        self._attempts = max(1, int(retry_attempts))
        self._backoff = float(retry_backoff_seconds)
        self._sleep = sleep

    def submit(self, identity_id: str) -> PunchOutcome:
        identity_id = require_non_empty(identity_id, "userId")

        attempt = 1
        while True:
            try:
                outcome = self._machine.record_punch(identity_id)
            except IdentityNotFound as exc:
                logger.info("Punch rejected: %s", exc)
                return PunchFailed(kind=PunchOutcomeKind.IDENTITY_NOT_FOUND, identity_id=identity_id, message=str(exc))
            except CorruptRecord as exc:
                logger.error("Corrupt punch record for %s on %s: %s", exc.identity_id, exc.day, exc)
                return PunchFailed(kind=PunchOutcomeKind.CORRUPT_RECORD, identity_id=identity_id, message=str(exc))
            except StoreUnavailable as exc:
                logger.warning("Punch attempt %d/%d for %s failed: %s", attempt, self._attempts, identity_id, exc)
                if attempt >= self._attempts:
                    return PunchFailed(
                        kind=PunchOutcomeKind.STORE_UNAVAILABLE,
                        identity_id=identity_id,
                        message="Attendance store unavailable, please try again",
                    )
                self._sleep(self._backoff * attempt)
                attempt += 1
                continue

            logger.info("Punch %s for %s on %s", outcome.kind.value, identity_id, outcome.record.day)
            return outcome
