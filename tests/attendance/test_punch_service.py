from __future__ import annotations

import pytest

from src.attendance_kiosk.attendance_kiosk.attendance.model import PunchedIn, PunchFailed, PunchRecord
from src.attendance_kiosk.attendance_kiosk.attendance.service import PunchService, PunchStateMachine
from src.attendance_kiosk.attendance_kiosk.core.enums import PunchOutcomeKind
from src.attendance_kiosk.attendance_kiosk.core.exceptions import StoreUnavailable, ValidationError


class FlakyPunches:
    """Fails the first ``failures`` inserts with StoreUnavailable."""

    def __init__(self, inner, failures: int):
        self._inner = inner
        self.failures = failures
        self.calls = 0

    def insert_if_absent(self, record):
        self.calls += 1
        if self.calls <= self.failures:
            raise StoreUnavailable("connection reset")
        return self._inner.insert_if_absent(record)

    def conditional_update(self, record_id, *, expected, patch):
        return self._inner.conditional_update(record_id, expected=expected, patch=patch)

    def find_by_key(self, identity_id, day):
        return self._inner.find_by_key(identity_id, day)


def _service(punches, identities, clock, sleeps, attempts=3):
    machine = PunchStateMachine(punches, identities, clock, cooldown_seconds=60)
    return PunchService(machine, retry_attempts=attempts, retry_backoff_seconds=0.2, sleep=sleeps.append)


def test_submit_returns_outcome(punch_service):
    outcome = punch_service.submit("U1")

    assert isinstance(outcome, PunchedIn)
    assert outcome.kind == PunchOutcomeKind.PUNCHED_IN


def test_submit_strips_identity_id(punch_service):
    outcome = punch_service.submit("  U1 ")

    assert outcome.record.identity_id == "U1"


@pytest.mark.parametrize("bad", ["", "   ", None])
def test_submit_rejects_empty_identity(punch_service, bad):
    with pytest.raises(ValidationError):
        punch_service.submit(bad)


def test_unknown_identity_becomes_failed_outcome(punch_service):
    outcome = punch_service.submit("U404")

    assert isinstance(outcome, PunchFailed)
    assert outcome.kind == PunchOutcomeKind.IDENTITY_NOT_FOUND
    assert outcome.identity_id == "U404"


def test_store_unavailable_is_retried_with_linear_backoff(punches, identities, clock):
    sleeps = []
    flaky = FlakyPunches(punches, failures=2)

    outcome = _service(flaky, identities, clock, sleeps).submit("U1")

    assert isinstance(outcome, PunchedIn)
    assert flaky.calls == 3
    assert sleeps == pytest.approx([0.2, 0.4])


def test_store_unavailable_after_all_attempts(punches, identities, clock):
    sleeps = []
    flaky = FlakyPunches(punches, failures=10)

    outcome = _service(flaky, identities, clock, sleeps).submit("U1")

    assert isinstance(outcome, PunchFailed)
    assert outcome.kind == PunchOutcomeKind.STORE_UNAVAILABLE
    assert flaky.calls == 3
    assert len(sleeps) == 2
    assert punches.find_by_key("U1", "2025-01-10") is None


def test_corrupt_record_is_not_retried(punches, identities, clock):
    punches.put(
        PunchRecord(
            record_id=None,
            identity_id="U1",
            day="2025-01-10",
            punch_in_at=None,
            punch_out_at=None,
            display_name="Asha Rao",
            display_role="student",
        )
    )
    sleeps = []

    outcome = _service(punches, identities, clock, sleeps).submit("U1")

    assert isinstance(outcome, PunchFailed)
    assert outcome.kind == PunchOutcomeKind.CORRUPT_RECORD
    assert sleeps == []
