from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest

from src.attendance_kiosk.attendance_kiosk.attendance.memory_punch_repository import InMemoryPunchRepository
from src.attendance_kiosk.attendance_kiosk.attendance.service import PunchService, PunchStateMachine
from src.attendance_kiosk.attendance_kiosk.common.datetime_utils import Clock
from src.attendance_kiosk.attendance_kiosk.core.enums import Role
from src.attendance_kiosk.attendance_kiosk.identities.memory_identity_repository import InMemoryIdentityRepository
from src.attendance_kiosk.attendance_kiosk.identities.model import Identity

IST = timezone(timedelta(hours=5, minutes=30))


class ManualClock(Clock):
    """Clock whose "now" only moves when a test moves it."""

    def __init__(self, now: datetime):
        super().__init__(now.tzinfo)
        self._now = now
        self._lock = threading.Lock()
        self.calls = 0

    def now(self) -> datetime:
        with self._lock:
            self.calls += 1
            return self._now

    def set(self, now: datetime) -> None:
        self._now = now

    def advance(self, **kwargs) -> datetime:
        self._now = self._now + timedelta(**kwargs)
        return self._now


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 1, 10, 9, 0, 0, tzinfo=IST)


@pytest.fixture
def clock(fixed_now) -> ManualClock:
    return ManualClock(fixed_now)


@pytest.fixture
def make_clock():
    return ManualClock


@pytest.fixture
def u1() -> Identity:
    return Identity(identity_id="U1", name="Asha Rao", role=Role.STUDENT)


@pytest.fixture
def identities(u1) -> InMemoryIdentityRepository:
    return InMemoryIdentityRepository(
        [
            u1,
            Identity(identity_id="F7", name="Dr. Iyer", role=Role.FACULTY),
        ]
    )


@pytest.fixture
def punches() -> InMemoryPunchRepository:
    return InMemoryPunchRepository()


@pytest.fixture
def machine(punches, identities, clock) -> PunchStateMachine:
    return PunchStateMachine(punches, identities, clock, cooldown_seconds=60)


@pytest.fixture
def punch_service(machine) -> PunchService:
    return PunchService(machine, retry_attempts=3, retry_backoff_seconds=0, sleep=lambda _: None)
