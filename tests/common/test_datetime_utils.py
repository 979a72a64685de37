from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from src.attendance_kiosk.attendance_kiosk.common.datetime_utils import (
    Clock,
    from_storage,
    parse_iso_date,
    parse_time_zone,
    to_storage,
    to_utc,
)
from src.attendance_kiosk.attendance_kiosk.core.exceptions import ValidationError


@pytest.mark.parametrize(
    "value, offset",
    [
        ("+05:30", timedelta(hours=5, minutes=30)),
        ("-0800", timedelta(hours=-8)),
        ("UTC+01:00", timedelta(hours=1)),
        ("UTC", timedelta(0)),
        ("Z", timedelta(0)),
    ],
)
def test_parse_time_zone_fixed_offsets(value, offset):
    tz = parse_time_zone(value)

    assert datetime(2025, 1, 10, tzinfo=tz).utcoffset() == offset


def test_parse_time_zone_iana_name():
    assert parse_time_zone("Asia/Kolkata") == ZoneInfo("Asia/Kolkata")


@pytest.mark.parametrize("value", ["", "Mars/Olympus", "+25:00"])
def test_parse_time_zone_rejects_garbage(value):
    with pytest.raises(ValidationError):
        parse_time_zone(value)


def test_day_key_follows_clock_zone_not_utc():
    clock = Clock(parse_time_zone("Asia/Kolkata"))

    assert clock.day_key_of(datetime(2025, 1, 9, 18, 29, tzinfo=timezone.utc)) == "2025-01-09"
    assert clock.day_key_of(datetime(2025, 1, 9, 18, 30, tzinfo=timezone.utc)) == "2025-01-10"


def test_day_key_requires_aware_instant():
    with pytest.raises(ValueError):
        Clock(timezone.utc).day_key_of(datetime(2025, 1, 10, 9, 0))


def test_clock_now_is_aware_in_zone():
    tz = timezone(timedelta(hours=5, minutes=30))

    now = Clock(tz).now()

    assert now.utcoffset() == timedelta(hours=5, minutes=30)


def test_storage_round_trip_keeps_instant():
    instant = datetime(2025, 1, 10, 9, 0, 30, 123456, tzinfo=timezone(timedelta(hours=5, minutes=30)))

    stored = to_storage(instant)

    assert stored.tzinfo is None
    assert stored == datetime(2025, 1, 10, 3, 30, 30, 123456)
    assert from_storage(stored) == instant
    assert from_storage(None) is None


def test_parse_iso_date():
    assert parse_iso_date("2025-01-10") == date(2025, 1, 10)
    with pytest.raises(ValidationError):
        parse_iso_date("10/01/2025")


def test_to_utc_respects_fold():
    tz = ZoneInfo("America/New_York")
    first = datetime(2025, 11, 2, 1, 30, tzinfo=tz)
    second = datetime(2025, 11, 2, 1, 30, fold=1, tzinfo=tz)

    assert second - first == timedelta(0)
    assert to_utc(second) - to_utc(first) == timedelta(hours=1)
    assert to_utc(first) == datetime(2025, 11, 2, 5, 30, tzinfo=timezone.utc)


def test_storage_of_ambiguous_wall_time():
    tz = ZoneInfo("America/New_York")

    assert to_storage(datetime(2025, 11, 2, 1, 30, fold=1, tzinfo=tz)) == datetime(2025, 11, 2, 6, 30)
