from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.constants import DAY_FORMAT
from ..core.exceptions import ValidationError

_OFFSET_RE = re.compile(r"^(?:UTC|GMT)?([+-])(\d{1,2}):?(\d{2})$")


class Clock:
    """Current instant in the configured zone plus the attendance-day key.

    Callers take ``now()`` once per logical operation and derive everything
    (day key, stored timestamps) from that single instant.
    """

    def __init__(self, tz: tzinfo):
        self._tz = tz

    def now(self) -> datetime:
        return datetime.now(self._tz)

    def day_key_of(self, instant: datetime) -> str:
        if instant.tzinfo is None:
            raise ValueError("instant must be timezone-aware")
        return instant.astimezone(self._tz).strftime(DAY_FORMAT)

    def localize(self, instant: datetime) -> datetime:
        return instant.astimezone(self._tz)


def parse_time_zone(value: str) -> tzinfo:
    """Accept an IANA name, ``UTC`` or a fixed ``+05:30`` style offset."""
    v = (value or "").strip()
    if not v:
        raise ValidationError("TIME_ZONE must not be empty")
    if v.upper() in {"UTC", "Z"}:
        return timezone.utc

    m = _OFFSET_RE.match(v)
    if m:
        sign, hours, minutes = m.groups()
        offset = timedelta(hours=int(hours), minutes=int(minutes))
        if offset >= timedelta(hours=24):
            raise ValidationError(f"Invalid UTC offset: {value!r}")
        return timezone(-offset if sign == "-" else offset)

    try:
        return ZoneInfo(v)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown time zone: {value!r}")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, DAY_FORMAT).date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date {value!r} (expected YYYY-MM-DD)")


def to_utc(instant: datetime) -> datetime:
    """Same instant with a UTC tzinfo.

    Subtracting or comparing two datetimes that share one ZoneInfo works on
    wall-clock time and ignores DST; durations and ordering use UTC values.
    """
    return instant.astimezone(timezone.utc)


def to_storage(instant: datetime) -> datetime:
    """Aware instant -> naive UTC for DATETIME columns."""
    return to_utc(instant).replace(tzinfo=None)


def from_storage(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
