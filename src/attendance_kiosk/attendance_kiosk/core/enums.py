from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Closed set of roles a registered identity can hold."""

    STUDENT = "student"
    FACULTY = "faculty"


class PunchOutcomeKind(str, Enum):
    """Tag carried by every punch outcome (also used as the API status)."""

    PUNCHED_IN = "PUNCHED_IN"
    PUNCHED_OUT = "PUNCHED_OUT"
    TOO_SOON = "TOO_SOON"
    ALREADY_PUNCHED_OUT = "ALREADY_PUNCHED_OUT"
    IDENTITY_NOT_FOUND = "IDENTITY_NOT_FOUND"
    CORRUPT_RECORD = "CORRUPT_RECORD"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


class Precondition(str, Enum):
    """Stored-state predicates a conditional update can be guarded by."""

    PUNCH_OUT_ABSENT = "PUNCH_OUT_ABSENT"


class MatchSource(str, Enum):
    REKOGNITION = "rekognition"
    DESCRIPTOR = "descriptor"


class StoreBackend(str, Enum):
    MYSQL = "mysql"
    MEMORY = "memory"
