from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from ..attendance.model import PunchRecord
from ..attendance.repository import PunchRepository
from ..common.datetime_utils import Clock, parse_iso_date
from ..core.constants import DAY_FORMAT, DEFAULT_REPORT_DAYS, MAX_REPORT_DAYS, TIME_FORMAT
from ..core.exceptions import ValidationError


def format_duration(seconds: Optional[int]) -> Optional[str]:
    if seconds is None:
        return None
    hours, rest = divmod(int(seconds), 3600)
    return f"{hours:02d}:{rest // 60:02d}:{rest % 60:02d}"


@dataclass(frozen=True)
class ReportData:
    start: str
    end: str
    rows: list[dict]
    summary: list[dict]


class AttendanceReportService:
    """Read-only projections of stored punch records."""

    def __init__(self, punches: PunchRepository, clock: Clock):
        self._punches = punches
        self._clock = clock

    def to_row(self, r: PunchRecord) -> dict:
        punch_in = self._clock.localize(r.punch_in_at) if r.punch_in_at else None
        punch_out = self._clock.localize(r.punch_out_at) if r.punch_out_at else None
        duration = r.duration
        duration_seconds = int(duration.total_seconds()) if duration is not None else None
        return {
            "userId": r.identity_id,
            "name": r.display_name,
            "role": r.display_role,
            "date": r.day,
            "punchIn": punch_in.strftime(TIME_FORMAT) if punch_in else None,
            "punchOut": punch_out.strftime(TIME_FORMAT) if punch_out else None,
            "punchInAt": punch_in.isoformat() if punch_in else None,
            "punchOutAt": punch_out.isoformat() if punch_out else None,
            "durationSeconds": duration_seconds,
            "duration": format_duration(duration_seconds),
        }

    def get_by_identity_and_day(self, identity_id: str, day: Optional[str] = None) -> Optional[dict]:
        day = parse_iso_date(day).strftime(DAY_FORMAT) if day else self._today()
        record = self._punches.find_by_key(identity_id, day)
        return self.to_row(record) if record else None

    def list_by_date_range(
        self,
        *,
        start: Optional[str] = None,
        end: Optional[str] = None,
        identity_id: Optional[str] = None,
    ) -> ReportData:
        end_d = parse_iso_date(end) if end else parse_iso_date(self._today())
        start_d = parse_iso_date(start) if start else end_d - timedelta(days=DEFAULT_REPORT_DAYS - 1)
        self._check_range(start_d, end_d)

        records = self._punches.list_by_date_range(
            start_day=start_d.strftime(DAY_FORMAT),
            end_day=end_d.strftime(DAY_FORMAT),
            identity_id=identity_id,
        )

        rows: list[dict] = []
        summary_map: dict[str, dict] = {}
        for r in records:
            row = self.to_row(r)
            rows.append(row)

            s = summary_map.get(r.identity_id)
            if not s:
                s = {
                    "userId": r.identity_id,
                    "name": r.display_name,
                    "role": r.display_role,
                    "daysPresent": 0,
                    "daysCompleted": 0,
                    "totalSeconds": 0,
                }
                summary_map[r.identity_id] = s
            s["daysPresent"] += 1
            if row["durationSeconds"] is not None:
                s["daysCompleted"] += 1
                s["totalSeconds"] += row["durationSeconds"]

        summary = []
        for s in summary_map.values():
            summary.append({**s, "totalDuration": format_duration(s["totalSeconds"])})
        summary.sort(key=lambda x: (-x["totalSeconds"], x["userId"]))

        return ReportData(
            start=start_d.strftime(DAY_FORMAT),
            end=end_d.strftime(DAY_FORMAT),
            rows=rows,
            summary=summary,
        )

    def _today(self) -> str:
        return self._clock.day_key_of(self._clock.now())

    @staticmethod
    def _check_range(start: date, end: date) -> None:
        if start > end:
            raise ValidationError("start must not be after end")
        if (end - start).days + 1 > MAX_REPORT_DAYS:
            raise ValidationError(f"Date range must not exceed {MAX_REPORT_DAYS} days")
