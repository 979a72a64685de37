from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..common.datetime_utils import from_storage, to_storage
from ..core.enums import Precondition
from ..core.exceptions import StoreUnavailable
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import PunchPatch, PunchRecord
from .repository import PunchRepository

logger = logging.getLogger(__name__)

_COLUMNS = "record_id, identity_id, day, punch_in_at, punch_out_at, display_name, display_role"

_PRECONDITION_SQL = {
    Precondition.PUNCH_OUT_ABSENT: "punch_out_at IS NULL",
}


def _day_str(value: Any) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _to_record(row: dict) -> PunchRecord:
    return PunchRecord(
        record_id=int(row["record_id"]),
        identity_id=str(row["identity_id"]),
        day=_day_str(row["day"]),
        punch_in_at=from_storage(row.get("punch_in_at")),
        punch_out_at=from_storage(row.get("punch_out_at")),
        display_name=row.get("display_name") or "",
        display_role=row.get("display_role") or "",
    )


class MySQLPunchRepository(PunchRepository):
    """Punch records in MySQL.

    Atomicity comes from the UNIQUE (identity_id, day) key for inserts and
    from a guarded ``UPDATE ... WHERE punch_out_at IS NULL`` for punch-outs;
    no explicit row locks are taken.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert_if_absent(self, record: PunchRecord) -> tuple[PunchRecord, bool]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO punch_records(identity_id, day, punch_in_at, punch_out_at, display_name, display_role)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        record.identity_id,
                        record.day,
                        to_storage(record.punch_in_at),
                        to_storage(record.punch_out_at) if record.punch_out_at else None,
                        record.display_name,
                        record.display_role,
                    ),
                )
                record_id = int(cur.lastrowid)
        except mysql.connector.IntegrityError as exc:
            if exc.errno != errorcode.ER_DUP_ENTRY:
                raise
            logger.debug("Punch record already exists for %s on %s", record.identity_id, record.day)
        else:
            return PunchRecord(
                record_id=record_id,
                identity_id=record.identity_id,
                day=record.day,
                punch_in_at=record.punch_in_at,
                punch_out_at=record.punch_out_at,
                display_name=record.display_name,
                display_role=record.display_role,
            ), True

        existing = self.find_by_key(record.identity_id, record.day)
        if existing is None:
            # Duplicate key but no row: the winner's transaction is not visible yet.
            raise StoreUnavailable(f"Punch record for {record.identity_id} on {record.day} is not readable yet")
        return existing, False

    def conditional_update(
        self,
        record_id: int,
        *,
        expected: Precondition,
        patch: PunchPatch,
    ) -> tuple[Optional[PunchRecord], bool]:
        guard = _PRECONDITION_SQL[expected]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE punch_records
                SET punch_out_at=%s
                WHERE record_id=%s AND {guard}
                """,
                (to_storage(patch.punch_out_at), int(record_id)),
            )
            succeeded = cur.rowcount > 0
            cur.execute(f"SELECT {_COLUMNS} FROM punch_records WHERE record_id=%s", (int(record_id),))
            row = fetchone(cur)
            return (_to_record(row) if row else None), succeeded

    def find_by_key(self, identity_id: str, day: str) -> Optional[PunchRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM punch_records WHERE identity_id=%s AND day=%s",
                (identity_id, day),
            )
            row = fetchone(cur)
            return _to_record(row) if row else None

    def get_by_id(self, record_id: int) -> Optional[PunchRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM punch_records WHERE record_id=%s", (int(record_id),))
            row = fetchone(cur)
            return _to_record(row) if row else None

    def list_by_date_range(
        self,
        *,
        start_day: str,
        end_day: str,
        identity_id: Optional[str] = None,
    ) -> Sequence[PunchRecord]:
        clauses = ["day BETWEEN %s AND %s"]
        params: list[object] = [start_day, end_day]
        if identity_id is not None:
            clauses.append("identity_id=%s")
            params.append(identity_id)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM punch_records
                WHERE {where}
                ORDER BY day DESC, identity_id ASC
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]
