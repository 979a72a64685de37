from __future__ import annotations

import json
from datetime import datetime
from typing import Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..common.datetime_utils import from_storage, to_storage
from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, load_json_list
from .model import Identity
from .repository import IdentityRepository

_COLUMNS = (
    "identity_id, name, role, image_url, external_image_id, face_ids, face_descriptors, indexed_at, created_at"
)


def _to_identity(row: dict) -> Identity:
    return Identity(
        identity_id=str(row["identity_id"]),
        name=row["name"],
        role=Role(row["role"]),
        image_url=row.get("image_url"),
        external_image_id=row.get("external_image_id"),
        face_ids=tuple(str(f) for f in load_json_list(row.get("face_ids"))),
        face_descriptors=tuple(
            tuple(float(x) for x in d) for d in load_json_list(row.get("face_descriptors")) if isinstance(d, list)
        ),
        indexed_at=from_storage(row.get("indexed_at")),
        created_at=from_storage(row.get("created_at")),
    )


class MySQLIdentityRepository(IdentityRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, params: tuple) -> Optional[Identity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM identities WHERE {where} LIMIT 1", params)
            row = fetchone(cur)
            return _to_identity(row) if row else None

    def get_by_id(self, identity_id: str) -> Optional[Identity]:
        return self._get_one("identity_id=%s", (identity_id,))

    def get_by_external_image_id(self, external_image_id: str) -> Optional[Identity]:
        return self._get_one("external_image_id=%s", (external_image_id,))

    def get_by_face_id(self, face_id: str) -> Optional[Identity]:
        return self._get_one("JSON_CONTAINS(face_ids, JSON_QUOTE(%s))", (face_id,))

    def create(self, identity: Identity) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO identities(identity_id, name, role, image_url, external_image_id, face_ids, face_descriptors)
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        identity.identity_id,
                        identity.name,
                        identity.role.value,
                        identity.image_url,
                        identity.external_image_id,
                        json.dumps(list(identity.face_ids)),
                        json.dumps([list(d) for d in identity.face_descriptors]),
                    ),
                )
        except mysql.connector.IntegrityError as exc:
            if exc.errno == errorcode.ER_DUP_ENTRY:
                return False
            raise
        return True

    def update_enrollment(
        self,
        identity_id: str,
        *,
        external_image_id: str,
        face_ids: Sequence[str],
        indexed_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE identities
                SET external_image_id=%s, face_ids=%s, indexed_at=%s
                WHERE identity_id=%s
                """,
                (external_image_id, json.dumps(list(face_ids)), to_storage(indexed_at), identity_id),
            )
            return cur.rowcount > 0

    def list_all(self) -> Sequence[Identity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM identities ORDER BY name ASC, identity_id ASC")
            return [_to_identity(r) for r in fetchall(cur)]

    def list_with_descriptors(self) -> Sequence[Identity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM identities
                WHERE face_descriptors IS NOT NULL AND JSON_LENGTH(face_descriptors) > 0
                """
            )
            return [_to_identity(r) for r in fetchall(cur)]
