from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Identity:
    """Domain entity: a registered person eligible to punch attendance.

    The enrollment fields belong to the recognition subsystem; the punch
    core only reads ``identity_id``, ``name`` and ``role``.
    """

    identity_id: str
    name: str
    role: Role
    image_url: Optional[str] = None
    external_image_id: Optional[str] = None
    face_ids: tuple[str, ...] = ()
    face_descriptors: tuple[tuple[float, ...], ...] = ()
    indexed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_indexed(self) -> bool:
        return bool(self.face_ids)


@dataclass(frozen=True)
class RegistrationResult:
    identity: Identity
    indexed: bool
    indexing_error: Optional[str] = None
