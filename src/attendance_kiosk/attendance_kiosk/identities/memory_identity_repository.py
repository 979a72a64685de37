from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence

from .model import Identity
from .repository import IdentityRepository


class InMemoryIdentityRepository(IdentityRepository):
    def __init__(self, identities: Sequence[Identity] = ()):
        self._lock = threading.Lock()
        self._by_id: dict[str, Identity] = {i.identity_id: i for i in identities}

    def get_by_id(self, identity_id: str) -> Optional[Identity]:
        return self._by_id.get(identity_id)

    def get_by_external_image_id(self, external_image_id: str) -> Optional[Identity]:
        return next((i for i in list(self._by_id.values()) if i.external_image_id == external_image_id), None)

    def get_by_face_id(self, face_id: str) -> Optional[Identity]:
        return next((i for i in list(self._by_id.values()) if face_id in i.face_ids), None)

    def create(self, identity: Identity) -> bool:
        with self._lock:
            if identity.identity_id in self._by_id:
                return False
            self._by_id[identity.identity_id] = identity
            return True

    def update_enrollment(
        self,
        identity_id: str,
        *,
        external_image_id: str,
        face_ids: Sequence[str],
        indexed_at: datetime,
    ) -> bool:
        with self._lock:
            current = self._by_id.get(identity_id)
            if current is None:
                return False
            self._by_id[identity_id] = replace(
                current,
                external_image_id=external_image_id,
                face_ids=tuple(face_ids),
                indexed_at=indexed_at,
            )
            return True

    def list_all(self) -> Sequence[Identity]:
        return sorted(self._by_id.values(), key=lambda i: (i.name, i.identity_id))

    def list_with_descriptors(self) -> Sequence[Identity]:
        return [i for i in list(self._by_id.values()) if i.face_descriptors]
