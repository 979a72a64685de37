from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Identity


class IdentityRepository(Protocol):
    def get_by_id(self, identity_id: str) -> Optional[Identity]:
        raise NotImplementedError

    def get_by_external_image_id(self, external_image_id: str) -> Optional[Identity]:
        raise NotImplementedError

    def get_by_face_id(self, face_id: str) -> Optional[Identity]:
        raise NotImplementedError

    def create(self, identity: Identity) -> bool:
        """Insert ``identity``; False when the id is already taken."""
        raise NotImplementedError

    def update_enrollment(
        self,
        identity_id: str,
        *,
        external_image_id: str,
        face_ids: Sequence[str],
        indexed_at: datetime,
    ) -> bool:
        raise NotImplementedError

    def list_all(self) -> Sequence[Identity]:
        raise NotImplementedError

    def list_with_descriptors(self) -> Sequence[Identity]:
        raise NotImplementedError
