from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import Clock
from ..common.validators import require_descriptor, require_http_url, require_non_empty, require_role
from ..core.constants import INDEX_FACE_ATTEMPTS, INDEX_FACE_BACKOFF_SECONDS
from ..core.exceptions import DuplicateIdentity, IdentityNotFound, ResolverFailure
from ..recognition.resolver import FaceIndexer, ImageSource
from .model import Identity, RegistrationResult
from .repository import IdentityRepository

logger = logging.getLogger(__name__)


class IdentityService:
    """Use case: register identities and enroll their faces."""

    def __init__(
        self,
        identities: IdentityRepository,
        clock: Clock,
        indexer: Optional[FaceIndexer] = None,
        image_source: Optional[ImageSource] = None,
        *,
        index_attempts: int = INDEX_FACE_ATTEMPTS,
        index_backoff_seconds: float = INDEX_FACE_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._identities = identities
        self._clock = clock
        self._indexer = indexer
        self._images = image_source
        self._index_attempts = max(1, int(index_attempts))
        self._index_backoff = float(index_backoff_seconds)
        self._sleep = sleep

    def get(self, identity_id: str) -> Identity:
        identity_id = require_non_empty(identity_id, "userId")
        identity = self._identities.get_by_id(identity_id)
        if identity is None:
            raise IdentityNotFound(identity_id)
        return identity

    def list_identities(self) -> Sequence[Identity]:
        return self._identities.list_all()

    def register(
        self,
        *,
        identity_id: str,
        name: str,
        role: str,
        image: Optional[bytes] = None,
        image_url: Optional[str] = None,
        descriptor: Optional[Sequence[float]] = None,
    ) -> RegistrationResult:
        identity = Identity(
            identity_id=require_non_empty(identity_id, "userId"),
            name=require_non_empty(name, "name"),
            role=require_role(role),
            image_url=require_http_url(image_url, "imageUrl") if image_url else None,
            face_descriptors=(require_descriptor(descriptor),) if descriptor is not None else (),
        )

        if not self._identities.create(identity):
            raise DuplicateIdentity("User ID already exists.")
        logger.info("Registered identity %s (%s)", identity.identity_id, identity.role.value)

        if image is None and identity.image_url is None:
            return RegistrationResult(identity=identity, indexed=False)
        if self._indexer is None:
            return RegistrationResult(identity=identity, indexed=False, indexing_error="Face indexing is not configured")

        # Indexing failures never roll back the registration itself.
        try:
            if image is None:
                image = self._download(identity.image_url)
            face_ids = self._index_with_retries(image, identity.identity_id)
        except ResolverFailure as exc:
            logger.error("Face indexing failed for %s: %s", identity.identity_id, exc)
            return RegistrationResult(identity=identity, indexed=False, indexing_error=str(exc))

        indexed_at = self._clock.now()
        self._identities.update_enrollment(
            identity.identity_id,
            external_image_id=identity.identity_id,
            face_ids=face_ids,
            indexed_at=indexed_at,
        )
        logger.info("Indexed face for %s: %s", identity.identity_id, face_ids)
        enrolled = replace(
            identity,
            external_image_id=identity.identity_id,
            face_ids=tuple(face_ids),
            indexed_at=indexed_at,
        )
        return RegistrationResult(identity=enrolled, indexed=True)

    def _download(self, url: str) -> bytes:
        if self._images is None:
            raise ResolverFailure("Image download is not configured", retryable=False)
        return self._images.fetch(url)

    def _index_with_retries(self, image: bytes, identity_id: str) -> list[str]:
        last: Optional[ResolverFailure] = None
        for attempt in range(1, self._index_attempts + 1):
            try:
                return self._indexer.index_face(image, external_image_id=identity_id)
            except ResolverFailure as exc:
                if not exc.retryable:
                    raise
                last = exc
                logger.warning("Index attempt %d/%d failed for %s: %s", attempt, self._index_attempts, identity_id, exc)
                if attempt < self._index_attempts:
                    self._sleep(self._index_backoff * attempt)
        raise ResolverFailure(f"Indexing failed after {self._index_attempts} attempts: {last}")
