from __future__ import annotations

import logging
from typing import Optional

from ..core.enums import MatchSource
from ..core.exceptions import ResolverFailure, ValidationError
from ..identities.model import Identity
from ..identities.repository import IdentityRepository
from .descriptor import DescriptorMatcher
from .model import FaceMatch, FaceQuery, Resolution
from .resolver import FaceSearch, ImageSource

logger = logging.getLogger(__name__)


class FaceVerificationService:
    """Use case: resolve a captured face to at most one registered identity.

    Images (inline, or downloaded from ``image_url``) go to the face
    collection. The local descriptor matcher is used when the query only
    carries a descriptor, or as a fallback when the download or the
    collection search fails and the query carries one. A collection search
    that runs and finds nothing is final.
    """

    def __init__(
        self,
        identities: IdentityRepository,
        descriptor_matcher: DescriptorMatcher,
        face_search: Optional[FaceSearch] = None,
        image_source: Optional[ImageSource] = None,
    ):
        self._identities = identities
        self._matcher = descriptor_matcher
        self._search = face_search
        self._images = image_source

    def resolve(self, query: FaceQuery) -> Optional[Resolution]:
        if not query.has_image and query.descriptor is None:
            raise ValidationError("Provide imageData/imageUrl OR descriptor")

        if query.has_image:
            try:
                return self._resolve_image(self._image_bytes(query))
            except ResolverFailure:
                if query.descriptor is None:
                    raise
                logger.warning("Face search failed; falling back to descriptor matching")

        return self._resolve_descriptor(query.descriptor)

    def _image_bytes(self, query: FaceQuery) -> bytes:
        if query.image is not None:
            return query.image
        if self._images is None:
            raise ResolverFailure("Image download is not configured", retryable=False)
        return self._images.fetch(query.image_url)

    def _resolve_image(self, image: bytes) -> Optional[Resolution]:
        if self._search is None:
            raise ResolverFailure("Face search is not configured", retryable=False)

        match = self._search.search(image)
        if match is None:
            logger.info("No face collection match")
            return None

        identity = self._identity_for(match)
        if identity is None:
            logger.warning(
                "Face matched in collection but no local identity (external_image_id=%s face_id=%s)",
                match.external_image_id,
                match.face_id,
            )
            return None

        similarity = match.similarity
        return Resolution(
            identity_id=identity.identity_id,
            name=identity.name,
            role=identity.role,
            confidence=similarity,
            distance=None if similarity is None else round(1 - similarity / 100.0, 4),
            source=MatchSource.REKOGNITION,
        )

    def _identity_for(self, match: FaceMatch) -> Optional[Identity]:
        identity = None
        if match.external_image_id:
            identity = self._identities.get_by_external_image_id(match.external_image_id)
        if identity is None and match.face_id:
            identity = self._identities.get_by_face_id(match.face_id)
        return identity

    def _resolve_descriptor(self, descriptor) -> Optional[Resolution]:
        identity, distance = self._matcher.best_match(descriptor, self._identities.list_with_descriptors())
        if identity is None or not self._matcher.is_match(distance):
            logger.info("No descriptor match (best distance=%s)", distance)
            return None

        return Resolution(
            identity_id=identity.identity_id,
            name=identity.name,
            role=identity.role,
            confidence=self._matcher.confidence(distance),
            distance=round(distance, 4),
            source=MatchSource.DESCRIPTOR,
        )
