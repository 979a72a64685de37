from __future__ import annotations

import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.exceptions import ResolverFailure
from .model import FaceMatch
from .resolver import FaceIndexer, FaceSearch

logger = logging.getLogger(__name__)

_NO_FACE_CODES = {"InvalidParameterException"}
_FATAL_CODES = {"ResourceNotFoundException", "AccessDeniedException", "InvalidImageFormatException"}


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class RekognitionFaceSearch(FaceSearch, FaceIndexer):
    """AWS Rekognition collection adapter.

    The boto3 client is created once by the container and injected here.
    """

    def __init__(
        self,
        client: Any,
        *,
        collection_id: str,
        similarity_threshold: float,
        max_faces: int = 3,
    ):
        self._client = client
        self._collection_id = collection_id
        self._threshold = float(similarity_threshold)
        self._max_faces = int(max_faces)

    @classmethod
    def create(cls, *, region: str, collection_id: str, similarity_threshold: float, max_faces: int) -> "RekognitionFaceSearch":
        client = boto3.client("rekognition", region_name=region)
        return cls(client, collection_id=collection_id, similarity_threshold=similarity_threshold, max_faces=max_faces)

    @property
    def collection_id(self) -> str:
        return self._collection_id

    def search(self, image: bytes) -> Optional[FaceMatch]:
        try:
            out = self._client.search_faces_by_image(
                CollectionId=self._collection_id,
                Image={"Bytes": image},
                FaceMatchThreshold=self._threshold,
                MaxFaces=self._max_faces,
            )
        except ClientError as exc:
            code = _error_code(exc)
            if code in _NO_FACE_CODES:
                logger.info("Rekognition found no face in the image: %s", exc)
                return None
            logger.error("Rekognition search failed (%s): %s", code, exc)
            raise ResolverFailure(f"Rekognition error: {exc}", retryable=code not in _FATAL_CODES) from exc
        except BotoCoreError as exc:
            logger.error("Rekognition search failed: %s", exc)
            raise ResolverFailure(f"Rekognition error: {exc}") from exc

        matches = out.get("FaceMatches") or []
        if not matches:
            return None

        top = max(matches, key=lambda m: m.get("Similarity") or 0.0)
        face = top.get("Face") or {}
        similarity = top.get("Similarity")
        if isinstance(similarity, (int, float)) and similarity < self._threshold:
            return None
        return FaceMatch(
            face_id=face.get("FaceId"),
            external_image_id=face.get("ExternalImageId"),
            similarity=float(similarity) if isinstance(similarity, (int, float)) else None,
        )

    def index_face(self, image: bytes, *, external_image_id: str) -> list[str]:
        try:
            out = self._client.index_faces(
                CollectionId=self._collection_id,
                Image={"Bytes": image},
                ExternalImageId=str(external_image_id),
                DetectionAttributes=[],
                MaxFaces=1,
            )
        except ClientError as exc:
            code = _error_code(exc)
            if code == "ResourceNotFoundException":
                raise ResolverFailure(
                    f"Rekognition collection {self._collection_id!r} not found. "
                    f"Create it with scripts/create_collection.py. AWS message: {exc}",
                    retryable=False,
                ) from exc
            raise ResolverFailure(f"Rekognition indexing error: {exc}", retryable=code not in _FATAL_CODES) from exc
        except BotoCoreError as exc:
            raise ResolverFailure(f"Rekognition indexing error: {exc}") from exc

        face_ids = [r["Face"]["FaceId"] for r in out.get("FaceRecords") or [] if r.get("Face", {}).get("FaceId")]
        if not face_ids:
            raise ResolverFailure("No face detected in the enrollment image", retryable=False)
        return face_ids

    def create_collection(self) -> bool:
        """Create the collection; False when it already exists."""
        try:
            out = self._client.create_collection(CollectionId=self._collection_id)
        except ClientError as exc:
            if _error_code(exc) == "ResourceAlreadyExistsException":
                logger.info("Rekognition collection %s already exists", self._collection_id)
                return False
            raise ResolverFailure(f"Could not create collection: {exc}", retryable=False) from exc
        except BotoCoreError as exc:
            raise ResolverFailure(f"Could not create collection: {exc}") from exc
        logger.info("Created Rekognition collection %s (%s)", self._collection_id, out.get("CollectionArn"))
        return True
