from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..identities.model import Identity
from .model import FaceMatch


class FaceSearch(Protocol):
    """Searches a face collection for the closest enrolled face."""

    def search(self, image: bytes) -> Optional[FaceMatch]:
        raise NotImplementedError


class FaceIndexer(Protocol):
    """Enrolls a face into the collection; returns the new face ids."""

    def index_face(self, image: bytes, *, external_image_id: str) -> list[str]:
        raise NotImplementedError


class DescriptorMatch(Protocol):
    def best_match(
        self,
        descriptor: Sequence[float],
        candidates: Sequence[Identity],
    ) -> tuple[Optional[Identity], float]:
        raise NotImplementedError


class ImageSource(Protocol):
    """Downloads the bytes behind an ``imageUrl``."""

    def fetch(self, url: str) -> bytes:
        raise NotImplementedError
