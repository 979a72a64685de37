from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import MatchSource, Role


@dataclass(frozen=True)
class FaceQuery:
    """What a kiosk sends: an image (inline or by URL), a face descriptor, or both."""

    image: Optional[bytes] = None
    descriptor: Optional[tuple[float, ...]] = None
    image_url: Optional[str] = None

    @property
    def has_image(self) -> bool:
        return self.image is not None or self.image_url is not None


@dataclass(frozen=True)
class FaceMatch:
    """Top hit from the face collection (Rekognition terms)."""

    face_id: Optional[str]
    external_image_id: Optional[str]
    similarity: Optional[float]


@dataclass(frozen=True)
class Resolution:
    """A face resolved to a registered identity."""

    identity_id: str
    name: str
    role: Role
    confidence: Optional[float]
    distance: Optional[float]
    source: MatchSource
