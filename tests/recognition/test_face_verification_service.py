from __future__ import annotations

import pytest

from src.attendance_kiosk.attendance_kiosk.core.enums import MatchSource, Role
from src.attendance_kiosk.attendance_kiosk.core.exceptions import ResolverFailure, ValidationError
from src.attendance_kiosk.attendance_kiosk.identities.memory_identity_repository import InMemoryIdentityRepository
from src.attendance_kiosk.attendance_kiosk.identities.model import Identity
from src.attendance_kiosk.attendance_kiosk.recognition.descriptor import DescriptorMatcher
from src.attendance_kiosk.attendance_kiosk.recognition.model import FaceMatch, FaceQuery
from src.attendance_kiosk.attendance_kiosk.recognition.service import FaceVerificationService

DESCRIPTOR = tuple([1.0] + [0.0] * 127)


class FakeFaceSearch:
    def __init__(self, match=None, error=None):
        self._match = match
        self._error = error
        self.calls = 0
        self.images = []

    def search(self, image):
        self.calls += 1
        self.images.append(image)
        if self._error is not None:
            raise self._error
        return self._match


class FakeImageSource:
    def __init__(self, data=b"downloaded", error=None):
        self._data = data
        self._error = error
        self.urls = []

    def fetch(self, url):
        self.urls.append(url)
        if self._error is not None:
            raise self._error
        return self._data


@pytest.fixture
def registry():
    return InMemoryIdentityRepository(
        [
            Identity(
                identity_id="U1",
                name="Asha Rao",
                role=Role.STUDENT,
                external_image_id="U1",
                face_ids=("face-u1",),
                face_descriptors=(DESCRIPTOR,),
            ),
            Identity(identity_id="F7", name="Dr. Iyer", role=Role.FACULTY, face_ids=("face-f7",)),
        ]
    )


def _service(registry, search=None, images=None):
    return FaceVerificationService(registry, DescriptorMatcher(threshold=0.45), search, images)


def test_requires_image_or_descriptor(registry):
    with pytest.raises(ValidationError):
        _service(registry).resolve(FaceQuery())


def test_collection_match_resolves_by_external_image_id(registry):
    search = FakeFaceSearch(FaceMatch(face_id="other", external_image_id="U1", similarity=98.0))

    resolution = _service(registry, search).resolve(FaceQuery(image=b"img"))

    assert resolution.identity_id == "U1"
    assert resolution.source == MatchSource.REKOGNITION
    assert resolution.confidence == 98.0
    assert resolution.distance == pytest.approx(0.02)


def test_collection_match_falls_back_to_face_id(registry):
    search = FakeFaceSearch(FaceMatch(face_id="face-f7", external_image_id=None, similarity=90.0))

    resolution = _service(registry, search).resolve(FaceQuery(image=b"img"))

    assert resolution.identity_id == "F7"
    assert resolution.role == Role.FACULTY


def test_collection_match_without_local_identity_is_no_match(registry):
    search = FakeFaceSearch(FaceMatch(face_id="ghost", external_image_id="GHOST", similarity=99.0))

    assert _service(registry, search).resolve(FaceQuery(image=b"img")) is None


def test_collection_no_match_is_final_even_with_descriptor(registry):
    search = FakeFaceSearch(match=None)

    assert _service(registry, search).resolve(FaceQuery(image=b"img", descriptor=DESCRIPTOR)) is None


def test_search_failure_falls_back_to_descriptor(registry):
    search = FakeFaceSearch(error=ResolverFailure("throttled"))

    resolution = _service(registry, search).resolve(FaceQuery(image=b"img", descriptor=DESCRIPTOR))

    assert resolution.identity_id == "U1"
    assert resolution.source == MatchSource.DESCRIPTOR
    assert resolution.confidence == 100.0


def test_search_failure_without_descriptor_propagates(registry):
    search = FakeFaceSearch(error=ResolverFailure("throttled"))

    with pytest.raises(ResolverFailure):
        _service(registry, search).resolve(FaceQuery(image=b"img"))


def test_image_without_configured_search_fails(registry):
    with pytest.raises(ResolverFailure):
        _service(registry).resolve(FaceQuery(image=b"img"))


def test_descriptor_only_query(registry):
    search = FakeFaceSearch(match=None)

    resolution = _service(registry, search).resolve(FaceQuery(descriptor=DESCRIPTOR))

    assert resolution.identity_id == "U1"
    assert search.calls == 0


def test_descriptor_too_far_is_no_match(registry):
    far = tuple([0.0, 1.0] + [0.0] * 126)

    assert _service(registry).resolve(FaceQuery(descriptor=far)) is None


def test_image_url_is_downloaded_then_searched(registry):
    search = FakeFaceSearch(FaceMatch(face_id="face-u1", external_image_id="U1", similarity=95.0))
    images = FakeImageSource(data=b"jpeg-bytes")

    resolution = _service(registry, search, images).resolve(FaceQuery(image_url="https://cdn.example.com/u1.jpg"))

    assert resolution.identity_id == "U1"
    assert images.urls == ["https://cdn.example.com/u1.jpg"]
    assert search.images == [b"jpeg-bytes"]


def test_inline_image_skips_download(registry):
    search = FakeFaceSearch(FaceMatch(face_id="face-u1", external_image_id="U1", similarity=95.0))
    images = FakeImageSource()

    _service(registry, search, images).resolve(FaceQuery(image=b"img", image_url="https://cdn.example.com/u1.jpg"))

    assert images.urls == []
    assert search.images == [b"img"]


def test_failed_download_falls_back_to_descriptor(registry):
    search = FakeFaceSearch(match=None)
    images = FakeImageSource(error=ResolverFailure("Could not download imageUrl: 404", retryable=False))

    resolution = _service(registry, search, images).resolve(
        FaceQuery(image_url="https://cdn.example.com/u1.jpg", descriptor=DESCRIPTOR)
    )

    assert resolution.source == MatchSource.DESCRIPTOR
    assert search.calls == 0


def test_image_url_without_configured_download_fails(registry):
    search = FakeFaceSearch(match=None)

    with pytest.raises(ResolverFailure, match="download is not configured"):
        _service(registry, search).resolve(FaceQuery(image_url="https://cdn.example.com/u1.jpg"))
