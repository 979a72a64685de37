from __future__ import annotations

import pytest

from src.attendance_kiosk.attendance_kiosk.core.enums import Role
from src.attendance_kiosk.attendance_kiosk.core.exceptions import (
    DuplicateIdentity,
    IdentityNotFound,
    ResolverFailure,
    ValidationError,
)
from src.attendance_kiosk.attendance_kiosk.identities.memory_identity_repository import InMemoryIdentityRepository
from src.attendance_kiosk.attendance_kiosk.identities.service import IdentityService


class FakeIndexer:
    def __init__(self, *results):
        self._results = list(results)
        self.calls = []

    def index_face(self, image, *, external_image_id):
        self.calls.append(external_image_id)
        result = self._results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class FakeImageSource:
    def __init__(self, *results):
        self._results = list(results)
        self.urls = []

    def fetch(self, url):
        self.urls.append(url)
        result = self._results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def repo():
    return InMemoryIdentityRepository()


def _service(repo, clock, indexer=None, sleeps=None, images=None):
    return IdentityService(
        repo,
        clock,
        indexer,
        images,
        index_attempts=3,
        index_backoff_seconds=0.5,
        sleep=(sleeps.append if sleeps is not None else lambda _: None),
    )


def test_register_without_image(repo, clock):
    result = _service(repo, clock).register(identity_id=" U9 ", name="Meera", role="Student")

    assert result.identity.identity_id == "U9"
    assert result.identity.role == Role.STUDENT
    assert not result.indexed
    assert result.indexing_error is None
    assert repo.get_by_id("U9") is not None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"identity_id": "", "name": "Meera", "role": "student"},
        {"identity_id": "U9", "name": "  ", "role": "student"},
        {"identity_id": "U9", "name": "Meera", "role": "admin"},
        {"identity_id": "U9", "name": "Meera", "role": "student", "descriptor": [0.1] * 10},
    ],
)
def test_register_validates_input(repo, clock, kwargs):
    with pytest.raises(ValidationError):
        _service(repo, clock).register(**kwargs)
    assert repo.get_by_id("U9") is None


def test_register_duplicate_id(repo, clock):
    service = _service(repo, clock)
    service.register(identity_id="U9", name="Meera", role="student")

    with pytest.raises(DuplicateIdentity):
        service.register(identity_id="U9", name="Someone Else", role="faculty")
    assert repo.get_by_id("U9").name == "Meera"


def test_register_stores_descriptor(repo, clock):
    result = _service(repo, clock).register(identity_id="U9", name="Meera", role="student", descriptor=[0.5] * 128)

    assert len(result.identity.face_descriptors) == 1
    assert repo.list_with_descriptors()[0].identity_id == "U9"


def test_register_indexes_face(repo, clock, fixed_now):
    indexer = FakeIndexer(["face-1"])

    result = _service(repo, clock, indexer).register(identity_id="U9", name="Meera", role="student", image=b"img")

    assert result.indexed
    assert result.identity.face_ids == ("face-1",)
    stored = repo.get_by_id("U9")
    assert stored.external_image_id == "U9"
    assert stored.indexed_at == fixed_now
    assert repo.get_by_face_id("face-1").identity_id == "U9"


def test_indexing_retries_transient_failures(repo, clock):
    sleeps = []
    indexer = FakeIndexer(ResolverFailure("throttled"), ResolverFailure("throttled"), ["face-1"])

    result = _service(repo, clock, indexer, sleeps).register(
        identity_id="U9", name="Meera", role="student", image=b"img"
    )

    assert result.indexed
    assert len(indexer.calls) == 3
    assert sleeps == [0.5, 1.0]


def test_indexing_failure_keeps_registration(repo, clock):
    indexer = FakeIndexer(*[ResolverFailure("throttled")] * 3)

    result = _service(repo, clock, indexer).register(identity_id="U9", name="Meera", role="student", image=b"img")

    assert not result.indexed
    assert "after 3 attempts" in result.indexing_error
    assert repo.get_by_id("U9") is not None
    assert not repo.get_by_id("U9").is_indexed


def test_fatal_indexing_error_is_not_retried(repo, clock):
    sleeps = []
    indexer = FakeIndexer(ResolverFailure("collection missing", retryable=False))

    result = _service(repo, clock, indexer, sleeps).register(
        identity_id="U9", name="Meera", role="student", image=b"img"
    )

    assert not result.indexed
    assert result.indexing_error == "collection missing"
    assert len(indexer.calls) == 1
    assert sleeps == []


def test_image_without_indexer(repo, clock):
    result = _service(repo, clock).register(identity_id="U9", name="Meera", role="student", image=b"img")

    assert not result.indexed
    assert result.indexing_error == "Face indexing is not configured"


def test_register_indexes_downloaded_image(repo, clock):
    indexer = FakeIndexer(["face-1"])
    images = FakeImageSource(b"downloaded")

    result = _service(repo, clock, indexer, images=images).register(
        identity_id="U9", name="Meera", role="student", image_url="https://cdn.example.com/u9.jpg"
    )

    assert result.indexed
    assert images.urls == ["https://cdn.example.com/u9.jpg"]
    assert repo.get_by_id("U9").image_url == "https://cdn.example.com/u9.jpg"


def test_inline_image_is_indexed_without_download(repo, clock):
    indexer = FakeIndexer(["face-1"])
    images = FakeImageSource()

    result = _service(repo, clock, indexer, images=images).register(
        identity_id="U9", name="Meera", role="student", image=b"img", image_url="https://cdn.example.com/u9.jpg"
    )

    assert result.indexed
    assert images.urls == []


def test_failed_download_keeps_registration(repo, clock):
    indexer = FakeIndexer()
    images = FakeImageSource(ResolverFailure("Could not download imageUrl: 404 Client Error", retryable=False))

    result = _service(repo, clock, indexer, images=images).register(
        identity_id="U9", name="Meera", role="student", image_url="https://cdn.example.com/u9.jpg"
    )

    assert not result.indexed
    assert result.indexing_error.startswith("Could not download imageUrl")
    assert indexer.calls == []
    assert repo.get_by_id("U9") is not None


def test_image_url_without_download_configured(repo, clock):
    result = _service(repo, clock, FakeIndexer()).register(
        identity_id="U9", name="Meera", role="student", image_url="https://cdn.example.com/u9.jpg"
    )

    assert not result.indexed
    assert result.indexing_error == "Image download is not configured"


@pytest.mark.parametrize("url", ["ftp://cdn.example.com/u9.jpg", "u9.jpg", "https://"])
def test_register_rejects_non_http_image_url(repo, clock, url):
    with pytest.raises(ValidationError):
        _service(repo, clock).register(identity_id="U9", name="Meera", role="student", image_url=url)
    assert repo.get_by_id("U9") is None


def test_list_identities_sorted_by_name(repo, clock):
    service = _service(repo, clock)
    service.register(identity_id="U2", name="Zoya", role="student")
    service.register(identity_id="F1", name="Anil", role="faculty")

    assert [i.identity_id for i in service.list_identities()] == ["F1", "U2"]


def test_get_unknown_identity(repo, clock):
    with pytest.raises(IdentityNotFound):
        _service(repo, clock).get("U404")
