from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .attendance.memory_punch_repository import InMemoryPunchRepository
from .attendance.mysql_punch_repository import MySQLPunchRepository
from .attendance.repository import PunchRepository
from .attendance.service import PunchService, PunchStateMachine
from .common.datetime_utils import Clock, parse_time_zone
from .core import constants
from .core.enums import StoreBackend
from .core.exceptions import ValidationError
from .database.connection import DatabaseConnection, DBConfig
from .identities.memory_identity_repository import InMemoryIdentityRepository
from .identities.mysql_identity_repository import MySQLIdentityRepository
from .identities.repository import IdentityRepository
from .identities.service import IdentityService
from .recognition.descriptor import DescriptorMatcher
from .recognition.image_fetcher import HttpImageFetcher
from .recognition.rekognition import RekognitionFaceSearch
from .recognition.resolver import ImageSource
from .recognition.service import FaceVerificationService
from .reports.service import AttendanceReportService


@dataclass(frozen=True)
class KioskSettings:
    """Typed view over a settings module (see ``config/``)."""

    db_config: dict
    store_backend: StoreBackend = StoreBackend.MYSQL
    time_zone: str = constants.DEFAULT_TIME_ZONE
    cooldown_seconds: int = constants.DEFAULT_COOLDOWN_SECONDS
    retry_attempts: int = constants.DEFAULT_PUNCH_RETRY_ATTEMPTS
    retry_backoff_seconds: float = constants.DEFAULT_PUNCH_RETRY_BACKOFF_SECONDS
    similarity_threshold: float = constants.DEFAULT_SIMILARITY_THRESHOLD
    descriptor_threshold: float = constants.DEFAULT_DESCRIPTOR_MATCH_THRESHOLD
    rekognition_enabled: bool = True
    aws_region: str = constants.DEFAULT_AWS_REGION
    rekognition_collection: str = constants.DEFAULT_REKOGNITION_COLLECTION
    rekognition_max_faces: int = constants.DEFAULT_REKOGNITION_MAX_FACES
    image_fetch_timeout_seconds: float = constants.DEFAULT_IMAGE_FETCH_TIMEOUT_SECONDS

    @classmethod
    def from_module(cls, settings: Any) -> "KioskSettings":
        try:
            backend = StoreBackend(str(getattr(settings, "STORE_BACKEND", "mysql")).lower())
        except ValueError:
            raise ValidationError("STORE_BACKEND must be 'mysql' or 'memory'")

        return cls(
            db_config=dict(getattr(settings, "DB_CONFIG", {})),
            store_backend=backend,
            time_zone=str(getattr(settings, "TIME_ZONE", constants.DEFAULT_TIME_ZONE)),
            cooldown_seconds=int(getattr(settings, "MIN_PUNCH_INTERVAL_SECONDS", constants.DEFAULT_COOLDOWN_SECONDS)),
            retry_attempts=int(getattr(settings, "PUNCH_RETRY_ATTEMPTS", constants.DEFAULT_PUNCH_RETRY_ATTEMPTS)),
            retry_backoff_seconds=float(
                getattr(settings, "PUNCH_RETRY_BACKOFF_SECONDS", constants.DEFAULT_PUNCH_RETRY_BACKOFF_SECONDS)
            ),
            similarity_threshold=float(getattr(settings, "SIMILARITY_THRESHOLD", constants.DEFAULT_SIMILARITY_THRESHOLD)),
            descriptor_threshold=float(
                getattr(settings, "DESCRIPTOR_MATCH_THRESHOLD", constants.DEFAULT_DESCRIPTOR_MATCH_THRESHOLD)
            ),
            rekognition_enabled=bool(getattr(settings, "REKOGNITION_ENABLED", True)),
            aws_region=str(getattr(settings, "AWS_REGION", constants.DEFAULT_AWS_REGION)),
            rekognition_collection=str(
                getattr(settings, "REKOGNITION_COLLECTION", constants.DEFAULT_REKOGNITION_COLLECTION)
            ),
            rekognition_max_faces=int(getattr(settings, "REKOGNITION_MAX_FACES", constants.DEFAULT_REKOGNITION_MAX_FACES)),
            image_fetch_timeout_seconds=float(
                getattr(settings, "IMAGE_FETCH_TIMEOUT_SECONDS", constants.DEFAULT_IMAGE_FETCH_TIMEOUT_SECONDS)
            ),
        )

    def validate(self) -> None:
        if self.cooldown_seconds < 1:
            raise ValidationError("MIN_PUNCH_INTERVAL_SECONDS must be at least 1")
        if not 0 <= self.similarity_threshold <= 100:
            raise ValidationError("SIMILARITY_THRESHOLD must be between 0 and 100")
        if self.descriptor_threshold <= 0:
            raise ValidationError("DESCRIPTOR_MATCH_THRESHOLD must be positive")
        if self.retry_attempts < 1:
            raise ValidationError("PUNCH_RETRY_ATTEMPTS must be at least 1")
        if self.image_fetch_timeout_seconds <= 0:
            raise ValidationError("IMAGE_FETCH_TIMEOUT_SECONDS must be positive")


@dataclass(frozen=True)
class Container:
    settings: KioskSettings
    clock: Clock
    conn: Optional[DatabaseConnection]

    identities_repo: IdentityRepository
    punches_repo: PunchRepository
    face_search: Optional[RekognitionFaceSearch]
    image_source: ImageSource

    identity_service: IdentityService
    verification_service: FaceVerificationService
    punch_service: PunchService
    report_service: AttendanceReportService


def build_container(
    settings: KioskSettings,
    *,
    clock: Optional[Clock] = None,
    identities_repo: Optional[IdentityRepository] = None,
    punches_repo: Optional[PunchRepository] = None,
    face_search: Optional[RekognitionFaceSearch] = None,
    image_source: Optional[ImageSource] = None,
) -> Container:
    """Build every collaborator once; keyword overrides are for tests."""
    settings.validate()
    clock = clock or Clock(parse_time_zone(settings.time_zone))

    conn: Optional[DatabaseConnection] = None
    if settings.store_backend == StoreBackend.MYSQL:
        conn = DatabaseConnection(DBConfig.from_dict(settings.db_config))
        identities_repo = identities_repo or MySQLIdentityRepository(conn)
        punches_repo = punches_repo or MySQLPunchRepository(conn)
    else:
        identities_repo = identities_repo or InMemoryIdentityRepository()
        punches_repo = punches_repo or InMemoryPunchRepository()

    if face_search is None and settings.rekognition_enabled:
        face_search = RekognitionFaceSearch.create(
            region=settings.aws_region,
            collection_id=settings.rekognition_collection,
            similarity_threshold=settings.similarity_threshold,
            max_faces=settings.rekognition_max_faces,
        )

    image_source = image_source or HttpImageFetcher(timeout=settings.image_fetch_timeout_seconds)

    state_machine = PunchStateMachine(
        punches_repo,
        identities_repo,
        clock,
        cooldown_seconds=settings.cooldown_seconds,
    )
    punch_service = PunchService(
        state_machine,
        retry_attempts=settings.retry_attempts,
        retry_backoff_seconds=settings.retry_backoff_seconds,
    )
    identity_service = IdentityService(identities_repo, clock, face_search, image_source)
    verification_service = FaceVerificationService(
        identities_repo,
        DescriptorMatcher(threshold=settings.descriptor_threshold),
        face_search,
        image_source,
    )
    report_service = AttendanceReportService(punches_repo, clock)

    return Container(
        settings=settings,
        clock=clock,
        conn=conn,
        identities_repo=identities_repo,
        punches_repo=punches_repo,
        face_search=face_search,
        image_source=image_source,
        identity_service=identity_service,
        verification_service=verification_service,
        punch_service=punch_service,
        report_service=report_service,
    )
