"""Create the Rekognition face collection used for registration and matching."""
from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.attendance_kiosk.attendance_kiosk.container import KioskSettings
from src.attendance_kiosk.attendance_kiosk.core.exceptions import ResolverFailure
from src.attendance_kiosk.attendance_kiosk.recognition.rekognition import RekognitionFaceSearch


def main() -> int:
    load_dotenv(override=False)
    settings = KioskSettings.from_module(importlib.import_module(get_settings_module()))
    search = RekognitionFaceSearch.create(
        region=settings.aws_region,
        collection_id=settings.rekognition_collection,
        similarity_threshold=settings.similarity_threshold,
        max_faces=settings.rekognition_max_faces,
    )
    try:
        created = search.create_collection()
    except ResolverFailure as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    state = "created" if created else "already exists"
    print(f"OK: collection {search.collection_id!r} {state} ({settings.aws_region})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
