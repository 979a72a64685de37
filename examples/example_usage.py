"""Example: drive the service layer directly (no Flask).

Uses the in-memory backend, so no MySQL or AWS credentials are needed.
"""

from src.attendance_kiosk.attendance_kiosk.container import KioskSettings, build_container
from src.attendance_kiosk.attendance_kiosk.core.enums import StoreBackend


def main():
    settings = KioskSettings(db_config={}, store_backend=StoreBackend.MEMORY, rekognition_enabled=False)
    container = build_container(settings)

    container.identity_service.register(identity_id="S-001", name="Asha Rao", role="student")

    print(container.punch_service.submit("S-001"))  # punched in
    print(container.punch_service.submit("S-001"))  # too soon: inside the cooldown
    print(container.report_service.get_by_identity_and_day("S-001"))


if __name__ == "__main__":
    main()
