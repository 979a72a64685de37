from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import Container, KioskSettings, build_container
from .core.enums import StoreBackend
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig
from .identities.controller import register as register_identities
from .recognition.controller import register as register_recognition
from .reports.controller import register as register_reports

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=LOG_FORMAT)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    if container is None:
        kiosk_settings = KioskSettings.from_module(settings)
        if kiosk_settings.store_backend == StoreBackend.MYSQL and bool(getattr(settings, "AUTO_INIT_DB", False)):
            db_config = DBConfig.from_dict(kiosk_settings.db_config)
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
        container = build_container(kiosk_settings)

    logger.info(
        "Kiosk settings=%s store=%s tz=%s cooldown=%ss rekognition=%s",
        settings_module,
        container.settings.store_backend.value,
        container.settings.time_zone,
        container.settings.cooldown_seconds,
        "on" if container.face_search is not None else "off",
    )

    @app.route("/healthz", methods=["GET"], endpoint="healthz")
    def healthz():
        return jsonify({"status": "ok"}), 200

    register_identities(app, container)
    register_recognition(app, container)
    register_attendance(app, container)
    register_reports(app, container)

    return app
