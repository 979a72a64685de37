import os


def _flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    """Values shared by every environment; each settings module starts from these."""

    SECRET_KEY = os.environ.get("SECRET_KEY") or "change-me"

    # Database
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "attendance_kiosk")

    # "mysql" or "memory" (process-local, for demos)
    STORE_BACKEND = os.environ.get("STORE_BACKEND", "mysql")
    AUTO_INIT_DB = _flag("AUTO_INIT_DB")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Punch rules
    TIME_ZONE = os.environ.get("TIME_ZONE", "Asia/Kolkata")
    MIN_PUNCH_INTERVAL_SECONDS = int(os.environ.get("MIN_PUNCH_INTERVAL_SECONDS", "60"))
    PUNCH_RETRY_ATTEMPTS = int(os.environ.get("PUNCH_RETRY_ATTEMPTS", "3"))
    PUNCH_RETRY_BACKOFF_SECONDS = float(os.environ.get("PUNCH_RETRY_BACKOFF_SECONDS", "0.2"))

    # Face matching
    SIMILARITY_THRESHOLD = float(os.environ.get("SIMILARITY_THRESHOLD", "85"))
    DESCRIPTOR_MATCH_THRESHOLD = float(
        os.environ.get("DESCRIPTOR_MATCH_THRESHOLD", os.environ.get("MATCH_THRESHOLD", "0.45"))
    )
    REKOGNITION_ENABLED = _flag("REKOGNITION_ENABLED", "1")
    AWS_REGION = os.environ.get("AWS_REGION", "ap-south-1")
    REKOGNITION_COLLECTION = os.environ.get(
        "REKOGNITION_COLLECTION", os.environ.get("REKOG_COLLECTION", "students-collection")
    )
    REKOGNITION_MAX_FACES = int(os.environ.get("REKOGNITION_MAX_FACES", "3"))
    IMAGE_FETCH_TIMEOUT_SECONDS = float(os.environ.get("IMAGE_FETCH_TIMEOUT_SECONDS", "15"))

    @classmethod
    def db_config(cls) -> dict:
        return {
            "host": cls.DB_HOST,
            "port": cls.DB_PORT,
            "user": cls.DB_USER,
            "password": cls.DB_PASSWORD,
            "database": cls.DB_NAME,
        }
