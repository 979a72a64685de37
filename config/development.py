import os

from .config import Config, _flag

SECRET_KEY = Config.SECRET_KEY
DB_CONFIG = Config.db_config()

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

STORE_BACKEND = Config.STORE_BACKEND
# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = _flag("AUTO_INIT_DB", "1")

TIME_ZONE = Config.TIME_ZONE
MIN_PUNCH_INTERVAL_SECONDS = Config.MIN_PUNCH_INTERVAL_SECONDS
PUNCH_RETRY_ATTEMPTS = Config.PUNCH_RETRY_ATTEMPTS
PUNCH_RETRY_BACKOFF_SECONDS = Config.PUNCH_RETRY_BACKOFF_SECONDS

SIMILARITY_THRESHOLD = Config.SIMILARITY_THRESHOLD
DESCRIPTOR_MATCH_THRESHOLD = Config.DESCRIPTOR_MATCH_THRESHOLD
REKOGNITION_ENABLED = Config.REKOGNITION_ENABLED
AWS_REGION = Config.AWS_REGION
REKOGNITION_COLLECTION = Config.REKOGNITION_COLLECTION
REKOGNITION_MAX_FACES = Config.REKOGNITION_MAX_FACES
IMAGE_FETCH_TIMEOUT_SECONDS = Config.IMAGE_FETCH_TIMEOUT_SECONDS
