from .config import Config

SECRET_KEY = "test-secret"
DB_CONFIG = Config.db_config()

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

# Tests never need a MySQL server or AWS credentials.
STORE_BACKEND = "memory"
AUTO_INIT_DB = False

TIME_ZONE = "+05:30"
MIN_PUNCH_INTERVAL_SECONDS = 60
PUNCH_RETRY_ATTEMPTS = 3
PUNCH_RETRY_BACKOFF_SECONDS = 0.0

SIMILARITY_THRESHOLD = 85.0
DESCRIPTOR_MATCH_THRESHOLD = 0.45
REKOGNITION_ENABLED = False
AWS_REGION = Config.AWS_REGION
REKOGNITION_COLLECTION = "test-collection"
REKOGNITION_MAX_FACES = 3
IMAGE_FETCH_TIMEOUT_SECONDS = 2.0
