"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_TIME_ZONE = "Asia/Kolkata"
DEFAULT_COOLDOWN_SECONDS = 60

DEFAULT_SIMILARITY_THRESHOLD = 85.0
DEFAULT_DESCRIPTOR_MATCH_THRESHOLD = 0.45
MIN_DESCRIPTOR_LENGTH = 64

DEFAULT_AWS_REGION = "ap-south-1"
DEFAULT_REKOGNITION_COLLECTION = "students-collection"
DEFAULT_REKOGNITION_MAX_FACES = 3

DEFAULT_IMAGE_FETCH_TIMEOUT_SECONDS = 15.0
# Rekognition rejects raw image bytes above 5 MB.
MAX_IMAGE_BYTES = 5 * 1024 * 1024

DEFAULT_PUNCH_RETRY_ATTEMPTS = 3
DEFAULT_PUNCH_RETRY_BACKOFF_SECONDS = 0.2

INDEX_FACE_ATTEMPTS = 3
INDEX_FACE_BACKOFF_SECONDS = 0.5

DEFAULT_REPORT_DAYS = 7
MAX_REPORT_DAYS = 366

DAY_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M:%S"
