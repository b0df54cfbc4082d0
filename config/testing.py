SECRET_KEY = "test-secret"

DB_BACKEND = "memory"
DB_CONFIG = None

RETRY_MAX_ATTEMPTS = 3
RETRY_DELAY_SECONDS = 0.0
RETRY_BACKOFF = 1.0
PAYROLL_BATCH_SIZE = 100

LOG_LEVEL = "WARNING"
DEBUG = False
TESTING = True
