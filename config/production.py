import os

from config.config import Config

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_BACKEND = os.getenv("DB_BACKEND", "mysql")
DB_CONFIG = Config.db_config()

RETRY_MAX_ATTEMPTS = Config.RETRY_MAX_ATTEMPTS
RETRY_DELAY_SECONDS = Config.RETRY_DELAY_SECONDS
RETRY_BACKOFF = Config.RETRY_BACKOFF
PAYROLL_BATCH_SIZE = Config.PAYROLL_BATCH_SIZE

LOG_LEVEL = Config.LOG_LEVEL
DEBUG = False
