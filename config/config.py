import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "change-me"

    DB_BACKEND = os.environ.get("DB_BACKEND", "mysql")
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "hrms")

    RETRY_MAX_ATTEMPTS = int(os.environ.get("RETRY_MAX_ATTEMPTS", "3"))
    RETRY_DELAY_SECONDS = float(os.environ.get("RETRY_DELAY_SECONDS", "0.5"))
    RETRY_BACKOFF = float(os.environ.get("RETRY_BACKOFF", "2.0"))

    PAYROLL_BATCH_SIZE = int(os.environ.get("PAYROLL_BATCH_SIZE", "100"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    @classmethod
    def db_config(cls) -> dict:
        return {
            "host": cls.DB_HOST,
            "port": cls.DB_PORT,
            "user": cls.DB_USER,
            "password": cls.DB_PASSWORD,
            "database": cls.DB_NAME,
        }
