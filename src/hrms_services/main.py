from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.retry import RetryPolicy
from .container import Container, build_container
from .payroll.controller import register as register_payroll

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_backend = getattr(settings, "DB_BACKEND", "mysql")
        db_config = getattr(settings, "DB_CONFIG", None)
        container = build_container(
            db_config=db_config,
            db_backend=db_backend,
            retry_policy=RetryPolicy(
                max_attempts=int(getattr(settings, "RETRY_MAX_ATTEMPTS", 3)),
                delay_seconds=float(getattr(settings, "RETRY_DELAY_SECONDS", 0.5)),
                backoff=float(getattr(settings, "RETRY_BACKOFF", 2.0)),
            ),
            payroll_batch_size=int(getattr(settings, "PAYROLL_BATCH_SIZE", 100)),
        )
        if db_backend == "mysql" and db_config:
            logger.info(
                "settings=%s db=%s@%s:%s/%s",
                settings_module,
                db_config.get("user"),
                db_config.get("host"),
                db_config.get("port", 3306),
                db_config.get("database"),
            )
        else:
            logger.info("settings=%s db=%s", settings_module, db_backend)

    app.extensions["hrms_container"] = container
    register_attendance(app, container)
    register_payroll(app, container)

    return app
