from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .container import build_container
from .database.bootstrap import apply_schema, list_tables
from .organizations.controller import register as register_organizations
from .settings import get_settings_module
from .timelogs.controller import register as register_timelogs

logger = logging.getLogger(__name__)


def create_app(settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    backend = getattr(settings, "STORAGE_BACKEND", "memory")
    db_config = getattr(settings, "DB_CONFIG", None)
    logger.info("Starting time clock settings=%s backend=%s", settings_module, backend)

    if backend == "mysql" and bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config)
        logger.debug("Schema ready (tables=%d)", len(list_tables(db_config)))

    container = build_container(backend=backend, db_config=db_config)
    app.extensions["timeclock"] = container

    register_organizations(app, container)
    register_timelogs(app, container)

    return app
