from __future__ import annotations

import importlib
import logging
from logging.config import dictConfig
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.web import ApiJSONProvider, register_error_handlers
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables
from .holidays.controller import register as register_holidays
from .leave.controller import register as register_leave
from .qr.controller import register as register_qr
from .reports.controller import register as register_reports
from .storage.controller import register as register_storage
from .working_hours.controller import register as register_working_hours

logger = logging.getLogger(__name__)

_ROOT = Path(__file__).resolve().parents[2]


def configure_logging(level: str) -> None:
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": "[%(asctime)s] %(levelname)s in %(name)s: %(message)s"},
            },
            "handlers": {
                "console": {"class": "logging.StreamHandler", "formatter": "default"},
            },
            "root": {"level": level.upper(), "handlers": ["console"]},
        }
    )


def create_app(
    container: Optional[Container] = None,
    settings_overrides: Optional[Mapping[str, Any]] = None,
) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)
    app.json = ApiJSONProvider(app)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    overrides = dict(settings_overrides or {})

    def setting(name: str, default: Any = None) -> Any:
        return overrides.get(name, getattr(settings, name, default))

    configure_logging(setting("LOG_LEVEL", "INFO"))

    app.secret_key = setting("SECRET_KEY")
    app.config["DEBUG"] = bool(setting("DEBUG", False))
    app.config["TESTING"] = bool(setting("TESTING", False))
    app.config["MAX_CONTENT_LENGTH"] = setting("MAX_CONTENT_LENGTH")
    db_config = setting("DB_CONFIG")

    if container is None:
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        if setting("AUTO_INIT_DB", False):
            apply_schema(db_config, schema_path=_ROOT / "database" / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if setting("AUTO_SEED_DB", False):
            apply_seed_sql(db_config, seed_path=_ROOT / "database" / "seed.sql")
            logger.info("demo seed ready")

        container = build_container(
            db_config=db_config,
            secret_key=app.secret_key,
            storage_root=setting("STORAGE_ROOT"),
            storage_url_base=setting("STORAGE_URL_BASE"),
            frontend_url=setting("FRONTEND_URL"),
            default_annual_quota=int(setting("DEFAULT_ANNUAL_QUOTA", 12)),
            qr_default_expiry_minutes=int(setting("QR_DEFAULT_EXPIRY_MINUTES", 10)),
        )

    app.extensions["container"] = container

    register_error_handlers(app)
    register_attendance(app, container)
    register_reports(app, container)
    register_working_hours(app, container)
    register_holidays(app, container)
    register_leave(app, container)
    register_qr(app, container)
    register_storage(app, container)

    return app
