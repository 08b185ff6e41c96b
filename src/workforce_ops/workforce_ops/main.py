from __future__ import annotations

import importlib
import logging
from decimal import Decimal
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .database.bootstrap import apply_schema, apply_seed_sql, list_tables

from .container import Container, build_container
from .bank_accounts.controller import register as register_bank_accounts
from .payroll.controller import register as register_payroll
from .profiles.controller import register as register_profiles
from .rosters.controller import register as register_rosters
from .working_hours.controller import register as register_working_hours

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(*, container: Optional[Container] = None) -> Flask:
    """Application factory.

    Passing ``container`` skips settings-driven DB bootstrap (tests wire in-memory repositories).
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        root = Path(__file__).resolve().parents[3]
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=root / "database" / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=root / "database" / "seed.sql")
            logger.info("demo seed ready")

        container = build_container(
            db_config=db_config,
            deduction_rate=Decimal(str(getattr(settings, "PAYROLL_DEDUCTION_RATE", "0.10"))),
            overtime_multiplier=Decimal(str(getattr(settings, "OVERTIME_MULTIPLIER", "1.5"))),
        )

    register_profiles(app, container)
    register_rosters(app, container)
    register_working_hours(app, container)
    register_payroll(app, container)
    register_bank_accounts(app, container)

    return app
