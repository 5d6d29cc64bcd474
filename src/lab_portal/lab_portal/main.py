from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .approvals.controller import register as register_approvals
from .attendance.controller import register as register_attendance
from .common.http import error_response
from .container import Container, build_container, build_store
from .core.exceptions import DomainError, StoreError
from .members.controller import register as register_members
from .members.seed import ensure_super_admin
from .store.base import DocumentStore

_logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def create_app(settings_module: Optional[str] = None, *, store: Optional[DocumentStore] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    backend = str(getattr(settings, "STORE_BACKEND", "memory")).lower()
    db_config = getattr(settings, "DB_CONFIG", None)
    if store is None:
        if backend == "mysql" and getattr(settings, "AUTO_INIT_DB", False):
            from .store.bootstrap import apply_schema, list_tables

            apply_schema(db_config, schema_path=SCHEMA_PATH)
            _logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
        store = build_store(
            backend,
            db_config=db_config,
            firebase_credentials=getattr(settings, "FIREBASE_CREDENTIALS", "") or None,
            max_attempts=int(getattr(settings, "TRANSACTION_MAX_ATTEMPTS", 5)),
        )
    _logger.info("Settings=%s store=%s", settings_module, type(store).__name__)

    container = build_container(
        store=store,
        id_prefix=getattr(settings, "ID_PREFIX", "SAE"),
        club_name=getattr(settings, "CLUB_NAME", "SAE CUSAT"),
    )

    if getattr(settings, "AUTO_SEED_DB", False):
        _seed(container, settings)

    register_error_handlers(app)
    app.extensions["lab_portal"] = container
    register_members(app, container)
    register_attendance(app, container)
    register_approvals(app, container)

    return app


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    @app.errorhandler(StoreError)
    def handle_portal_error(e):
        return error_response(e)


def _seed(container: Container, settings) -> None:
    email = getattr(settings, "SEED_ADMIN_EMAIL", "")
    password = getattr(settings, "SEED_ADMIN_PASSWORD", "")
    if not (email and password):
        _logger.warning("AUTO_SEED_DB is on but SEED_ADMIN_EMAIL/SEED_ADMIN_PASSWORD are not set; skipping seed")
        return
    ensure_super_admin(
        container.store,
        container.members_repo,
        container.auth,
        email=email,
        password=password,
        club_name=getattr(settings, "CLUB_NAME", "SAE CUSAT"),
    )
