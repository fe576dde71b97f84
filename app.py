#!/usr/bin/env python3
"""
Indent Desk — Application Entry Point
Creates the Flask app, wires the sheet store and registers the blueprints.
"""

import os
import logging
from flask import Flask

from logging_config import setup_logging


def create_app(overrides: dict = None):
    """Application factory."""
    from indent_desk.core.config import load_config
    from indent_desk.core.session import FormContext
    from indent_desk.core.store_client import get_store

    setup_logging()
    cfg = load_config(overrides=overrides)

    app = Flask(__name__)
    app.secret_key = cfg["secret_key"]
    app.config["INDENT"] = cfg

    # ── Local sheet init (also backs /exec for remote clients) ───────────────
    try:
        from indent_desk.core.db import startup as db_startup
        result = db_startup()
        logging.getLogger("indent").info(
            "Sheet DB: %s | issue_rows=%d master_items=%d",
            result["db_path"],
            result["stats"].get("issue_rows", 0),
            result["stats"].get("master_items", 0),
        )
    except Exception as e:
        logging.getLogger("indent").warning("Sheet DB init skipped: %s", e)

    # ── Form snapshot ─────────────────────────────────────────────────────────
    ctx = FormContext(get_store(cfg))
    ctx.refresh()
    app.extensions["indent_context"] = ctx

    from indent_desk.api.dashboard import bp
    from indent_desk.api.sheet_api import sheet_bp
    app.register_blueprint(bp)
    app.register_blueprint(sheet_bp)

    try:
        from indent_desk.core.security import init_security
        init_security(app)
    except Exception as e:
        logging.getLogger("indent").warning("Security init skipped: %s", e)

    try:
        from indent_desk.core.startup_checks import run_startup_checks
        with app.app_context():
            checks = run_startup_checks(app, ctx)
            if checks["failed"] > 0:
                logging.getLogger("indent").error(
                    "STARTUP: %d checks FAILED — review logs", checks["failed"])
    except Exception as e:
        logging.getLogger("indent").warning("Startup checks skipped: %s", e)

    return app


if __name__ == "__main__":
    app = create_app()
    port = int(os.environ.get("PORT", 5000))
    app.run(host="0.0.0.0", port=port, debug=False)
