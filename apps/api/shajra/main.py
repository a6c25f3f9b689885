# apps/api/shajra/main.py
from __future__ import annotations
import logging
import os

import click
from dotenv import load_dotenv
from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from .errors import ShajraError
from .infra.db import models

log = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ShajraError)
    def _shajra_error(e: ShajraError):
        if e.status_code >= 500:
            log.error("%s %s failed: %s (%s)", request.method, request.path, e.message, e.details)
        return jsonify({"ok": False, "error": e.message}), e.status_code

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        if request.path.startswith("/api/"):
            return jsonify({"ok": False, "error": e.description}), e.code
        return e

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        log.exception("Unexpected error on %s %s", request.method, request.path)
        return jsonify({"ok": False, "error": "Internal server error"}), 500


def create_app(test_config: dict | None = None) -> Flask:
    load_dotenv()
    app = Flask(__name__)

    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", "dev-secret-key")
    app.config["DATABASE_URL"] = os.getenv("DATABASE_URL", models.DATABASE_URL)
    app.config["LOG_LEVEL"] = os.getenv("LOG_LEVEL", "INFO")
    app.config.update(
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Lax",
    )
    if test_config:
        app.config.update(test_config)

    _configure_logging(app.config["LOG_LEVEL"])
    models.configure_engine(app.config["DATABASE_URL"])

    with app.app_context():
        models.init_db()

    # Blueprints
    from .api.routes_auth import auth_bp, current_principal
    from .api.routes_health import health_bp
    from .api.routes_trees import trees_bp
    from .api.routes_members import members_bp
    from .api.routes_relationships import relationships_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(health_bp)
    app.register_blueprint(trees_bp)
    app.register_blueprint(members_bp)
    app.register_blueprint(relationships_bp)

    _register_error_handlers(app)

    @app.before_request
    def _debug_principal():
        if app.debug and request.path.startswith("/api/"):
            log.debug("%s %s as %s", request.method, request.path, current_principal() or "anonymous")

    @app.cli.command("init-db")
    def init_db_command():
        """Create the tables and report any that are still missing."""
        models.init_db()
        missing = models.missing_tables()
        if missing:
            raise click.ClickException(f"Tables still missing: {', '.join(missing)}")
        click.echo(f"Database ready at {app.config['DATABASE_URL']}")

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="127.0.0.1", port=5000)
