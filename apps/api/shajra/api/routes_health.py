# apps/api/shajra/api/routes_health.py
from __future__ import annotations
import logging
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..infra.db import models

log = logging.getLogger(__name__)
health_bp = Blueprint("health", __name__)


@health_bp.get("/healthz")
def healthz():
    return jsonify({"status": "ok"}), 200


@health_bp.get("/api/health")
def health():
    """Configuration, database connectivity and schema checks."""
    report = {
        "status": "checking",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {"environment": False, "database": False, "tables": False},
        "details": {},
    }

    has_url = bool(current_app.config.get("DATABASE_URL"))
    has_secret = bool(current_app.config.get("SECRET_KEY"))
    report["checks"]["environment"] = has_url and has_secret
    report["details"]["environment"] = {"hasDatabaseUrl": has_url, "hasSecretKey": has_secret}
    if not report["checks"]["environment"]:
        report["status"] = "error"
        report["details"]["error"] = "Missing configuration"
        return jsonify(report), 503

    try:
        with models.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        report["checks"]["database"] = True
        missing = models.missing_tables()
        report["checks"]["tables"] = not missing
        report["details"]["tables"] = {t.name: t.name not in missing for t in models.Base.metadata.sorted_tables}
    except SQLAlchemyError as e:
        log.warning("Health check database error: %s", e)
        report["details"]["database_error"] = str(e)

    healthy = all(report["checks"].values())
    report["status"] = "healthy" if healthy else "unhealthy"
    return jsonify(report), 200 if healthy else 503
