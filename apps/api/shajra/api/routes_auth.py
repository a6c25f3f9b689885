# apps/api/shajra/api/routes_auth.py
from __future__ import annotations
from contextlib import contextmanager
from functools import wraps
from typing import Iterator, Optional

from flask import Blueprint, jsonify, session

from ..errors import Unauthorized
from ..infra.db.store import open_store
from ..services.context import ServiceContext

auth_bp = Blueprint("auth_bp", __name__)


def current_principal() -> Optional[str]:
    # The identity provider writes user_id into the signed session cookie
    return session.get("user_id")


def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_principal():
            raise Unauthorized()
        return f(*args, **kwargs)
    return decorated_function


@contextmanager
def service_context() -> Iterator[ServiceContext]:
    """One store session per request, closed on the way out."""
    with open_store() as store:
        yield ServiceContext(store=store, current_principal=current_principal)


@auth_bp.route("/auth/status")
def auth_status():
    user_id = current_principal()
    return jsonify({"ok": bool(user_id), "user": {"id": user_id, "name": session.get("user_name")}})


@auth_bp.route("/logout", methods=["POST", "GET"])
def logout():
    session.clear()
    return jsonify({"ok": True})
