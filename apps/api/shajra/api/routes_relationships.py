# apps/api/shajra/api/routes_relationships.py
from __future__ import annotations
from flask import Blueprint, jsonify, request

from .routes_auth import login_required, service_context
from ..services import family_members
from ..services.records import RelationshipInput

relationships_bp = Blueprint("relationships_bp", __name__, url_prefix="/api/relationships")


@relationships_bp.route("", methods=["POST"])
@login_required
def create_relationship():
    data = RelationshipInput.from_json(request.get_json(silent=True) or {})
    with service_context() as ctx:
        rel = family_members.create_relationship(ctx, data)
    return jsonify({"ok": True, "data": rel.to_dict(), "message": "Relationship created successfully"}), 201


@relationships_bp.route("/<string:relationship_id>", methods=["DELETE"])
@login_required
def delete_relationship(relationship_id: str):
    with service_context() as ctx:
        family_members.delete_relationship(ctx, relationship_id)
    return jsonify({"ok": True, "message": "Relationship deleted successfully"})
