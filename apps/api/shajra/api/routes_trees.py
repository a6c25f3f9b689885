# apps/api/shajra/api/routes_trees.py
from __future__ import annotations
from flask import Blueprint, jsonify, request

from .routes_auth import login_required, service_context
from ..services import family_trees
from ..services.chart import get_tree_chart
from ..services.records import TreeInput, TreePatch

trees_bp = Blueprint("trees_bp", __name__, url_prefix="/api/family-trees")


@trees_bp.route("", methods=["GET"])
@login_required
def list_trees():
    with service_context() as ctx:
        trees = family_trees.list_trees(ctx)
    return jsonify({"ok": True, "data": [t.to_dict() for t in trees]})


@trees_bp.route("", methods=["POST"])
@login_required
def create_tree():
    data = TreeInput.from_json(request.get_json(silent=True) or {})
    with service_context() as ctx:
        tree = family_trees.create_tree(ctx, data)
    return jsonify({"ok": True, "data": tree.to_dict(), "message": "Family tree created successfully"}), 201


@trees_bp.route("/<string:tree_id>", methods=["GET"])
@login_required
def get_tree(tree_id: str):
    """The tree together with all of its members and relationships."""
    with service_context() as ctx:
        loaded = family_trees.get_tree_with_members(ctx, tree_id)
    return jsonify({"ok": True, "data": loaded.to_dict()})


@trees_bp.route("/<string:tree_id>/chart", methods=["GET"])
@login_required
def get_chart(tree_id: str):
    with service_context() as ctx:
        payload = get_tree_chart(ctx, tree_id)
    return jsonify({"ok": True, "data": payload})


@trees_bp.route("/<string:tree_id>", methods=["PATCH"])
@login_required
def update_tree(tree_id: str):
    patch = TreePatch.from_json(request.get_json(silent=True) or {})
    with service_context() as ctx:
        tree = family_trees.update_tree(ctx, tree_id, patch)
    return jsonify({"ok": True, "data": tree.to_dict(), "message": "Family tree updated successfully"})


@trees_bp.route("/<string:tree_id>", methods=["DELETE"])
@login_required
def delete_tree(tree_id: str):
    with service_context() as ctx:
        family_trees.delete_tree(ctx, tree_id)
    return jsonify({"ok": True, "message": "Family tree deleted successfully"})
