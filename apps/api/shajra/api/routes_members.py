# apps/api/shajra/api/routes_members.py
from __future__ import annotations
from flask import Blueprint, jsonify, request

from .routes_auth import login_required, service_context
from ..services import family_members
from ..services.records import MemberInput, MemberPatch

members_bp = Blueprint("members_bp", __name__, url_prefix="/api/family-members")


@members_bp.route("", methods=["POST"])
@login_required
def create_member():
    data = MemberInput.from_json(request.get_json(silent=True) or {})
    with service_context() as ctx:
        member = family_members.create_member(ctx, data)
    return jsonify({"ok": True, "data": member.to_dict(), "message": "Family member created successfully"}), 201


@members_bp.route("/<string:member_id>", methods=["PATCH"])
@login_required
def update_member(member_id: str):
    # Only the keys present in the body are changed
    patch = MemberPatch.from_json(request.get_json(silent=True) or {})
    with service_context() as ctx:
        member = family_members.update_member(ctx, member_id, patch)
    return jsonify({"ok": True, "data": member.to_dict(), "message": "Family member updated successfully"})


@members_bp.route("/<string:member_id>", methods=["DELETE"])
@login_required
def delete_member(member_id: str):
    with service_context() as ctx:
        family_members.delete_member(ctx, member_id)
    return jsonify({"ok": True, "message": "Family member deleted successfully"})
