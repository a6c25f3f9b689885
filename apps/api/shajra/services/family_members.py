# apps/api/shajra/services/family_members.py
from __future__ import annotations
import logging
from typing import List

from ..errors import NotFound
from .context import ServiceContext, require_principal
from .family_trees import owned_tree_row
from .records import Member, MemberInput, MemberPatch, Relationship, RelationshipInput
from .validation import validate_member_input, validate_member_patch, validate_relationship_input

log = logging.getLogger(__name__)


def _owned_row(ctx: ServiceContext, user_id: str, table: str, row_id: str, label: str) -> dict:
    """Loads a member/relationship row and checks its tree belongs to user_id."""
    row = ctx.store.get(table, row_id)
    if row is None:
        raise NotFound(f"{label} not found")
    try:
        owned_tree_row(ctx, user_id, row["tree_id"])
    except NotFound:
        raise NotFound(f"{label} not found") from None
    return row


def list_members(ctx: ServiceContext, tree_id: str) -> List[Member]:
    user_id = require_principal(ctx)
    owned_tree_row(ctx, user_id, tree_id)
    rows = ctx.store.select("members", {"tree_id": tree_id}, order=(("created_at", "asc"),))
    return [Member.from_row(r) for r in rows]


def list_relationships(ctx: ServiceContext, tree_id: str) -> List[Relationship]:
    user_id = require_principal(ctx)
    owned_tree_row(ctx, user_id, tree_id)
    rows = ctx.store.select("relationships", {"tree_id": tree_id}, order=(("created_at", "asc"),))
    return [Relationship.from_row(r) for r in rows]


def create_member(ctx: ServiceContext, data: MemberInput) -> Member:
    user_id = require_principal(ctx)
    data = validate_member_input(data)
    try:
        owned_tree_row(ctx, user_id, data.tree_id)
    except NotFound:
        raise NotFound("Tree not found or access denied") from None
    row = ctx.store.insert("members", {
        "tree_id": data.tree_id,
        "name": data.name,
        "gender": data.gender,
        "birth_year": data.birth_year,
        "death_year": data.death_year,
        "img": data.img or None,
        "notes": data.notes or None,
    })
    return Member.from_row(row)


def update_member(ctx: ServiceContext, member_id: str, patch: MemberPatch) -> Member:
    user_id = require_principal(ctx)
    current = _owned_row(ctx, user_id, "members", member_id, "Family member")
    patch = validate_member_patch(patch, current)
    changes = patch.changes()
    if not changes:
        return Member.from_row(current)
    return Member.from_row(ctx.store.update("members", member_id, changes))


def delete_member(ctx: ServiceContext, member_id: str) -> None:
    """Removes the member; the store cascades to every relationship touching it."""
    user_id = require_principal(ctx)
    _owned_row(ctx, user_id, "members", member_id, "Family member")
    ctx.store.delete("members", member_id)


def create_relationship(ctx: ServiceContext, data: RelationshipInput) -> Relationship:
    user_id = require_principal(ctx)
    data = validate_relationship_input(data)
    try:
        owned_tree_row(ctx, user_id, data.tree_id)
    except NotFound:
        raise NotFound("Tree not found or access denied") from None
    for member_id in (data.member_id, data.related_member_id):
        member = ctx.store.get("members", member_id)
        if member is None or member["tree_id"] != data.tree_id:
            raise NotFound(f"Family member {member_id} not found in tree")
    row = ctx.store.insert("relationships", {
        "tree_id": data.tree_id,
        "member_id": data.member_id,
        "related_member_id": data.related_member_id,
        "relationship_type": data.relationship_type,
    })
    log.debug("Relationship %s %s -> %s created", data.relationship_type, data.member_id, data.related_member_id)
    return Relationship.from_row(row)


def delete_relationship(ctx: ServiceContext, relationship_id: str) -> None:
    user_id = require_principal(ctx)
    _owned_row(ctx, user_id, "relationships", relationship_id, "Relationship")
    ctx.store.delete("relationships", relationship_id)
