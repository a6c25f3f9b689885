# apps/api/shajra/services/family_trees.py
from __future__ import annotations
import logging
from typing import List

from ..errors import NotFound
from .context import ServiceContext, require_principal
from .records import Member, Relationship, Tree, TreeInput, TreePatch, TreeWithMembers
from .validation import validate_tree_input, validate_tree_patch

log = logging.getLogger(__name__)

TREE_ORDER = (("is_default", "desc"), ("created_at", "desc"))


def owned_tree_row(ctx: ServiceContext, user_id: str, tree_id: str) -> dict:
    rows = ctx.store.select("trees", {"id": tree_id, "user_id": user_id})
    if not rows:
        raise NotFound("Family tree not found")
    return rows[0]


def get_tree(ctx: ServiceContext, tree_id: str) -> Tree:
    user_id = require_principal(ctx)
    return Tree.from_row(owned_tree_row(ctx, user_id, tree_id))


def list_trees(ctx: ServiceContext) -> List[Tree]:
    """Trees of the acting user, default ones first, newest first."""
    user_id = require_principal(ctx)
    rows = ctx.store.select("trees", {"user_id": user_id}, order=TREE_ORDER)
    return [Tree.from_row(r) for r in rows]


def get_tree_with_members(ctx: ServiceContext, tree_id: str) -> TreeWithMembers:
    user_id = require_principal(ctx)
    tree = Tree.from_row(owned_tree_row(ctx, user_id, tree_id))
    members = ctx.store.select("members", {"tree_id": tree_id}, order=(("created_at", "asc"),))
    relationships = ctx.store.select("relationships", {"tree_id": tree_id}, order=(("created_at", "asc"),))
    return TreeWithMembers(
        tree=tree,
        members=tuple(Member.from_row(r) for r in members),
        relationships=tuple(Relationship.from_row(r) for r in relationships),
    )


def create_tree(ctx: ServiceContext, data: TreeInput) -> Tree:
    user_id = require_principal(ctx)
    data = validate_tree_input(data)
    # is_default is stored as given; other defaults of the user are left alone
    row = ctx.store.insert("trees", {
        "user_id": user_id,
        "name": data.name,
        "description": data.description or None,
        "is_default": bool(data.is_default),
    })
    log.info("Tree %s created for user %s", row["id"], user_id)
    return Tree.from_row(row)


def update_tree(ctx: ServiceContext, tree_id: str, patch: TreePatch) -> Tree:
    user_id = require_principal(ctx)
    patch = validate_tree_patch(patch)
    current = owned_tree_row(ctx, user_id, tree_id)
    changes = patch.changes()
    if not changes:
        return Tree.from_row(current)
    return Tree.from_row(ctx.store.update("trees", tree_id, changes))


def delete_tree(ctx: ServiceContext, tree_id: str) -> None:
    """Removes the tree; the store cascades to its members and relationships."""
    user_id = require_principal(ctx)
    owned_tree_row(ctx, user_id, tree_id)
    ctx.store.delete("trees", tree_id)
    log.info("Tree %s deleted by user %s", tree_id, user_id)
