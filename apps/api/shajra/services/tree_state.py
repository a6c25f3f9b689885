# apps/api/shajra/services/tree_state.py
"""
Per-client cached view of the user's trees and the active tree's contents.

`FamilyTreeState` is immutable: every action receives a snapshot and returns
a new one, so a failed action (an exception) leaves the caller's snapshot as
it was. Chart data is recomputed whenever members or relationships change.
The cache is advisory; `set_active_tree` rebuilds it from the store.

This is the client-side API: a UI session holds one snapshot and threads it
through these functions. The HTTP layer does not use it.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from ..errors import ShajraError
from . import family_members, family_trees
from .chart import transform_to_chart_data
from .context import ServiceContext
from .records import (
    ChartNode, Member, MemberInput, MemberPatch, Relationship, RelationshipInput, Tree, TreeInput, TreePatch,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class FamilyTreeState:
    trees: Tuple[Tree, ...] = ()
    active_tree_id: Optional[str] = None
    members: Tuple[Member, ...] = ()
    relationships: Tuple[Relationship, ...] = ()
    chart_data: Tuple[ChartNode, ...] = ()
    initialized: bool = False


def _with_contents(state: FamilyTreeState, members, relationships) -> FamilyTreeState:
    members, relationships = tuple(members), tuple(relationships)
    return replace(
        state,
        members=members,
        relationships=relationships,
        chart_data=tuple(transform_to_chart_data(members, relationships)),
    )


def _emptied(state: FamilyTreeState) -> FamilyTreeState:
    return replace(state, active_tree_id=None, members=(), relationships=(), chart_data=())


# --- Getters --------------------------------------------------------------

def active_tree(state: FamilyTreeState) -> Optional[Tree]:
    if not state.active_tree_id:
        return None
    return next((t for t in state.trees if t.id == state.active_tree_id), None)


def default_tree(state: FamilyTreeState) -> Optional[Tree]:
    """The first tree flagged default, else the first tree."""
    return next((t for t in state.trees if t.is_default), state.trees[0] if state.trees else None)


def has_trees(state: FamilyTreeState) -> bool:
    return len(state.trees) > 0


def has_members(state: FamilyTreeState) -> bool:
    return len(state.members) > 0


def member_by_id(state: FamilyTreeState, member_id: str) -> Optional[Member]:
    return next((m for m in state.members if m.id == member_id), None)


def members_by_gender(state: FamilyTreeState, gender: str) -> Tuple[Member, ...]:
    return tuple(m for m in state.members if m.gender == gender)


def clear_state() -> FamilyTreeState:
    return FamilyTreeState()


def restore_active_tree(state: FamilyTreeState, remembered_id: Optional[str]) -> FamilyTreeState:
    """
    Re-selects a remembered active tree id if it is still among `trees`.

    Only the id changes; follow with `set_active_tree` to load its contents.
    """
    if remembered_id and any(t.id == remembered_id for t in state.trees):
        return replace(state, active_tree_id=remembered_id)
    return state


# --- Trees ----------------------------------------------------------------

def fetch_trees(ctx: ServiceContext, state: FamilyTreeState) -> FamilyTreeState:
    return replace(state, trees=tuple(family_trees.list_trees(ctx)))


def set_active_tree(ctx: ServiceContext, state: FamilyTreeState, tree_id: str) -> FamilyTreeState:
    loaded = family_trees.get_tree_with_members(ctx, tree_id)
    state = replace(state, active_tree_id=tree_id)
    return _with_contents(state, loaded.members, loaded.relationships)


def initialize(ctx: ServiceContext, state: FamilyTreeState) -> FamilyTreeState:
    if state.initialized:
        return state
    state = fetch_trees(ctx, state)
    if state.trees and not state.active_tree_id:
        state = set_active_tree(ctx, state, default_tree(state).id)
    return replace(state, initialized=True)


def create_tree(ctx: ServiceContext, state: FamilyTreeState, data: TreeInput) -> Tuple[Tree, FamilyTreeState]:
    tree = family_trees.create_tree(ctx, data)
    state = replace(state, trees=state.trees + (tree,))
    if tree.is_default or len(state.trees) == 1:
        state = set_active_tree(ctx, state, tree.id)
    return tree, state


def update_tree(ctx: ServiceContext, state: FamilyTreeState, tree_id: str, patch: TreePatch) -> Tuple[Tree, FamilyTreeState]:
    tree = family_trees.update_tree(ctx, tree_id, patch)
    trees = tuple(tree if t.id == tree_id else t for t in state.trees)
    return tree, replace(state, trees=trees)


def delete_tree(ctx: ServiceContext, state: FamilyTreeState, tree_id: str) -> FamilyTreeState:
    family_trees.delete_tree(ctx, tree_id)
    state = replace(state, trees=tuple(t for t in state.trees if t.id != tree_id))
    if state.active_tree_id != tree_id:
        return state
    state = _emptied(state)
    if not state.trees:
        return state
    # the delete is already committed, so a failed load keeps the emptied view
    try:
        return set_active_tree(ctx, state, state.trees[0].id)
    except ShajraError as e:
        log.warning("Could not activate tree %s after deleting %s: %s", state.trees[0].id, tree_id, e.message)
        return state


# --- Members and relationships ---------------------------------------------

def create_member(ctx: ServiceContext, state: FamilyTreeState, data: MemberInput) -> Tuple[Member, FamilyTreeState]:
    member = family_members.create_member(ctx, data)
    if member.tree_id != state.active_tree_id:
        return member, state
    return member, _with_contents(state, state.members + (member,), state.relationships)


def update_member(ctx: ServiceContext, state: FamilyTreeState, member_id: str, patch: MemberPatch) -> Tuple[Member, FamilyTreeState]:
    member = family_members.update_member(ctx, member_id, patch)
    members = tuple(member if m.id == member_id else m for m in state.members)
    return member, _with_contents(state, members, state.relationships)


def delete_member(ctx: ServiceContext, state: FamilyTreeState, member_id: str) -> FamilyTreeState:
    family_members.delete_member(ctx, member_id)
    members = tuple(m for m in state.members if m.id != member_id)
    # mirrors the store cascade
    relationships = tuple(
        r for r in state.relationships
        if r.member_id != member_id and r.related_member_id != member_id
    )
    return _with_contents(state, members, relationships)


def create_relationship(ctx: ServiceContext, state: FamilyTreeState, data: RelationshipInput) -> Tuple[Relationship, FamilyTreeState]:
    rel = family_members.create_relationship(ctx, data)
    if rel.tree_id != state.active_tree_id:
        return rel, state
    return rel, _with_contents(state, state.members, state.relationships + (rel,))


def delete_relationship(ctx: ServiceContext, state: FamilyTreeState, relationship_id: str) -> FamilyTreeState:
    family_members.delete_relationship(ctx, relationship_id)
    relationships = tuple(r for r in state.relationships if r.id != relationship_id)
    return _with_contents(state, state.members, relationships)
