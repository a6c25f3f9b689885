"""Tests for the cached per-client tree view."""

import pytest

from shajra.errors import NotFound, ValidationError
from shajra.services import family_trees, tree_state
from shajra.services.records import MemberInput, MemberPatch, RelationshipInput, TreeInput, TreePatch
from shajra.services.tree_state import FamilyTreeState


def member_input(tree_id, name, gender="M", **kwargs):
    return MemberInput(tree_id=tree_id, name=name, gender=gender, **kwargs)


def rel_input(tree_id, a, b, rel_type):
    return RelationshipInput(tree_id=tree_id, member_id=a.id, related_member_id=b.id, relationship_type=rel_type)


@pytest.fixture
def loaded(ctx):
    """A state with one active tree holding Ali, Sara and their son Omar."""
    tree, state = tree_state.create_tree(ctx, FamilyTreeState(), TreeInput(name="Khan"))
    ali, state = tree_state.create_member(ctx, state, member_input(tree.id, "Ali"))
    sara, state = tree_state.create_member(ctx, state, member_input(tree.id, "Sara", "F"))
    omar, state = tree_state.create_member(ctx, state, member_input(tree.id, "Omar"))
    _, state = tree_state.create_relationship(ctx, state, rel_input(tree.id, ali, sara, "spouse"))
    _, state = tree_state.create_relationship(ctx, state, rel_input(tree.id, ali, omar, "parent"))
    return state, tree, ali, sara, omar


def rels_of(state, member_id):
    return next(n.rels for n in state.chart_data if n.id == member_id)


# ============================================================================
# Initialisation and tree selection
# ============================================================================

def test_initialize_without_trees(ctx):
    state = tree_state.initialize(ctx, FamilyTreeState())

    assert state.initialized is True
    assert state.trees == ()
    assert state.active_tree_id is None


def test_initialize_activates_default_tree(ctx):
    family_trees.create_tree(ctx, TreeInput(name="plain"))
    default = family_trees.create_tree(ctx, TreeInput(name="main", is_default=True))

    state = tree_state.initialize(ctx, FamilyTreeState())

    assert state.active_tree_id == default.id
    assert tree_state.active_tree(state).name == "main"


def test_initialize_falls_back_to_first_tree(ctx):
    family_trees.create_tree(ctx, TreeInput(name="older"))
    newer = family_trees.create_tree(ctx, TreeInput(name="newer"))

    state = tree_state.initialize(ctx, FamilyTreeState())

    assert state.active_tree_id == newer.id


def test_initialize_twice_is_a_no_op(ctx):
    state = tree_state.initialize(ctx, FamilyTreeState())
    family_trees.create_tree(ctx, TreeInput(name="late"))

    assert tree_state.initialize(ctx, state) is state


def test_create_tree_activation_rules(ctx):
    first, state = tree_state.create_tree(ctx, FamilyTreeState(), TreeInput(name="first"))
    assert state.active_tree_id == first.id

    second, state = tree_state.create_tree(ctx, state, TreeInput(name="second"))
    assert state.active_tree_id == first.id
    assert [t.id for t in state.trees] == [first.id, second.id]

    third, state = tree_state.create_tree(ctx, state, TreeInput(name="third", is_default=True))
    assert state.active_tree_id == third.id


def test_set_active_tree_loads_contents(ctx, loaded):
    state, tree, ali, sara, omar = loaded
    other, state = tree_state.create_tree(ctx, state, TreeInput(name="other"))

    state = tree_state.set_active_tree(ctx, state, other.id)
    assert state.members == ()
    assert state.chart_data == ()

    state = tree_state.set_active_tree(ctx, state, tree.id)
    assert [m.id for m in state.members] == [ali.id, sara.id, omar.id]
    assert rels_of(state, ali.id) == {"spouses": [sara.id], "children": [omar.id]}


def test_update_tree_replaces_cached_entry(ctx, loaded):
    state, tree, *_ = loaded

    updated, state = tree_state.update_tree(ctx, state, tree.id, TreePatch(description="Lahore"))

    assert updated.description == "Lahore"
    assert tree_state.active_tree(state).description == "Lahore"


def test_deleting_active_tree_switches_to_first_remaining(ctx, loaded):
    state, tree, *_ = loaded
    other, state = tree_state.create_tree(ctx, state, TreeInput(name="other"))

    state = tree_state.delete_tree(ctx, state, tree.id)

    assert [t.id for t in state.trees] == [other.id]
    assert state.active_tree_id == other.id
    assert state.members == ()


def test_deleting_last_tree_empties_view(ctx, loaded):
    state, tree, *_ = loaded

    state = tree_state.delete_tree(ctx, state, tree.id)

    assert state.trees == ()
    assert state.active_tree_id is None
    assert state.members == ()
    assert state.relationships == ()
    assert state.chart_data == ()


def test_deleting_inactive_tree_keeps_view(ctx, loaded):
    state, tree, *_ = loaded
    other, state = tree_state.create_tree(ctx, state, TreeInput(name="other"))

    after = tree_state.delete_tree(ctx, state, other.id)

    assert after.active_tree_id == tree.id
    assert after.members == state.members


# ============================================================================
# Members and relationships
# ============================================================================

def test_chart_follows_member_changes(loaded):
    state, _, ali, sara, omar = loaded

    assert len(state.chart_data) == 3
    assert rels_of(state, sara.id) == {"spouses": [ali.id]}
    assert rels_of(state, omar.id) == {"parents": [ali.id]}


def test_member_in_other_tree_is_not_cached(ctx, loaded):
    state, *_ = loaded
    other = family_trees.create_tree(ctx, TreeInput(name="elsewhere"))

    member, after = tree_state.create_member(ctx, state, member_input(other.id, "Zed"))

    assert member.tree_id == other.id
    assert after is state


def test_update_member_refreshes_chart(ctx, loaded):
    state, _, ali, *_ = loaded

    updated, state = tree_state.update_member(ctx, state, ali.id, MemberPatch(img="ali.png"))

    assert updated.img == "ali.png"
    assert tree_state.member_by_id(state, ali.id).img == "ali.png"
    assert next(n for n in state.chart_data if n.id == ali.id).data["img"] == "ali.png"


def test_delete_member_purges_relationships(ctx, loaded):
    state, _, ali, sara, omar = loaded

    state = tree_state.delete_member(ctx, state, ali.id)

    assert [m.id for m in state.members] == [sara.id, omar.id]
    assert state.relationships == ()
    assert all(n.rels == {} for n in state.chart_data)


def test_delete_relationship(ctx, loaded):
    state, _, ali, sara, omar = loaded
    spouse_rel = next(r for r in state.relationships if r.relationship_type == "spouse")

    state = tree_state.delete_relationship(ctx, state, spouse_rel.id)

    assert rels_of(state, ali.id) == {"children": [omar.id]}
    assert rels_of(state, sara.id) == {}


def test_failed_action_leaves_state_unchanged(ctx, loaded):
    state, tree, ali, *_ = loaded

    with pytest.raises(ValidationError):
        tree_state.create_relationship(ctx, state, rel_input(tree.id, ali, ali, "spouse"))
    with pytest.raises(NotFound):
        tree_state.delete_member(ctx, state, "missing")

    assert len(state.members) == 3
    assert len(state.relationships) == 2


# ============================================================================
# Getters
# ============================================================================

def test_getters(loaded):
    state, tree, ali, sara, omar = loaded

    assert tree_state.default_tree(state).id == tree.id
    assert tree_state.member_by_id(state, "missing") is None
    assert [m.id for m in tree_state.members_by_gender(state, "M")] == [ali.id, omar.id]
    assert [m.id for m in tree_state.members_by_gender(state, "F")] == [sara.id]


def test_default_tree_of_empty_state():
    state = FamilyTreeState()

    assert tree_state.default_tree(state) is None
    assert tree_state.active_tree(state) is None


def test_clear_state(loaded):
    assert tree_state.clear_state() == FamilyTreeState()


def test_has_trees_and_members(loaded):
    state = loaded[0]

    assert tree_state.has_trees(state) is True
    assert tree_state.has_members(state) is True
    assert tree_state.has_trees(FamilyTreeState()) is False
    assert tree_state.has_members(FamilyTreeState()) is False


def test_restore_active_tree(ctx, loaded):
    state, tree, *_ = loaded
    other, state = tree_state.create_tree(ctx, state, TreeInput(name="other"))

    assert tree_state.restore_active_tree(state, other.id).active_tree_id == other.id
    assert tree_state.restore_active_tree(state, "gone") is state
    assert tree_state.restore_active_tree(state, None) is state


def test_deleting_active_tree_with_stale_successor(ctx, loaded):
    state, tree, *_ = loaded
    other, state = tree_state.create_tree(ctx, state, TreeInput(name="other"))
    # removed behind the cache's back
    family_trees.delete_tree(ctx, other.id)

    state = tree_state.delete_tree(ctx, state, tree.id)

    assert [t.id for t in state.trees] == [other.id]
    assert state.active_tree_id is None
    assert state.members == ()
    assert state.chart_data == ()
