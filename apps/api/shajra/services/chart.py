# apps/api/shajra/services/chart.py
"""
Turns a tree's directed relationship rows into the per-member neighbour lists
the pedigree chart renderer reads.

Relationships are stored once per fact (a single `parent` row for a
parent/child pair); the renderer wants every node to know its parents,
spouses and children. `transform_to_chart_data` expands one into the other.
"""
from __future__ import annotations
from typing import Dict, List, Sequence

from .context import ServiceContext
from .family_trees import get_tree_with_members
from .records import ChartNode, Member, Relationship

REL_KEYS = ("parents", "spouses", "children")


def _add(ids: List[str], member_id: str) -> None:
    if member_id not in ids:
        ids.append(member_id)


def _node_data(member: Member) -> Dict:
    data = {"gender": member.gender, "name": member.name}
    if member.img:
        data["img"] = member.img
    data["birth_year"] = member.birth_year
    data["death_year"] = member.death_year
    return data


def transform_to_chart_data(members: Sequence[Member], relationships: Sequence[Relationship]) -> List[ChartNode]:
    """
    One ChartNode per member, in the order of `members`.

    Edges whose endpoints are not both in `members`, and edges of an unknown
    type, are skipped without error so that a broken row never hides the rest
    of the chart. Each neighbour list keeps first-seen order and holds an id
    at most once; empty lists are left out of `rels`.
    """
    rels: Dict[str, Dict[str, List[str]]] = {m.id: {k: [] for k in REL_KEYS} for m in members}

    for rel in relationships:
        src = rels.get(rel.member_id)
        dst = rels.get(rel.related_member_id)
        if src is None or dst is None:
            continue

        if rel.relationship_type == "spouse":
            _add(src["spouses"], rel.related_member_id)
            _add(dst["spouses"], rel.member_id)
        elif rel.relationship_type == "parent":
            # member_id is the parent of related_member_id
            _add(dst["parents"], rel.member_id)
            _add(src["children"], rel.related_member_id)
        elif rel.relationship_type == "child":
            # member_id is the child of related_member_id
            _add(src["parents"], rel.related_member_id)
            _add(dst["children"], rel.member_id)

    nodes = []
    for member in members:
        lists = rels[member.id]
        nodes.append(ChartNode(
            id=member.id,
            data=_node_data(member),
            rels={k: list(lists[k]) for k in REL_KEYS if lists[k]},
        ))
    return nodes


def get_chart_data(ctx: ServiceContext, tree_id: str) -> List[ChartNode]:
    """
    Loads a tree's members and relationships and returns its chart nodes.

    For in-process callers; the HTTP chart route serves `get_tree_chart`.
    """
    loaded = get_tree_with_members(ctx, tree_id)
    return transform_to_chart_data(loaded.members, loaded.relationships)


def get_tree_chart(ctx: ServiceContext, tree_id: str) -> Dict:
    """The `{tree, chartData}` payload served to the chart page."""
    loaded = get_tree_with_members(ctx, tree_id)
    nodes = transform_to_chart_data(loaded.members, loaded.relationships)
    return {"tree": loaded.tree.to_dict(), "chartData": [n.to_dict() for n in nodes]}
