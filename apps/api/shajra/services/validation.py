"""Input checks run before anything reaches the store.

Each function either raises ValidationError or returns the normalized input
(names trimmed). None of them touch the database.
"""
from __future__ import annotations
from dataclasses import replace
from typing import Optional

from ..errors import ValidationError
from .records import (
    GENDERS, RELATIONSHIP_TYPES, MemberInput, MemberPatch, RelationshipInput, TreeInput, TreePatch,
)


def _check_years(birth_year: Optional[int], death_year: Optional[int]) -> None:
    if birth_year is not None and death_year is not None and death_year < birth_year:
        raise ValidationError("Death year cannot be before birth year")


def _check_gender(gender) -> None:
    if gender not in GENDERS:
        raise ValidationError("Gender must be M or F")


def validate_tree_input(data: TreeInput) -> TreeInput:
    name = (data.name or "").strip()
    if not name:
        raise ValidationError("Tree name is required")
    return replace(data, name=name)


def validate_tree_patch(patch: TreePatch) -> TreePatch:
    if patch.is_set("name"):
        name = (patch.name or "").strip()
        if not name:
            raise ValidationError("Tree name cannot be empty")
        patch = replace(patch, name=name)
    return patch


def validate_member_input(data: MemberInput) -> MemberInput:
    name = (data.name or "").strip()
    if not name:
        raise ValidationError("Member name is required")
    _check_gender(data.gender)
    if not data.tree_id:
        raise ValidationError("Tree ID is required")
    _check_years(data.birth_year, data.death_year)
    return replace(data, name=name)


def validate_member_patch(patch: MemberPatch, current: Optional[dict] = None) -> MemberPatch:
    """
    Checks the supplied fields. With `current` (the stored row), a year missing
    from the patch is taken from it before the years are compared.
    """
    if patch.is_set("name"):
        name = (patch.name or "").strip()
        if not name:
            raise ValidationError("Member name cannot be empty")
        patch = replace(patch, name=name)
    if patch.is_set("gender"):
        _check_gender(patch.gender)
    current = current or {}
    birth_year = patch.birth_year if patch.is_set("birth_year") else current.get("birth_year")
    death_year = patch.death_year if patch.is_set("death_year") else current.get("death_year")
    _check_years(birth_year, death_year)
    return patch


def validate_relationship_input(data: RelationshipInput) -> RelationshipInput:
    if data.member_id == data.related_member_id:
        raise ValidationError("Cannot create relationship with self")
    if data.relationship_type not in RELATIONSHIP_TYPES:
        raise ValidationError("Invalid relationship type")
    return data
