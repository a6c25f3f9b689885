"""Typed records for trees, members, relationships and chart nodes.

Store rows are plain dicts; the services turn them into these frozen
dataclasses. Inputs and patches are built from JSON bodies with `from_json`,
which only checks JSON types; the business rules live in `validation`.
"""
from __future__ import annotations
from dataclasses import dataclass, field, fields, asdict
from datetime import datetime
from typing import Any, Dict, Optional

from ..errors import ValidationError

GENDERS = ("M", "F")
RELATIONSHIP_TYPES = ("spouse", "parent", "child")


class _Unset:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def _jsonable(value):
    return value.isoformat() if isinstance(value, datetime) else value


class _Record:
    @classmethod
    def from_row(cls, row: Dict[str, Any]):
        return cls(**{f.name: row.get(f.name) for f in fields(cls)})

    def to_dict(self) -> Dict[str, Any]:
        return {k: _jsonable(v) for k, v in asdict(self).items()}


@dataclass(frozen=True)
class Tree(_Record):
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    is_default: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Member(_Record):
    id: str
    name: str
    gender: str
    tree_id: Optional[str] = None
    birth_year: Optional[int] = None
    death_year: Optional[int] = None
    img: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Relationship(_Record):
    id: str
    member_id: str
    related_member_id: str
    relationship_type: str
    tree_id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class TreeWithMembers:
    tree: Tree
    members: tuple = ()
    relationships: tuple = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tree": self.tree.to_dict(),
            "members": [m.to_dict() for m in self.members],
            "relationships": [r.to_dict() for r in self.relationships],
        }


@dataclass(frozen=True)
class ChartNode:
    id: str
    data: Dict[str, Any] = field(default_factory=dict)
    rels: Dict[str, list] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "data": dict(self.data), "rels": {k: list(v) for k, v in self.rels.items()}}


# --- JSON helpers ---------------------------------------------------------

def _body(body) -> Dict[str, Any]:
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def _text(body: Dict[str, Any], key: str, *, nullable: bool = True):
    value = body.get(key)
    if value is None and nullable:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    return value


def _year(body: Dict[str, Any], key: str) -> Optional[int]:
    value = body.get(key)
    if value is None:
        return None
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{key} must be an integer")
    return value


def _flag(body: Dict[str, Any], key: str) -> bool:
    value = body.get(key, False)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValidationError(f"{key} must be a boolean")
    return value


def _required_id(body: Dict[str, Any], key: str, label: str) -> str:
    value = body.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required")
    return value


# --- Inputs ---------------------------------------------------------------

@dataclass(frozen=True)
class TreeInput:
    name: str
    description: Optional[str] = None
    is_default: bool = False

    @classmethod
    def from_json(cls, body) -> "TreeInput":
        body = _body(body)
        return cls(
            name=body.get("name") if isinstance(body.get("name"), str) else "",
            description=_text(body, "description"),
            is_default=_flag(body, "is_default"),
        )


@dataclass(frozen=True)
class MemberInput:
    tree_id: str
    name: str
    gender: str
    birth_year: Optional[int] = None
    death_year: Optional[int] = None
    img: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_json(cls, body) -> "MemberInput":
        body = _body(body)
        return cls(
            tree_id=_required_id(body, "tree_id", "Tree ID"),
            name=body.get("name") if isinstance(body.get("name"), str) else "",
            gender=body.get("gender") if isinstance(body.get("gender"), str) else "",
            birth_year=_year(body, "birth_year"),
            death_year=_year(body, "death_year"),
            img=_text(body, "img"),
            notes=_text(body, "notes"),
        )


@dataclass(frozen=True)
class RelationshipInput:
    tree_id: str
    member_id: str
    related_member_id: str
    relationship_type: str

    @classmethod
    def from_json(cls, body) -> "RelationshipInput":
        body = _body(body)
        rel_type = body.get("relationship_type")
        return cls(
            tree_id=_required_id(body, "tree_id", "Tree ID"),
            member_id=_required_id(body, "member_id", "Member ID"),
            related_member_id=_required_id(body, "related_member_id", "Related member ID"),
            relationship_type=rel_type if isinstance(rel_type, str) else "",
        )


# --- Patches --------------------------------------------------------------

class _Patch:
    def changes(self) -> Dict[str, Any]:
        """Only the fields that were supplied; None means 'clear it'."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not UNSET}

    def is_set(self, name: str) -> bool:
        return getattr(self, name) is not UNSET


@dataclass(frozen=True)
class TreePatch(_Patch):
    name: Any = UNSET
    description: Any = UNSET
    is_default: Any = UNSET

    @classmethod
    def from_json(cls, body) -> "TreePatch":
        body = _body(body)
        kwargs: Dict[str, Any] = {}
        if "name" in body:
            kwargs["name"] = _text(body, "name", nullable=False)
        if "description" in body:
            kwargs["description"] = _text(body, "description")
        if "is_default" in body:
            kwargs["is_default"] = _flag(body, "is_default")
        return cls(**kwargs)


@dataclass(frozen=True)
class MemberPatch(_Patch):
    name: Any = UNSET
    gender: Any = UNSET
    birth_year: Any = UNSET
    death_year: Any = UNSET
    img: Any = UNSET
    notes: Any = UNSET

    @classmethod
    def from_json(cls, body) -> "MemberPatch":
        body = _body(body)
        kwargs: Dict[str, Any] = {}
        if "name" in body:
            kwargs["name"] = _text(body, "name", nullable=False)
        if "gender" in body:
            kwargs["gender"] = _text(body, "gender", nullable=False)
        for key in ("birth_year", "death_year"):
            if key in body:
                kwargs[key] = _year(body, key)
        for key in ("img", "notes"):
            if key in body:
                kwargs[key] = _text(body, key)
        return cls(**kwargs)
