# apps/api/shajra/infra/db/models.py
from __future__ import annotations
import os
import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column, String, Integer, Boolean, DateTime, ForeignKey, Text, CheckConstraint, create_engine, inspect
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///shajra.db")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _make_engine(url: str):
    # Heroku/Render still hand out the old postgres:// prefix
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url)


engine = _make_engine(DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False)
Base = declarative_base()


class FamilyTree(Base):
    __tablename__ = "family_trees"
    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    members = relationship("FamilyMember", back_populates="tree", cascade="all, delete-orphan")
    relationships = relationship("Relationship", back_populates="tree", cascade="all, delete-orphan")


class FamilyMember(Base):
    __tablename__ = "family_members"
    id = Column(String(36), primary_key=True, default=_new_id)
    tree_id = Column(String(36), ForeignKey("family_trees.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    gender = Column(String(1), nullable=False)
    birth_year = Column(Integer, nullable=True)
    death_year = Column(Integer, nullable=True)
    img = Column(String(1024), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)
    __table_args__ = (CheckConstraint("gender IN ('M', 'F')", name="ck_member_gender"),)

    tree = relationship("FamilyTree", back_populates="members")
    # Both directions cascade so that deleting a member removes every edge touching it
    outgoing = relationship(
        "Relationship", foreign_keys="Relationship.member_id",
        back_populates="member", cascade="all, delete-orphan"
    )
    incoming = relationship(
        "Relationship", foreign_keys="Relationship.related_member_id",
        back_populates="related_member", cascade="all, delete-orphan"
    )


class Relationship(Base):
    __tablename__ = "relationships"
    id = Column(String(36), primary_key=True, default=_new_id)
    tree_id = Column(String(36), ForeignKey("family_trees.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id = Column(String(36), ForeignKey("family_members.id", ondelete="CASCADE"), nullable=False)
    related_member_id = Column(String(36), ForeignKey("family_members.id", ondelete="CASCADE"), nullable=False)
    relationship_type = Column(String(16), nullable=False)
    created_at = Column(DateTime, default=_utcnow)
    __table_args__ = (
        CheckConstraint("member_id <> related_member_id", name="ck_relationship_not_self"),
        CheckConstraint("relationship_type IN ('spouse', 'parent', 'child')", name="ck_relationship_type"),
    )

    tree = relationship("FamilyTree", back_populates="relationships")
    member = relationship("FamilyMember", foreign_keys=[member_id], back_populates="outgoing")
    related_member = relationship("FamilyMember", foreign_keys=[related_member_id], back_populates="incoming")


# Table names exposed by the record store
TABLES = {
    "trees": FamilyTree,
    "members": FamilyMember,
    "relationships": Relationship,
}


def configure_engine(url: str):
    """Rebinds SessionLocal to a new database (app config, tests)."""
    global engine
    engine = _make_engine(url)
    SessionLocal.configure(bind=engine)
    return engine


def init_db() -> None:
    """Creates every table that does not exist yet."""
    Base.metadata.create_all(bind=engine)


def missing_tables() -> list[str]:
    """Names of mapped tables the current database lacks."""
    existing = set(inspect(engine).get_table_names())
    return [t.name for t in Base.metadata.sorted_tables if t.name not in existing]
