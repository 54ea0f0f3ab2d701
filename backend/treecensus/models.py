from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy import (
    Column,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Float,
    Text,
)
from sqlalchemy.orm import relationship

from .database import Base

USER_ROLES = ("user", "supervisor", "admin")
TREE_CONDITIONS = ("excellent", "fair", "poor")
TREE_STATUSES = ("pending", "approved", "rejected")
REVIEW_STATUSES = ("approved", "rejected")
BADGE_TYPES = ("education", "tree_count")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True)
    email = Column(String, unique=True)
    first_name = Column(String)
    last_name = Column(String)
    profile_image_url = Column(String)
    role = Column(String, default="user", nullable=False)
    password_hash = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    trees = relationship(
        "Tree",
        back_populates="contributor",
        foreign_keys="Tree.contributor_id",
    )
    reviewed_trees = relationship(
        "Tree",
        back_populates="reviewer",
        foreign_keys="Tree.reviewed_by",
    )
    user_badges = relationship("UserBadge", back_populates="user")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_reviewer(self) -> bool:
        return self.role in ("supervisor", "admin")


class Tree(Base):
    __tablename__ = "trees"
    id = Column(Integer, primary_key=True, autoincrement=True)
    species = Column(String, nullable=False)
    condition = Column(String, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    # height is recorded either as building floors or metres
    height_floors = Column(Integer)
    height_manual = Column(Float)

    # circumference is recorded either as hand spans or centimetres
    circumference_hands = Column(Integer)
    circumference_manual = Column(Float)

    excessive_pruning = Column(Boolean, default=False, nullable=False)
    excessive_ground_cover = Column(Boolean, default=False, nullable=False)
    damaged = Column(Boolean, default=False, nullable=False)

    photo_url = Column(String)
    notes = Column(Text)
    contributor_id = Column(String, ForeignKey("users.id"), nullable=False)
    status = Column(String, default="pending", nullable=False)
    reviewed_by = Column(String, ForeignKey("users.id"))
    reviewed_at = Column(DateTime)
    review_notes = Column(Text)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    contributor = relationship(
        "User", back_populates="trees", foreign_keys=[contributor_id]
    )
    reviewer = relationship(
        "User", back_populates="reviewed_trees", foreign_keys=[reviewed_by]
    )

    __table_args__ = (
        sa.Index("ix_trees_status_created", "status", "created_at"),
        sa.Index("ix_trees_contributor", "contributor_id"),
    )


class Badge(Base):
    __tablename__ = "badges"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    description = Column(Text)
    type = Column(String, nullable=False)
    # only meaningful for tree_count badges
    requirement = Column(Integer)
    icon = Column(String)
    created_at = Column(DateTime, default=_utcnow)

    user_badges = relationship("UserBadge", back_populates="badge")


class UserBadge(Base):
    __tablename__ = "user_badges"
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    badge_id = Column(Integer, ForeignKey("badges.id"), nullable=False)
    awarded_at = Column(DateTime, default=_utcnow)

    user = relationship("User", back_populates="user_badges")
    badge = relationship("Badge", back_populates="user_badges")

    __table_args__ = (
        sa.UniqueConstraint("user_id", "badge_id", name="uq_user_badges_user_badge"),
    )


class TreeSpecies(Base):
    __tablename__ = "tree_species"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False)
    scientific_name = Column(String)
    description = Column(Text)
    characteristics = Column(Text)
    care_instructions = Column(Text)
    icon = Column(String)
