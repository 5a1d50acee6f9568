from __future__ import annotations

from datetime import datetime
from typing import List

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from postboard.database import Base

ROLE_USER = "ROLE_USER"


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Case-sensitive natural key; the unique constraint backs the
    # registration existence check under concurrent signups.
    email: Mapped[str] = mapped_column(String(180), unique=True, nullable=False, index=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    roles: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=lambda: [ROLE_USER])

    # lazy="raise": the repository layer eager-loads relations explicitly
    posts: Mapped[List["Post"]] = relationship(
        "Post", back_populates="owner", lazy="raise"
    )

    def get_roles(self) -> set[str]:
        """Return the role labels, always including ``ROLE_USER``."""
        return set(self.roles or []) | {ROLE_USER}


# ---------------------------------------------------------------------------
# Post
# ---------------------------------------------------------------------------
class Post(Base):
    __tablename__ = "posts"

    __table_args__ = (
        # "My posts" feed: one owner's posts newest first
        Index("ix_posts_owner_id_created_at", "owner_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Set once at creation, never reassigned
    owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    owner: Mapped["User"] = relationship("User", back_populates="posts", lazy="raise")
