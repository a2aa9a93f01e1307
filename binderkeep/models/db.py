"""
SQLAlchemy ORM models for persistent storage.

Two tables back the two storage collaborators: a flat key-value table for
device-local state and a path-addressed document table for per-user
collection documents.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class KeyValueEntryDB(Base):
    """
    One string value stored under a string key.

    Keys are namespaced by a feature prefix (e.g. "@binderkeep/localRemoved/").
    """

    __tablename__ = "key_value_entries"

    key: Mapped[str] = mapped_column(String(512), primary_key=True)
    value: Mapped[str] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<KeyValueEntryDB(key={self.key})>"


class DocumentDB(Base):
    """
    A JSON document addressed by a slash-separated path.

    `parent` is the path without the final segment, so listing a
    sub-collection (e.g. users/{uid}/collections) is a single indexed query.
    """

    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    path: Mapped[str] = mapped_column(String(1024), unique=True, index=True)
    parent: Mapped[str] = mapped_column(String(1024), index=True)
    doc_id: Mapped[str] = mapped_column(String(255))
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<DocumentDB(path={self.path})>"
