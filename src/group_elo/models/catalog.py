"""Item type and rankable item models."""

import uuid
from typing import Any

from sqlalchemy import Column
from sqlmodel import JSON, Field, SQLModel


class ItemType(SQLModel, table=True):
    """A category of items that can be ranked (e.g., Movie, Book)."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    name: str
    slug: str = Field(unique=True, index=True)


class RankableItem(SQLModel, table=True):
    """An individual item that can be ranked within groups of its type."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    item_type_id: str = Field(index=True)
    external_id: str | None = Field(default=None, unique=True)
    name: str
    image_path: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
