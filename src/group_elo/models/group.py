"""Ranking group, membership and participant models."""

import uuid
from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class RankingGroup(SQLModel, table=True):
    """A user-created collection of items of a single item type."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    name: str
    description: str | None = None
    creator_id: str
    item_type_id: str = Field(index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class GroupItem(SQLModel, table=True):
    """Membership of an item in a group."""

    group_id: str = Field(primary_key=True)
    item_id: str = Field(primary_key=True, index=True)


class GroupParticipant(SQLModel, table=True):
    """A user taking part in a group's comparisons."""

    user_id: str = Field(primary_key=True)
    group_id: str = Field(primary_key=True, index=True)
    joined_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
