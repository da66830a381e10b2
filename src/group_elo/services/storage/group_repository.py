"""Database persistence for ranking groups, memberships and participants."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog
from sqlmodel import Session, col, select

from group_elo.core.errors import GroupNotFoundError, ItemNotFoundError
from group_elo.models import (
    GroupItem,
    GroupParticipant,
    RankableItem,
    RankingGroup,
    UserGroupItemRating,
)

from .database import AsyncRepository
from .locks import DEFAULT_LOCKS, RowLockTable

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()


def _missing_items(session: Session, item_type_id: str, item_ids: Sequence[str]) -> list[str]:
    """Ids among item_ids with no catalog item of the given type."""
    if not item_ids:
        return []
    statement = select(RankableItem.id).where(
        RankableItem.item_type_id == item_type_id,
        col(RankableItem.id).in_(list(item_ids)),
    )
    found = set(session.exec(statement).all())
    return [item_id for item_id in item_ids if item_id not in found]


class GroupRepository(AsyncRepository):
    """Persist and query groups, the items they hold and who takes part."""

    def __init__(self, engine: Engine, locks: RowLockTable | None = None) -> None:
        super().__init__(engine)
        self._locks = locks or DEFAULT_LOCKS

    async def create_group(
        self,
        name: str,
        creator_id: str,
        item_type_id: str,
        *,
        item_ids: Sequence[str] = (),
        description: str | None = None,
        group_id: str | None = None,
    ) -> RankingGroup:
        """Create a ranking group with its items and the creator as participant.

        The group, its memberships and the creator's participant row are
        written in one transaction; nothing is stored when an item is missing.

        Args:
            name: Group name.
            creator_id: Creating user, registered as the first participant.
            item_type_id: Item type every member must have.
            item_ids: Initial member items.
            description: Optional description.
            group_id: Explicit id (default: generated).

        Raises:
            ItemNotFoundError: If an item id has no catalog item of this type.
        """
        unique_ids = list(dict.fromkeys(item_ids))
        group = RankingGroup(
            name=name,
            creator_id=creator_id,
            item_type_id=item_type_id,
            description=description,
        )
        if group_id is not None:
            group.id = group_id

        def _create(session: Session) -> RankingGroup:
            missing = _missing_items(session, item_type_id, unique_ids)
            if missing:
                raise ItemNotFoundError(missing)

            session.add(group)
            for item_id in unique_ids:
                session.add(GroupItem(group_id=group.id, item_id=item_id))
            session.add(GroupParticipant(user_id=creator_id, group_id=group.id))
            session.commit()
            session.refresh(group)
            return group

        created = await self._run_session(_create)
        logger.info("group_created", group_id=created.id, name=name, items=len(unique_ids))
        return created

    async def get_group(self, group_id: str) -> RankingGroup | None:
        """Get a group by id."""

        def _get(session: Session) -> RankingGroup | None:
            return session.get(RankingGroup, group_id)

        return await self._run_session(_get)

    async def list_groups(self, item_type_id: str) -> list[RankingGroup]:
        """Get the groups of one item type, newest first."""

        def _get(session: Session) -> list[RankingGroup]:
            statement = (
                select(RankingGroup)
                .where(RankingGroup.item_type_id == item_type_id)
                .order_by(col(RankingGroup.created_at).desc())
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get)

    async def list_user_groups(self, user_id: str, item_type_id: str) -> list[RankingGroup]:
        """Get the groups of one item type a user takes part in, sorted by name."""

        def _get(session: Session) -> list[RankingGroup]:
            statement = (
                select(RankingGroup)
                .join(GroupParticipant, col(GroupParticipant.group_id) == col(RankingGroup.id))
                .where(
                    GroupParticipant.user_id == user_id,
                    RankingGroup.item_type_id == item_type_id,
                )
                .order_by(col(RankingGroup.name))
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get)

    async def add_items(self, group_id: str, item_ids: Sequence[str]) -> int:
        """Add catalog items to a group, skipping existing memberships.

        Returns:
            Number of memberships created.

        Raises:
            GroupNotFoundError: If the group does not exist.
            ItemNotFoundError: If an item id has no catalog item of the group's type.
        """

        def _add(session: Session) -> int:
            group = session.get(RankingGroup, group_id)
            if group is None:
                raise GroupNotFoundError(group_id)

            unique_ids = list(dict.fromkeys(item_ids))
            missing = _missing_items(session, group.item_type_id, unique_ids)
            if missing:
                raise ItemNotFoundError(missing)

            existing = set(
                session.exec(select(GroupItem.item_id).where(GroupItem.group_id == group_id)).all()
            )
            new_ids = [item_id for item_id in unique_ids if item_id not in existing]
            for item_id in new_ids:
                session.add(GroupItem(group_id=group_id, item_id=item_id))
            session.commit()
            return len(new_ids)

        added = await self._run_session(_add)
        logger.debug("group_items_added", group_id=group_id, added=added)
        return added

    async def get_group_items(self, group_id: str) -> list[RankableItem]:
        """Get every item belonging to a group."""

        def _get(session: Session) -> list[RankableItem]:
            statement = (
                select(RankableItem)
                .join(GroupItem, col(GroupItem.item_id) == col(RankableItem.id))
                .where(GroupItem.group_id == group_id)
                .order_by(col(RankableItem.name))
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get)

    async def count_members(self, group_id: str, item_ids: Sequence[str]) -> int:
        """Count how many of the given items belong to the group."""

        def _count(session: Session) -> int:
            statement = select(GroupItem.item_id).where(
                GroupItem.group_id == group_id,
                col(GroupItem.item_id).in_(list(item_ids)),
            )
            return len(set(session.exec(statement).all()))

        return await self._run_session(_count)

    async def join_group(self, group_id: str, user_id: str) -> bool:
        """Register a user as a participant, if not already.

        Returns:
            True when the user was newly added.
        """

        def _join(session: Session) -> bool:
            with self._locks.hold([("participant", user_id, group_id)]):
                if session.get(GroupParticipant, (user_id, group_id)) is not None:
                    return False
                session.add(GroupParticipant(user_id=user_id, group_id=group_id))
                session.commit()
                return True

        joined = await self._run_session(_join)
        if joined:
            logger.info("participant_joined", group_id=group_id, user_id=user_id)
        return joined

    async def is_participant(self, group_id: str, user_id: str) -> bool:
        """Whether the user takes part in the group."""

        def _get(session: Session) -> bool:
            return session.get(GroupParticipant, (user_id, group_id)) is not None

        return await self._run_session(_get)

    async def delete_group(self, group_id: str) -> None:
        """Delete a group with its memberships, participants and ratings."""

        def _delete(session: Session) -> None:
            for model in (UserGroupItemRating, GroupParticipant, GroupItem):
                for row in session.exec(select(model).where(model.group_id == group_id)).all():
                    session.delete(row)
            group = session.get(RankingGroup, group_id)
            if group is not None:
                session.delete(group)
            session.commit()

        await self._run_session(_delete)
        logger.info("group_deleted", group_id=group_id)
