"""Database persistence for item types and rankable items."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog
from sqlmodel import Session, col, select

from group_elo.models import GroupItem, ItemType, RankableItem, UserGroupItemRating

from .database import AsyncRepository

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()


class CatalogRepository(AsyncRepository):
    """Persist and query item types and the items that can be ranked."""

    def __init__(self, engine: Engine) -> None:
        super().__init__(engine)

    def resolve_item_type_id(self, slug: str, name: str) -> str:
        """Return the id of the item type with this slug, creating it if absent.

        Blocking; meant to back an ItemTypeResolver.
        """

        def _resolve(session: Session) -> str:
            existing = session.exec(select(ItemType).where(ItemType.slug == slug)).first()
            if existing:
                return existing.id

            item_type = ItemType(name=name, slug=slug)
            session.add(item_type)
            session.commit()
            logger.info("item_type_created", slug=slug, item_type_id=item_type.id)
            return item_type.id

        return self._with_session(_resolve)

    async def ensure_item_type(self, slug: str, name: str) -> str:
        """Async variant of resolve_item_type_id()."""
        return await asyncio.to_thread(self.resolve_item_type_id, slug, name)

    async def create_item(
        self,
        item_type_id: str,
        name: str,
        *,
        item_id: str | None = None,
        external_id: str | None = None,
        image_path: str | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> RankableItem:
        """Add a rankable item to the catalog."""
        data: dict[str, Any] = {
            "item_type_id": item_type_id,
            "name": name,
            "external_id": external_id,
            "image_path": image_path,
            "attributes": attributes or {},
        }
        if item_id is not None:
            data["id"] = item_id

        def _create(session: Session) -> RankableItem:
            item = RankableItem.model_validate(data)
            session.add(item)
            session.commit()
            session.refresh(item)
            return item

        item = await self._run_session(_create)
        logger.debug("item_created", item_id=item.id, name=name)
        return item

    async def get_item(self, item_id: str) -> RankableItem | None:
        """Get an item by id."""

        def _get(session: Session) -> RankableItem | None:
            return session.get(RankableItem, item_id)

        return await self._run_session(_get)

    async def list_items(self, item_type_id: str) -> list[RankableItem]:
        """Get every item of one type, sorted by name."""

        def _get(session: Session) -> list[RankableItem]:
            statement = (
                select(RankableItem)
                .where(RankableItem.item_type_id == item_type_id)
                .order_by(col(RankableItem.name))
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get)

    async def delete_item(self, item_id: str) -> None:
        """Delete an item along with its group memberships and ratings."""

        def _delete(session: Session) -> None:
            for model in (UserGroupItemRating, GroupItem):
                for row in session.exec(select(model).where(model.item_id == item_id)).all():
                    session.delete(row)
            item = session.get(RankableItem, item_id)
            if item is not None:
                session.delete(item)
            session.commit()

        await self._run_session(_delete)
        logger.info("item_deleted", item_id=item_id)
