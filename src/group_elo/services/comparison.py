"""Comparison service tying matchup selection and rating updates to storage."""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass

import structlog
from sqlalchemy import Engine

from group_elo.core.config import AppConfig
from group_elo.core.errors import (
    GroupNotFoundError,
    ItemNotInGroupError,
    ItemTypeMismatchError,
    NotParticipantError,
    SelfComparisonError,
)
from group_elo.core.item_types import ItemTypeResolver
from group_elo.models import RankingGroup
from group_elo.ranking import (
    EloEngine,
    MatchItem,
    MatchupPolicy,
    build_match_items,
    create_matchup_policy,
    select_matchup,
)
from group_elo.services.storage import (
    CatalogRepository,
    ComparisonResult,
    GroupRepository,
    RatingRepository,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class Matchup:
    """A pair of items to present, already assigned to display slots."""

    left: MatchItem
    right: MatchItem


class ComparisonService:
    """Serves matchups to users and records their comparison results.

    Reads group membership and the user's ratings, delegates pairing to the
    matchup policy and rating math to the Elo engine, and persists results
    through the rating repository's locked read-modify-write.
    """

    def __init__(
        self,
        config: AppConfig,
        catalog: CatalogRepository,
        groups: GroupRepository,
        ratings: RatingRepository,
        policy: MatchupPolicy | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize comparison service.

        Args:
            config: Application configuration.
            catalog: Item type and item storage.
            groups: Group and membership storage.
            ratings: Rating row storage.
            policy: Matchup policy (default: built from config).
            rng: Random source for matchups (default: seeded from config.seed).
        """
        self.config = config
        self.catalog = catalog
        self.groups = groups
        self.ratings = ratings
        self.engine = EloEngine.from_config(config.rating)
        self.policy = policy or create_matchup_policy(config)
        self.rng = rng or random.Random(config.seed)  # noqa: S311
        self.item_types = ItemTypeResolver(
            config.item_type.slug,
            lambda: catalog.resolve_item_type_id(config.item_type.slug, config.item_type.name),
        )

    @classmethod
    def from_engine(cls, config: AppConfig, engine: Engine) -> ComparisonService:
        """Build a service with repositories sharing one database engine."""
        return cls(
            config,
            catalog=CatalogRepository(engine),
            groups=GroupRepository(engine),
            ratings=RatingRepository(engine, base_rating=config.rating.base_rating),
        )

    async def _require_group(self, group_id: str) -> RankingGroup:
        group = await self.groups.get_group(group_id)
        if group is None:
            raise GroupNotFoundError(group_id)

        item_type_id = await self.item_types.aget()
        if group.item_type_id != item_type_id:
            raise ItemTypeMismatchError(group_id, self.config.item_type.slug)
        return group

    async def _require_participant(self, group_id: str, user_id: str) -> None:
        if not await self.groups.is_participant(group_id, user_id):
            raise NotParticipantError(group_id, user_id)

    async def match_items(self, user_id: str, group_id: str) -> list[MatchItem]:
        """Get the group's items annotated with the user's rating state."""
        group_items = await self.groups.get_group_items(group_id)
        existing = await self.ratings.get_user_ratings(user_id, group_id)
        return build_match_items(group_items, existing, self.engine.base_rating)

    async def next_matchup(
        self,
        user_id: str,
        group_id: str,
        rng: random.Random | None = None,
    ) -> Matchup | None:
        """Pick the next pair of items for a user to compare.

        Args:
            user_id: Requesting user.
            group_id: Group to draw items from.
            rng: Random source overriding the service's own.

        Returns:
            The oriented matchup, or None when the group has fewer than two items.

        Raises:
            GroupNotFoundError: If the group does not exist.
            ItemTypeMismatchError: If the group holds another item type.
        """
        await self._require_group(group_id)
        await self.groups.join_group(group_id, user_id)

        items = await self.match_items(user_id, group_id)
        pair = select_matchup(items, rng or self.rng, self.policy)
        if pair is None:
            logger.info("matchup_unavailable", group_id=group_id, items=len(items))
            return None

        left, right = pair
        logger.info(
            "matchup_selected",
            user_id=user_id,
            group_id=group_id,
            left=left.item_id,
            right=right.item_id,
        )
        return Matchup(left=left, right=right)

    async def record_comparison(
        self,
        user_id: str,
        group_id: str,
        winner_id: str,
        loser_id: str,
    ) -> ComparisonResult:
        """Record that the user preferred winner over loser.

        Args:
            user_id: User who made the comparison.
            group_id: Group both items belong to.
            winner_id: Preferred item.
            loser_id: Other item.

        Returns:
            Both items' new rating states.

        Raises:
            SelfComparisonError: If winner and loser are the same item.
            GroupNotFoundError: If the group does not exist.
            ItemTypeMismatchError: If the group holds another item type.
            NotParticipantError: If the user has not joined the group.
            ItemNotInGroupError: If either item is not in the group.
        """
        if winner_id == loser_id:
            raise SelfComparisonError(winner_id)

        await self._require_group(group_id)
        await self._require_participant(group_id, user_id)

        members = await self.groups.count_members(group_id, [winner_id, loser_id])
        if members != 2:
            raise ItemNotInGroupError(group_id, [winner_id, loser_id])

        result = await self.ratings.apply_comparison(
            user_id, group_id, winner_id, loser_id, self.engine.update
        )
        logger.info(
            "comparison_recorded",
            user_id=user_id,
            group_id=group_id,
            winner=winner_id,
            winner_rating=result.winner.rating,
            loser=loser_id,
            loser_rating=result.loser.rating,
        )
        return result

    async def user_ratings(self, user_id: str, group_id: str) -> list[MatchItem]:
        """Get the user's ratings for every item in a group, highest first.

        Items the user has never compared are listed at the base rating.
        Only participants of the group may read its ratings.
        """
        await self._require_group(group_id)
        await self._require_participant(group_id, user_id)
        items = await self.match_items(user_id, group_id)
        return sorted(items, key=lambda item: (-item.rating, item.name))

    async def create_group(
        self,
        creator_id: str,
        name: str,
        item_ids: Sequence[str] = (),
        *,
        description: str | None = None,
        group_id: str | None = None,
    ) -> RankingGroup:
        """Create a group of the served item type; the creator joins it."""
        item_type_id = await self.item_types.aget()
        return await self.groups.create_group(
            name,
            creator_id,
            item_type_id,
            item_ids=item_ids,
            description=description,
            group_id=group_id,
        )

    async def user_groups(self, user_id: str) -> list[RankingGroup]:
        """Groups of the served item type the user takes part in, by name."""
        item_type_id = await self.item_types.aget()
        return await self.groups.list_user_groups(user_id, item_type_id)
