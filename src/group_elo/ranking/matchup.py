"""Matchup selection for pairwise comparisons."""

from __future__ import annotations

import random
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from group_elo.core.config import DEFAULT_BASE_RATING
from group_elo.ranking.base import MatchupPolicy
from group_elo.ranking.elo import ItemRating

MIN_PAIR_SIZE = 2


@dataclass
class MatchItem:
    """An item in a group, annotated with the requesting user's rating state.

    Attributes:
        item_id: Unique item identifier.
        name: Display name.
        rating: User's current rating for the item (base rating if never compared).
        comparison_count: User's comparisons for the item in this group.
        image_path: Optional image reference for presentation.
        attributes: Optional auxiliary data (release year, author, ...).
    """

    item_id: str
    name: str = ""
    rating: float = DEFAULT_BASE_RATING
    comparison_count: int = 0
    image_path: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)


def build_match_items(
    group_items: Iterable[Any],
    ratings: Mapping[str, ItemRating],
    base_rating: float,
) -> list[MatchItem]:
    """Join a group's items with one user's rating rows.

    Items the user has never compared get the base rating and a zero count.

    Args:
        group_items: Item records with id, name, image_path and attributes.
        ratings: Existing rating rows keyed by item id.
        base_rating: Rating for items without a row.

    Returns:
        One MatchItem per group item, in input order.
    """
    items: list[MatchItem] = []
    for record in group_items:
        existing = ratings.get(record.id)
        items.append(
            MatchItem(
                item_id=record.id,
                name=record.name,
                rating=existing.rating if existing else base_rating,
                comparison_count=existing.comparison_count if existing else 0,
                image_path=record.image_path,
                attributes=dict(record.attributes or {}),
            )
        )
    return items


def _random_pair(pool: Sequence[MatchItem], rng: random.Random) -> tuple[MatchItem, MatchItem]:
    """Draw two distinct items uniformly, without replacement."""
    remaining = list(pool)
    first = remaining.pop(rng.randrange(len(remaining)))
    second = remaining.pop(rng.randrange(len(remaining)))
    return first, second


def _adjacent_by_rating(items: Sequence[MatchItem]) -> tuple[MatchItem, MatchItem]:
    """Pick the adjacent pair (by rating) with the smallest rating gap.

    Ties go to the first pair in ascending rating order.
    """
    ordered = sorted(items, key=lambda item: item.rating)
    best = (ordered[0], ordered[1])
    smallest_gap = abs(ordered[1].rating - ordered[0].rating)

    for current, following in zip(ordered[1:], ordered[2:], strict=False):
        gap = abs(following.rating - current.rating)
        if gap < smallest_gap:
            smallest_gap = gap
            best = (current, following)

    return best


def _discovery_pair(items: Sequence[MatchItem]) -> tuple[MatchItem, MatchItem]:
    """Pair the lowest-rated item with the highest-rated item."""
    ordered = sorted(items, key=lambda item: item.rating)
    return ordered[0], ordered[-1]


class TieredMatchupPolicy:
    """Canonical policy: cold-start, then discovery, then competitive pairing.

    1. Cold-start: with two or more items below min_new_item_comparisons, pick
       two of them uniformly at random.
    2. Discovery: with probability discovery_probability, pair the lowest- and
       highest-rated items.
    3. Competitive: pair the adjacent items with the smallest rating gap.

    Attributes:
        min_new_item_comparisons: Count below which an item is cold-start.
        discovery_probability: Chance of a discovery pairing.
    """

    def __init__(
        self,
        min_new_item_comparisons: int = 5,
        discovery_probability: float = 0.15,
    ) -> None:
        self.min_new_item_comparisons = min_new_item_comparisons
        self.discovery_probability = discovery_probability

    def choose(
        self,
        items: Sequence[MatchItem],
        rng: random.Random,
    ) -> tuple[MatchItem, MatchItem] | None:
        if len(items) < MIN_PAIR_SIZE:
            return None
        if len(items) == MIN_PAIR_SIZE:
            return items[0], items[1]

        low_history = [
            item for item in items if item.comparison_count < self.min_new_item_comparisons
        ]
        if len(low_history) >= MIN_PAIR_SIZE:
            return _random_pair(low_history, rng)

        if rng.random() < self.discovery_probability:
            return _discovery_pair(items)

        return _adjacent_by_rating(items)


class LeastComparedMatchupPolicy:
    """Alternate policy: least-compared item against its closest peer.

    Items are ranked by (comparison_count, distance from the base rating). Item
    A is drawn at random from the first candidate_pool_size of them; item B is
    the other item minimizing (|count gap|, |rating gap|), first occurrence on
    ties.

    Attributes:
        base_rating: Rating used as the distance anchor.
        candidate_pool_size: How many least-compared items A is drawn from.
    """

    def __init__(
        self, base_rating: float = DEFAULT_BASE_RATING, candidate_pool_size: int = 5
    ) -> None:
        self.base_rating = base_rating
        self.candidate_pool_size = candidate_pool_size

    def choose(
        self,
        items: Sequence[MatchItem],
        rng: random.Random,
    ) -> tuple[MatchItem, MatchItem] | None:
        if len(items) < MIN_PAIR_SIZE:
            return None
        if len(items) == MIN_PAIR_SIZE:
            return items[0], items[1]

        ordered = sorted(
            items,
            key=lambda item: (item.comparison_count, abs(item.rating - self.base_rating)),
        )
        pool = ordered[: min(self.candidate_pool_size, len(ordered))]
        first = pool[rng.randrange(len(pool))]

        remaining = [item for item in items if item.item_id != first.item_id]
        opponent = min(
            remaining,
            key=lambda item: (
                abs(item.comparison_count - first.comparison_count),
                abs(item.rating - first.rating),
            ),
        )
        return first, opponent


def orient_pair(
    pair: tuple[MatchItem, MatchItem], rng: random.Random
) -> tuple[MatchItem, MatchItem]:
    """Assign the pair to left/right slots with equal probability."""
    if rng.random() < 0.5:
        return pair
    return pair[1], pair[0]


def select_matchup(
    items: Sequence[MatchItem],
    rng: random.Random,
    policy: MatchupPolicy | None = None,
) -> tuple[MatchItem, MatchItem] | None:
    """Choose and orient the next pair of items to compare.

    Args:
        items: Every item in the group with the user's rating state.
        rng: Random source for every draw, seed it for reproducible selections.
        policy: Selection policy (default: TieredMatchupPolicy()).

    Returns:
        (left, right) pair of distinct items, or None for fewer than two items.
    """
    policy = policy or TieredMatchupPolicy()
    pair = policy.choose(items, rng)
    if pair is None:
        return None
    return orient_pair(pair, rng)
