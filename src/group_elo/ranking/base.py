"""Base protocol for matchup selection policies in group-elo."""

from __future__ import annotations

import random
from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from group_elo.ranking.matchup import MatchItem


@runtime_checkable
class MatchupPolicy(Protocol):
    """Protocol for choosing the next pair of items to compare.

    Implementations must be read-only with respect to their inputs and draw
    all randomness from the supplied generator.
    """

    def choose(
        self,
        items: Sequence[MatchItem],
        rng: random.Random,
    ) -> tuple[MatchItem, MatchItem] | None:
        """Choose an unordered pair of distinct items.

        Args:
            items: Every item in the group, annotated with the user's rating state.
            rng: Random source for all draws.

        Returns:
            Two distinct items, or None when fewer than two items are given.
        """
        ...
