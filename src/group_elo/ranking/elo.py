"""Elo rating calculations with a tiered K-factor."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal

from group_elo.core.config import DEFAULT_BASE_RATING, RatingConfig

RATING_DECIMAL_PLACES = 4


@dataclass(frozen=True)
class ItemRating:
    """One user's rating state for one item within one group.

    Attributes:
        rating: Current Elo strength estimate.
        comparison_count: Comparisons this user has logged for the item in the group.
    """

    rating: float
    comparison_count: int = 0

    def recorded(self, new_rating: float) -> ItemRating:
        """Return the state after one more comparison ending at new_rating."""
        return replace(self, rating=new_rating, comparison_count=self.comparison_count + 1)


@dataclass(frozen=True)
class KFactorTiers:
    """K-factor tiers keyed on an item's comparison count before the update.

    Attributes:
        provisional_k: K while count <= provisional_max_count.
        established_k: K while count <= established_max_count.
        master_k: K for every higher count.
        provisional_max_count: Upper bound (inclusive) of the provisional tier.
        established_max_count: Upper bound (inclusive) of the established tier.
    """

    provisional_k: float = 40.0
    established_k: float = 20.0
    master_k: float = 10.0
    provisional_max_count: int = 10
    established_max_count: int = 30


DEFAULT_TIERS = KFactorTiers()


def calculate_expected_score(rating_a: float, rating_b: float) -> float:
    """Calculate expected score for player A against player B.

    Uses the standard Elo formula:
    E_A = 1 / (1 + 10^((R_B - R_A) / 400))

    Args:
        rating_a: Rating of player A.
        rating_b: Rating of player B.

    Returns:
        Probability that A wins (0.0 to 1.0).
    """
    return 1.0 / (1.0 + 10 ** ((rating_b - rating_a) / 400))


def k_factor_for(comparison_count: int, tiers: KFactorTiers = DEFAULT_TIERS) -> float:
    """Pick the K-factor for an item from its prior comparison count."""
    if comparison_count <= tiers.provisional_max_count:
        return tiers.provisional_k
    if comparison_count <= tiers.established_max_count:
        return tiers.established_k
    return tiers.master_k


def round_rating(value: float, places: int = RATING_DECIMAL_PLACES) -> float:
    """Round a rating half-up to a fixed number of decimal places."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def update_ratings(
    winner: ItemRating,
    loser: ItemRating,
    tiers: KFactorTiers = DEFAULT_TIERS,
    places: int = RATING_DECIMAL_PLACES,
) -> tuple[ItemRating, ItemRating]:
    """Compute both items' states after the winner beat the loser.

    Each side uses its own K-factor from its count before this comparison.
    Callers must reject self-comparisons before calling this.

    Args:
        winner: Rating state of the item that won.
        loser: Rating state of the item that lost.
        tiers: K-factor tiers.
        places: Decimal places new ratings are rounded to.

    Returns:
        Tuple of (new_winner, new_loser).

    Raises:
        ValueError: If either rating is NaN or infinite.
    """
    if not (math.isfinite(winner.rating) and math.isfinite(loser.rating)):
        msg = f"Ratings must be finite, got {winner.rating} and {loser.rating}"
        raise ValueError(msg)

    expected_winner = calculate_expected_score(winner.rating, loser.rating)
    expected_loser = calculate_expected_score(loser.rating, winner.rating)

    winner_k = k_factor_for(winner.comparison_count, tiers)
    loser_k = k_factor_for(loser.comparison_count, tiers)

    new_winner = winner.rating + winner_k * (1.0 - expected_winner)
    new_loser = loser.rating + loser_k * (0.0 - expected_loser)

    return (
        winner.recorded(round_rating(new_winner, places)),
        loser.recorded(round_rating(new_loser, places)),
    )


class EloEngine:
    """Rating engine bound to a deployment's base rating and K tiers.

    Attributes:
        base_rating: Rating given to items on their first comparison.
        tiers: K-factor tiers.
        places: Decimal places ratings are rounded to.
    """

    def __init__(
        self,
        base_rating: float = DEFAULT_BASE_RATING,
        tiers: KFactorTiers = DEFAULT_TIERS,
        places: int = RATING_DECIMAL_PLACES,
    ) -> None:
        self.base_rating = base_rating
        self.tiers = tiers
        self.places = places

    @classmethod
    def from_config(cls, config: RatingConfig) -> EloEngine:
        """Build an engine from rating configuration."""
        tiers = KFactorTiers(
            provisional_k=config.provisional_k,
            established_k=config.established_k,
            master_k=config.master_k,
            provisional_max_count=config.provisional_max_count,
            established_max_count=config.established_max_count,
        )
        return cls(base_rating=config.base_rating, tiers=tiers, places=config.decimal_places)

    def new_rating(self) -> ItemRating:
        """Rating state for an item this user has never compared."""
        return ItemRating(rating=self.base_rating, comparison_count=0)

    def update(self, winner: ItemRating, loser: ItemRating) -> tuple[ItemRating, ItemRating]:
        """Apply one comparison result. See update_ratings()."""
        return update_ratings(winner, loser, self.tiers, self.places)
