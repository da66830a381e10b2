"""Ranking module for group-elo.

Provides the tiered-K Elo rating engine and pluggable matchup selection policies.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from group_elo.ranking.base import MatchupPolicy
from group_elo.ranking.elo import (
    DEFAULT_TIERS,
    EloEngine,
    ItemRating,
    KFactorTiers,
    calculate_expected_score,
    k_factor_for,
    round_rating,
    update_ratings,
)
from group_elo.ranking.matchup import (
    LeastComparedMatchupPolicy,
    MatchItem,
    TieredMatchupPolicy,
    build_match_items,
    orient_pair,
    select_matchup,
)

if TYPE_CHECKING:
    from group_elo.core.config import AppConfig


def create_matchup_policy(config: AppConfig) -> MatchupPolicy:
    """Create matchup policy based on config.

    Args:
        config: Application configuration.

    Returns:
        Configured matchup policy.
    """
    if config.matchup.policy == "least_compared":
        return LeastComparedMatchupPolicy(
            base_rating=config.rating.base_rating,
            candidate_pool_size=config.matchup.candidate_pool_size,
        )
    # Default to the tiered policy
    return TieredMatchupPolicy(
        min_new_item_comparisons=config.matchup.min_new_item_comparisons,
        discovery_probability=config.matchup.discovery_probability,
    )


__all__ = [
    "DEFAULT_TIERS",
    "EloEngine",
    "ItemRating",
    "KFactorTiers",
    "LeastComparedMatchupPolicy",
    "MatchItem",
    "MatchupPolicy",
    "TieredMatchupPolicy",
    "build_match_items",
    "calculate_expected_score",
    "create_matchup_policy",
    "k_factor_for",
    "orient_pair",
    "round_rating",
    "select_matchup",
    "update_ratings",
]
