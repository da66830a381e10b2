"""Configuration schemas and loading for group-elo."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, model_validator

DEFAULT_DATABASE_URL = "duckdb:///group_elo.duckdb"
DEFAULT_BASE_RATING = 1200.0


class RatingConfig(BaseModel):
    """Elo rating configuration.

    Attributes:
        base_rating: Rating assigned to an item on its first comparison. Pick one
            value per deployment and never mix (1200 and 1500 are both common).
        provisional_k: K-factor while comparison_count <= provisional_max_count.
        established_k: K-factor while comparison_count <= established_max_count.
        master_k: K-factor above established_max_count.
        provisional_max_count: Highest prior count still treated as provisional.
        established_max_count: Highest prior count still treated as established.
        decimal_places: Precision ratings are rounded to after every update.
    """

    base_rating: float = DEFAULT_BASE_RATING
    provisional_k: float = Field(default=40.0, gt=0)
    established_k: float = Field(default=20.0, gt=0)
    master_k: float = Field(default=10.0, gt=0)
    provisional_max_count: int = Field(default=10, ge=0)
    established_max_count: int = Field(default=30, ge=0)
    decimal_places: int = Field(default=4, ge=0, le=10)

    @model_validator(mode="after")
    def validate_tier_bounds(self) -> RatingConfig:
        if self.provisional_max_count >= self.established_max_count:
            msg = "provisional_max_count must be lower than established_max_count"
            raise ValueError(msg)
        return self


class MatchupConfig(BaseModel):
    """Matchup selection configuration.

    Attributes:
        policy: "tiered" (cold-start, discovery, competitive) is the canonical
            policy. "least_compared" pairs the least-compared items by closest
            comparison count and rating instead.
        min_new_item_comparisons: Items below this count are cold-start items.
        discovery_probability: Chance of a lowest-vs-highest discovery pairing.
        candidate_pool_size: Pool size for the least_compared policy.
    """

    policy: Literal["tiered", "least_compared"] = "tiered"
    min_new_item_comparisons: int = Field(default=5, ge=0)
    discovery_probability: float = Field(default=0.15, ge=0.0, le=1.0)
    candidate_pool_size: int = Field(default=5, ge=1)


class ItemTypeConfig(BaseModel):
    """Item category served by this deployment."""

    slug: str = Field(default="movie", min_length=1)
    name: str = Field(default="Movie", min_length=1)


class AppConfig(BaseModel):
    """Complete application configuration."""

    rating: RatingConfig = Field(default_factory=RatingConfig)
    matchup: MatchupConfig = Field(default_factory=MatchupConfig)
    item_type: ItemTypeConfig = Field(default_factory=ItemTypeConfig)
    database_url: str = DEFAULT_DATABASE_URL
    seed: int | None = None


def load_config(path: str | Path) -> AppConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to YAML configuration file.

    Returns:
        Validated AppConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValidationError: If config is invalid.
    """
    config_path = Path(path)
    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with config_path.open() as f:
        data = yaml.safe_load(f)

    return AppConfig.model_validate(data or {})
