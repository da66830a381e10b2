"""Core configuration and utilities for group-elo."""

from group_elo.core.config import (
    DEFAULT_BASE_RATING,
    DEFAULT_DATABASE_URL,
    AppConfig,
    ItemTypeConfig,
    MatchupConfig,
    RatingConfig,
    load_config,
)
from group_elo.core.errors import (
    ConfigurationError,
    GroupNotFoundError,
    ItemNotFoundError,
    ItemNotInGroupError,
    ItemTypeMismatchError,
    NotParticipantError,
    RankingError,
    SelfComparisonError,
)
from group_elo.core.item_types import ItemTypeResolver

__all__ = [
    "DEFAULT_BASE_RATING",
    "DEFAULT_DATABASE_URL",
    "AppConfig",
    "ItemTypeConfig",
    "ItemTypeResolver",
    "MatchupConfig",
    "RatingConfig",
    "load_config",
    "ConfigurationError",
    "GroupNotFoundError",
    "ItemNotFoundError",
    "ItemNotInGroupError",
    "ItemTypeMismatchError",
    "NotParticipantError",
    "RankingError",
    "SelfComparisonError",
]
