"""group-elo.

Per-user, per-group Elo ratings built from pairwise comparisons, with a
matchup selector choosing which two items to compare next.
"""

from group_elo.ranking import EloEngine, ItemRating, select_matchup, update_ratings

__version__ = "0.1.0"
__all__ = [
    "EloEngine",
    "ItemRating",
    "__version__",
    "select_matchup",
    "update_ratings",
]
