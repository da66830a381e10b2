from .comparison import ComparisonService, Matchup

__all__ = ["ComparisonService", "Matchup"]
