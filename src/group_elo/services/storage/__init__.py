from .catalog_repository import CatalogRepository
from .database import create_db_engine
from .group_repository import GroupRepository
from .locks import RowLockTable
from .rating_repository import ComparisonResult, RatingRepository

__all__ = [
    "CatalogRepository",
    "ComparisonResult",
    "GroupRepository",
    "RatingRepository",
    "RowLockTable",
    "create_db_engine",
]
