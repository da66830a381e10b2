from .catalog import ItemType, RankableItem
from .group import GroupItem, GroupParticipant, RankingGroup
from .rating import UserGroupItemRating

__all__ = [
    "GroupItem",
    "GroupParticipant",
    "ItemType",
    "RankableItem",
    "RankingGroup",
    "UserGroupItemRating",
]
