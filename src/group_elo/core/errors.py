"""Custom exceptions for configuration and ranking errors."""

from __future__ import annotations


class ConfigurationError(Exception):
    """Base exception for configuration errors with optional suggestions."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"[Configuration Error] {self.message}"
        if self.suggestion:
            msg += f"\n[Suggestion] {self.suggestion}"
        return msg


class RankingError(Exception):
    """Base exception for comparison and matchup requests that cannot be served."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"[Ranking Error] {self.message}"
        if self.suggestion:
            msg += f"\n[Suggestion] {self.suggestion}"
        return msg


class SelfComparisonError(RankingError):
    """Error when winner and loser reference the same item."""

    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        super().__init__(
            f"Distinct items required: winner and loser are both '{item_id}'",
            "Submit a comparison between two different items.",
        )


class GroupNotFoundError(RankingError):
    """Error when a ranking group does not exist."""

    def __init__(self, group_id: str) -> None:
        self.group_id = group_id
        super().__init__(f"Group not found: {group_id}")


class ItemNotInGroupError(RankingError):
    """Error when a compared item is not a member of the group."""

    def __init__(self, group_id: str, item_ids: list[str]) -> None:
        self.group_id = group_id
        self.item_ids = item_ids
        super().__init__(
            f"Items {', '.join(item_ids)} do not belong to group {group_id}",
            "Both items must belong to this group.",
        )


class ItemTypeMismatchError(RankingError):
    """Error when a group holds a different item type than the one served."""

    def __init__(self, group_id: str, expected_slug: str) -> None:
        self.group_id = group_id
        self.expected_slug = expected_slug
        super().__init__(
            f"Group {group_id} does not hold '{expected_slug}' items",
            f"Only {expected_slug} groups support matchups right now.",
        )


class NotParticipantError(RankingError):
    """Error when a user acts on a group they do not take part in."""

    def __init__(self, group_id: str, user_id: str) -> None:
        self.group_id = group_id
        self.user_id = user_id
        super().__init__(
            "You are not a participant in this ranking group.",
            "Request a matchup in the group first to join it.",
        )


class ItemNotFoundError(RankingError):
    """Error when item ids are missing from the catalog for the group's item type."""

    def __init__(self, item_ids: list[str]) -> None:
        self.item_ids = item_ids
        super().__init__(
            f"One or more selected items could not be found: {', '.join(item_ids)}",
            "Add the items to the catalog before grouping them.",
        )
