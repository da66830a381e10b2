"""Database persistence for per-user, per-group item ratings."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from sqlmodel import Session, col, select

from group_elo.core.config import DEFAULT_BASE_RATING
from group_elo.models import UserGroupItemRating
from group_elo.ranking.elo import ItemRating

from .database import AsyncRepository, supports_row_locks
from .locks import DEFAULT_LOCKS, RowLockTable

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()

RatingUpdate = Callable[[ItemRating, ItemRating], tuple[ItemRating, ItemRating]]


@dataclass(frozen=True)
class ComparisonResult:
    """Persisted outcome of one comparison.

    Attributes:
        winner_id: Item that won.
        winner: Winner's rating state after the comparison.
        loser_id: Item that lost.
        loser: Loser's rating state after the comparison.
    """

    winner_id: str
    winner: ItemRating
    loser_id: str
    loser: ItemRating


class RatingRepository(AsyncRepository):
    """Persist and query rating rows keyed by (user, group, item)."""

    def __init__(
        self,
        engine: Engine,
        base_rating: float = DEFAULT_BASE_RATING,
        locks: RowLockTable | None = None,
    ) -> None:
        super().__init__(engine)
        self.base_rating = base_rating
        self._locks = locks or DEFAULT_LOCKS

    async def get_user_ratings(self, user_id: str, group_id: str) -> dict[str, ItemRating]:
        """Get the user's existing rating rows in a group, keyed by item id.

        Items without a row have never been compared by this user.
        """

        def _get(session: Session) -> dict[str, ItemRating]:
            statement = select(UserGroupItemRating).where(
                UserGroupItemRating.user_id == user_id,
                UserGroupItemRating.group_id == group_id,
            )
            return {
                row.item_id: ItemRating(rating=row.rating, comparison_count=row.comparison_count)
                for row in session.exec(statement).all()
            }

        return await self._run_session(_get)

    async def get_leaderboard(self, user_id: str, group_id: str) -> list[UserGroupItemRating]:
        """Get the user's rating rows in a group sorted by rating."""

        def _get(session: Session) -> list[UserGroupItemRating]:
            statement = (
                select(UserGroupItemRating)
                .where(
                    UserGroupItemRating.user_id == user_id,
                    UserGroupItemRating.group_id == group_id,
                )
                .order_by(col(UserGroupItemRating.rating).desc())
            )
            return list(session.exec(statement).all())

        return await self._run_session(_get)

    async def apply_comparison(
        self,
        user_id: str,
        group_id: str,
        winner_id: str,
        loser_id: str,
        update: RatingUpdate,
    ) -> ComparisonResult:
        """Read, update and write both rating rows as one locked unit.

        Both rows are locked for the whole read-compute-write sequence. Missing
        rows start at the base rating with a zero count and are only inserted,
        never overwritten. The update function runs exactly once.

        Args:
            user_id: User who made the comparison.
            group_id: Group the comparison belongs to.
            winner_id: Item that won.
            loser_id: Item that lost.
            update: Pure function mapping (winner, loser) states to new states.

        Returns:
            The persisted new states.
        """
        keys = [(user_id, group_id, winner_id), (user_id, group_id, loser_id)]

        def _apply(session: Session) -> ComparisonResult:
            with self._locks.hold(keys):
                rows = self._lock_rows(session, user_id, group_id, [winner_id, loser_id])
                winner_row = rows.get(winner_id)
                loser_row = rows.get(loser_id)

                new_winner, new_loser = update(
                    self._state_of(winner_row), self._state_of(loser_row)
                )

                self._write(session, winner_row, user_id, group_id, winner_id, new_winner)
                self._write(session, loser_row, user_id, group_id, loser_id, new_loser)
                session.commit()

            return ComparisonResult(
                winner_id=winner_id, winner=new_winner, loser_id=loser_id, loser=new_loser
            )

        result = await self._run_session(_apply)
        logger.debug(
            "ratings_written",
            user_id=user_id,
            group_id=group_id,
            winner=winner_id,
            loser=loser_id,
        )
        return result

    @staticmethod
    def _lock_rows(
        session: Session, user_id: str, group_id: str, item_ids: list[str]
    ) -> dict[str, UserGroupItemRating]:
        statement = (
            select(UserGroupItemRating)
            .where(
                UserGroupItemRating.user_id == user_id,
                UserGroupItemRating.group_id == group_id,
                col(UserGroupItemRating.item_id).in_(item_ids),
            )
            .order_by(col(UserGroupItemRating.item_id))
        )
        if supports_row_locks(session):
            statement = statement.with_for_update()
        return {row.item_id: row for row in session.exec(statement).all()}

    def _state_of(self, row: UserGroupItemRating | None) -> ItemRating:
        if row is None:
            return ItemRating(rating=self.base_rating, comparison_count=0)
        return ItemRating(rating=row.rating, comparison_count=row.comparison_count)

    @staticmethod
    def _write(
        session: Session,
        row: UserGroupItemRating | None,
        user_id: str,
        group_id: str,
        item_id: str,
        state: ItemRating,
    ) -> None:
        if row is None:
            row = UserGroupItemRating(
                user_id=user_id,
                group_id=group_id,
                item_id=item_id,
                rating=state.rating,
                comparison_count=state.comparison_count,
            )
        else:
            row.rating = state.rating
            row.comparison_count = state.comparison_count
        session.add(row)
