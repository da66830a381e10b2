from sqlmodel import Field, SQLModel


class UserGroupItemRating(SQLModel, table=True):
    """Elo rating of an item for one user within one group."""

    user_id: str = Field(primary_key=True)
    group_id: str = Field(primary_key=True, index=True)
    item_id: str = Field(primary_key=True, index=True)
    rating: float
    comparison_count: int = 0
