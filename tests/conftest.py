"""Shared fixtures."""

import pytest

from group_elo.services.storage import (
    CatalogRepository,
    GroupRepository,
    RatingRepository,
    create_db_engine,
)


@pytest.fixture
def db_url(tmp_path):
    """URL of a fresh DuckDB file."""
    return f"duckdb:///{tmp_path / 'test.duckdb'}"


@pytest.fixture
def engine(db_url):
    """Engine with the schema created."""
    engine = create_db_engine(db_url)
    yield engine
    engine.dispose()


@pytest.fixture
def catalog(engine):
    return CatalogRepository(engine)


@pytest.fixture
def groups(engine):
    return GroupRepository(engine)


@pytest.fixture
def ratings(engine):
    return RatingRepository(engine, base_rating=1200.0)
