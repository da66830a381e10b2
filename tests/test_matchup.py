"""Tests for matchup selection."""

import random
from types import SimpleNamespace

import pytest

from group_elo.core.config import DEFAULT_BASE_RATING, AppConfig, MatchupConfig, RatingConfig
from group_elo.ranking import create_matchup_policy
from group_elo.ranking.base import MatchupPolicy
from group_elo.ranking.elo import EloEngine, ItemRating
from group_elo.ranking.matchup import (
    LeastComparedMatchupPolicy,
    MatchItem,
    TieredMatchupPolicy,
    build_match_items,
    orient_pair,
    select_matchup,
)


class _FixedRandom:
    """Random source whose random() always returns the same value."""

    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value

    def randrange(self, stop: int) -> int:
        return 0


def _items(*specs: tuple[str, float, int]) -> list[MatchItem]:
    return [
        MatchItem(item_id=item_id, name=item_id, rating=rating, comparison_count=count)
        for item_id, rating, count in specs
    ]


def _ids(pair) -> set[str]:
    return {pair[0].item_id, pair[1].item_id}


class TestMatchItem:
    """Tests for MatchItem dataclass."""

    def test_defaults(self):
        """Test match item has correct defaults."""
        item = MatchItem(item_id="a")
        assert item.rating == 1200.0
        assert item.comparison_count == 0
        assert item.image_path is None
        assert item.attributes == {}

    def test_defaults_follow_configured_base(self):
        """Test every default rating comes from the shared base rating constant."""
        assert MatchItem(item_id="a").rating == DEFAULT_BASE_RATING
        assert LeastComparedMatchupPolicy().base_rating == DEFAULT_BASE_RATING
        assert EloEngine().base_rating == DEFAULT_BASE_RATING
        assert RatingConfig().base_rating == DEFAULT_BASE_RATING


class TestBuildMatchItems:
    """Tests for joining group items with rating rows."""

    def test_missing_rows_default_to_base(self):
        """Test items without a rating row get the base rating and zero count."""
        records = [
            SimpleNamespace(id="a", name="Alpha", image_path=None, attributes={"year": 1999}),
            SimpleNamespace(id="b", name="Beta", image_path="/b.jpg", attributes=None),
        ]
        ratings = {"a": ItemRating(1234.5, 7)}

        items = build_match_items(records, ratings, base_rating=1200.0)

        assert [i.item_id for i in items] == ["a", "b"]
        assert items[0].rating == 1234.5
        assert items[0].comparison_count == 7
        assert items[0].attributes == {"year": 1999}
        assert items[1].rating == 1200.0
        assert items[1].comparison_count == 0
        assert items[1].image_path == "/b.jpg"
        assert items[1].attributes == {}

    def test_ignores_rows_for_other_items(self):
        """Test rating rows for items outside the group are dropped."""
        records = [SimpleNamespace(id="a", name="Alpha", image_path=None, attributes={})]
        items = build_match_items(records, {"zzz": ItemRating(1500.0, 3)}, base_rating=1500.0)
        assert len(items) == 1


class TestTieredMatchupPolicy:
    """Tests for the tiered selection policy."""

    def test_conforms_to_protocol(self):
        """Test policy satisfies the MatchupPolicy protocol."""
        assert isinstance(TieredMatchupPolicy(), MatchupPolicy)

    @pytest.mark.parametrize("count", [0, 1])
    def test_too_few_items(self, count):
        """Test fewer than two items yields no matchup."""
        items = _items(("a", 1200, 0))[:count]
        assert TieredMatchupPolicy().choose(items, random.Random(1)) is None

    def test_two_items_consume_no_randomness(self):
        """Test the only possible pair is returned without drawing randomness."""
        items = _items(("a", 1200, 0), ("b", 1300, 40))
        rng = random.Random(7)
        state = rng.getstate()

        pair = TieredMatchupPolicy().choose(items, rng)

        assert _ids(pair) == {"a", "b"}
        assert rng.getstate() == state

    def test_cold_start_only_draws_low_history(self):
        """Test cold-start tier only pairs items with fewer than 5 comparisons."""
        items = _items(
            ("new1", 1200, 0),
            ("new2", 1200, 4),
            ("new3", 1180, 2),
            ("old1", 1250, 5),
            ("old2", 1251, 20),
            ("old3", 1400, 33),
        )
        policy = TieredMatchupPolicy()

        seen: set[frozenset[str]] = set()
        for seed in range(200):
            pair = policy.choose(items, random.Random(seed))
            assert pair[0].item_id != pair[1].item_id
            assert _ids(pair) <= {"new1", "new2", "new3"}
            seen.add(frozenset(_ids(pair)))

        assert len(seen) == 3

    def test_single_low_history_item_falls_through(self):
        """Test one cold-start item alone does not trigger the cold-start tier."""
        items = _items(("new", 1000, 0), ("a", 1200, 9), ("b", 1205, 9), ("c", 1400, 9))

        pair = TieredMatchupPolicy().choose(items, _FixedRandom(0.99))

        assert _ids(pair) == {"a", "b"}

    def test_discovery_pairs_extremes(self):
        """Test discovery tier pairs the lowest and highest rated items."""
        items = _items(("mid", 1200, 9), ("low", 900, 9), ("high", 1600, 9), ("mid2", 1210, 9))

        pair = TieredMatchupPolicy(discovery_probability=0.15).choose(items, _FixedRandom(0.1))

        assert pair[0].item_id == "low"
        assert pair[1].item_id == "high"

    def test_competitive_pairs_smallest_gap(self):
        """Test competitive tier pairs the adjacent items closest in rating."""
        items = _items(("a", 1000, 9), ("b", 1100, 9), ("c", 1130, 9), ("d", 1300, 9))

        pair = TieredMatchupPolicy().choose(items, _FixedRandom(0.5))

        assert [p.item_id for p in pair] == ["b", "c"]

    def test_competitive_ties_take_first_gap(self):
        """Test equal gaps resolve to the first pair in ascending order."""
        items = _items(("d", 1300, 9), ("c", 1200, 9), ("b", 1100, 9), ("a", 1000, 9))

        pair = TieredMatchupPolicy().choose(items, _FixedRandom(0.5))

        assert [p.item_id for p in pair] == ["a", "b"]

    def test_discovery_probability_boundary(self):
        """Test a draw equal to the probability goes to the competitive tier."""
        items = _items(("a", 1000, 9), ("b", 1100, 9), ("c", 1130, 9), ("d", 1300, 9))

        pair = TieredMatchupPolicy(discovery_probability=0.15).choose(items, _FixedRandom(0.15))

        assert _ids(pair) == {"b", "c"}

    def test_discovery_rate_roughly_matches_probability(self):
        """Test discovery pairings show up at about the configured rate."""
        items = _items(("a", 1000, 9), ("b", 1100, 9), ("c", 1130, 9), ("d", 1300, 9))
        policy = TieredMatchupPolicy(discovery_probability=0.15)
        rng = random.Random(42)

        discovery = sum(_ids(policy.choose(items, rng)) == {"a", "d"} for _ in range(4000))

        assert 0.12 < discovery / 4000 < 0.18

    def test_threshold_is_configurable(self):
        """Test raising the threshold widens the cold-start pool."""
        items = _items(("a", 1000, 8), ("b", 1100, 9), ("c", 1500, 40))
        policy = TieredMatchupPolicy(min_new_item_comparisons=10)

        for seed in range(50):
            assert _ids(policy.choose(items, random.Random(seed))) == {"a", "b"}


class TestLeastComparedMatchupPolicy:
    """Tests for the least-compared selection policy."""

    def test_conforms_to_protocol(self):
        """Test policy satisfies the MatchupPolicy protocol."""
        assert isinstance(LeastComparedMatchupPolicy(), MatchupPolicy)

    def test_too_few_items(self):
        """Test a single item yields no matchup."""
        assert LeastComparedMatchupPolicy().choose(_items(("a", 1200, 0)), random.Random(1)) is None

    def test_first_item_from_least_compared_pool(self):
        """Test item A always comes from the least-compared pool."""
        items = _items(
            ("p1", 1500, 0),
            ("p2", 1510, 1),
            ("p3", 1490, 1),
            ("x1", 1500, 10),
            ("x2", 1500, 12),
        )
        policy = LeastComparedMatchupPolicy(base_rating=1500.0, candidate_pool_size=3)

        for seed in range(100):
            first, _ = policy.choose(items, random.Random(seed))
            assert first.item_id in {"p1", "p2", "p3"}

    def test_opponent_minimizes_count_then_rating_gap(self):
        """Test item B is the closest in count, then in rating."""
        items = _items(
            ("a", 1500, 0),
            ("far_count", 1500, 9),
            ("near_count_far_rating", 1700, 1),
            ("near_count_near_rating", 1520, 1),
        )
        policy = LeastComparedMatchupPolicy(base_rating=1500.0, candidate_pool_size=1)

        first, second = policy.choose(items, random.Random(3))

        assert first.item_id == "a"
        assert second.item_id == "near_count_near_rating"

    def test_never_pairs_item_with_itself(self):
        """Test A and B are always different items."""
        items = _items(*[(f"i{n}", 1500 + n, n % 3) for n in range(8)])
        policy = LeastComparedMatchupPolicy(base_rating=1500.0)

        for seed in range(100):
            first, second = policy.choose(items, random.Random(seed))
            assert first.item_id != second.item_id


class TestOrientPair:
    """Tests for left/right orientation."""

    def test_keeps_order_below_half(self):
        """Test draws below 0.5 keep the chosen order."""
        a, b = _items(("a", 1200, 0), ("b", 1200, 0))
        assert orient_pair((a, b), _FixedRandom(0.49)) == (a, b)

    def test_swaps_at_or_above_half(self):
        """Test draws from 0.5 upwards swap the slots."""
        a, b = _items(("a", 1200, 0), ("b", 1200, 0))
        assert orient_pair((a, b), _FixedRandom(0.5)) == (b, a)

    def test_roughly_even_split(self):
        """Test both orientations occur with similar frequency."""
        a, b = _items(("a", 1200, 0), ("b", 1200, 0))
        rng = random.Random(11)

        left_a = sum(orient_pair((a, b), rng)[0] is a for _ in range(2000))

        assert 900 < left_a < 1100


class TestSelectMatchup:
    """Tests for the full selection entry point."""

    def test_returns_none_for_small_groups(self):
        """Test fewer than two items is a normal empty outcome."""
        assert select_matchup([], random.Random(0)) is None
        assert select_matchup(_items(("a", 1200, 0)), random.Random(0)) is None

    def test_deterministic_with_seed(self):
        """Test identical seeds reproduce identical selections."""
        items = _items(*[(f"i{n}", 1200 + 7 * n, n) for n in range(10)])

        first = [select_matchup(items, random.Random(seed)) for seed in range(20)]
        second = [select_matchup(items, random.Random(seed)) for seed in range(20)]

        assert [(p[0].item_id, p[1].item_id) for p in first] == [
            (p[0].item_id, p[1].item_id) for p in second
        ]

    def test_never_repeats_an_item(self):
        """Test the two slots always hold different items."""
        items = _items(*[(f"i{n}", 1200 + (n % 4) * 10, n) for n in range(12)])

        for seed in range(300):
            left, right = select_matchup(items, random.Random(seed))
            assert left.item_id != right.item_id

    def test_uses_supplied_policy(self):
        """Test a custom policy is honoured."""
        items = _items(("a", 1500, 0), ("b", 1500, 50), ("c", 1500, 1))
        policy = LeastComparedMatchupPolicy(base_rating=1500.0, candidate_pool_size=1)

        pair = select_matchup(items, random.Random(5), policy)

        assert _ids(pair) == {"a", "c"}


class TestCreateMatchupPolicy:
    """Tests for the policy factory."""

    def test_default_is_tiered(self):
        """Test default config builds the tiered policy."""
        policy = create_matchup_policy(AppConfig())
        assert isinstance(policy, TieredMatchupPolicy)
        assert policy.min_new_item_comparisons == 5
        assert policy.discovery_probability == 0.15

    def test_least_compared(self):
        """Test the alternate policy can be selected."""
        config = AppConfig(matchup=MatchupConfig(policy="least_compared", candidate_pool_size=3))

        policy = create_matchup_policy(config)

        assert isinstance(policy, LeastComparedMatchupPolicy)
        assert policy.candidate_pool_size == 3
        assert policy.base_rating == config.rating.base_rating
