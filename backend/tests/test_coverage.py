import random

from flashcards.services.confidence import AggregateRow, build_item_stats
from flashcards.services.coverage import (
    CoverageCursor,
    fisher_yates,
    new_cursor,
    next_coverage_item,
    parse_cursor,
)


def _seen(*ids):
    return build_item_stats([
        AggregateRow(item_id=i, total_attempts=1, correct_attempts=1,
                     last_attempt_at=None, last_was_correct=True)
        for i in ids
    ])


class TestParseCursor:
    def test_no_order_means_no_cursor(self):
        assert parse_cursor(None, "3") is None
        assert parse_cursor("", None) is None
        assert parse_cursor(" , ,", "0") is None

    def test_parses_order_and_index(self):
        cursor = parse_cursor("a,b,c", "2")
        assert cursor == CoverageCursor(("a", "b", "c"), 2)
        assert cursor.serialize() == "a,b,c"

    def test_bad_index_resets_to_zero(self):
        assert parse_cursor("a,b", "x").current_index == 0
        assert parse_cursor("a,b", "-4").current_index == 0
        assert parse_cursor("a,b", None).current_index == 0


def test_fisher_yates_is_a_permutation():
    ids = [f"Q{i}" for i in range(30)]
    shuffled = fisher_yates(ids, random.Random(1))
    assert sorted(shuffled) == sorted(ids)
    assert ids == [f"Q{i}" for i in range(30)]


def test_fisher_yates_reproducible_with_seed():
    ids = [f"Q{i}" for i in range(10)]
    assert fisher_yates(ids, random.Random(3)) == fisher_yates(ids, random.Random(3))


def test_new_cursor_only_holds_unseen(rng):
    cursor = new_cursor(["a", "b", "c", "d"], _seen("b", "d"), rng)
    assert sorted(cursor.shuffled_order) == ["a", "c"]
    assert cursor.current_index == 0


class TestNextCoverageItem:
    def test_every_unseen_item_once_with_cursor_carried(self, rng):
        pool = [f"Q{i}" for i in range(12)]
        cursor = None
        served = []
        for _ in range(len(pool)):
            result = next_coverage_item(pool, {}, set(), cursor, rng)
            served.append(result.item_id)
            cursor = result.cursor
        assert sorted(served) == sorted(pool)

    def test_five_unseen_then_sixth_call_still_serves(self, rng):
        pool = ["a", "b", "c", "d", "e"]
        cursor = None
        served = []
        for _ in range(5):
            result = next_coverage_item(pool, {}, set(), cursor, rng)
            served.append(result.item_id)
            cursor = result.cursor
        assert len(set(served)) == 5

        sixth = next_coverage_item(pool, {}, set(), cursor, rng)
        assert sixth.item_id in pool
        assert sixth.cursor is None

    def test_skips_cooling_ids(self, rng):
        cursor = CoverageCursor(("a", "b", "c"), 0)
        result = next_coverage_item(["a", "b", "c"], {}, {"a"}, cursor, rng)
        assert result.item_id == "b"
        assert result.cursor.current_index == 2

    def test_skips_ids_not_in_pool(self, rng):
        cursor = CoverageCursor(("zz", "a"), 0)
        result = next_coverage_item(["a"], {}, set(), cursor, rng)
        assert result.item_id == "a"

    def test_order_not_rebuilt_from_current_unseen(self, rng):
        # "a" was answered after the shuffle; the cursor still serves it in place
        cursor = CoverageCursor(("a", "b"), 0)
        result = next_coverage_item(["a", "b"], _seen("a"), set(), cursor, rng)
        assert result.item_id == "a"

    def test_exhausted_cursor_prefers_non_cooling_unseen(self, rng):
        cursor = CoverageCursor(("a",), 1)
        result = next_coverage_item(["a", "b", "c"], _seen("a"), {"b"}, cursor, rng)
        assert result.item_id == "c"
        assert result.cursor is None

    def test_exhausted_cursor_ignores_cooling_as_last_resort(self, rng):
        cursor = CoverageCursor(("a",), 1)
        result = next_coverage_item(["a", "b"], _seen("a"), {"b"}, cursor, rng)
        assert result.item_id == "b"

    def test_nothing_unseen_returns_none(self, rng):
        cursor = CoverageCursor(("a", "b"), 2)
        result = next_coverage_item(["a", "b"], _seen("a", "b"), set(), cursor, rng)
        assert result.item_id is None
