from datetime import datetime, timezone

import pytest

from flashcards.services.confidence import (
    AggregateRow,
    ConfidenceLevel,
    build_item_stats,
    categorize,
    classify_confidence,
    empty_stats,
    summarize,
)


def _row(item_id, total, correct, last=None):
    return AggregateRow(
        item_id=item_id,
        total_attempts=total,
        correct_attempts=correct,
        last_attempt_at=datetime(2026, 1, 1, tzinfo=timezone.utc) if total else None,
        last_was_correct=last,
    )


class TestClassifyConfidence:
    def test_all_correct_three_times_is_mastered(self):
        assert classify_confidence(3, 3, True) == ConfidenceLevel.MASTERED

    def test_single_wrong_answer_is_weak(self):
        assert classify_confidence(1, 0, False) == ConfidenceLevel.WEAK

    def test_seventy_five_percent_is_learning(self):
        assert classify_confidence(4, 3, True) == ConfidenceLevel.LEARNING

    def test_no_attempts_is_unseen(self):
        assert classify_confidence(0, 0, None) == ConfidenceLevel.UNSEEN

    def test_last_wrong_beats_high_accuracy(self):
        assert classify_confidence(10, 9, False) == ConfidenceLevel.WEAK

    def test_mastered_checked_before_weak(self):
        assert classify_confidence(5, 5, True) == ConfidenceLevel.MASTERED

    def test_two_correct_is_strong_not_mastered(self):
        assert classify_confidence(2, 2, True) == ConfidenceLevel.STRONG

    def test_one_correct_is_learning(self):
        assert classify_confidence(1, 1, True) == ConfidenceLevel.LEARNING

    def test_exactly_eighty_percent_is_learning(self):
        assert classify_confidence(5, 4, True) == ConfidenceLevel.LEARNING

    def test_exactly_fifty_percent_is_learning(self):
        assert classify_confidence(2, 1, True) == ConfidenceLevel.LEARNING

    def test_below_fifty_percent_is_weak_even_if_last_correct(self):
        assert classify_confidence(5, 2, True) == ConfidenceLevel.WEAK

    @pytest.mark.parametrize("total,correct", [(-1, 0), (2, 3), (3, -1)])
    def test_invalid_counts_raise(self, total, correct):
        with pytest.raises(ValueError):
            classify_confidence(total, correct, True)

    def test_pure_and_total_over_grid(self):
        for total in range(0, 8):
            for correct in range(0, total + 1):
                for last in (None, True, False):
                    first = classify_confidence(total, correct, last)
                    assert isinstance(first, ConfidenceLevel)
                    assert classify_confidence(total, correct, last) == first
                    if total == 0:
                        assert first == ConfidenceLevel.UNSEEN
                    else:
                        assert first != ConfidenceLevel.UNSEEN


class TestItemStats:
    def test_build_item_stats_computes_accuracy_and_level(self):
        stats = build_item_stats([_row("Q1", 4, 3, True), _row("Q2", 1, 0, False)])
        assert stats["Q1"].accuracy == 75.0
        assert stats["Q1"].confidence_level == ConfidenceLevel.LEARNING
        assert stats["Q2"].confidence_level == ConfidenceLevel.WEAK

    def test_empty_stats_is_unseen(self):
        s = empty_stats("Q9")
        assert s.total_attempts == 0
        assert s.confidence_level == ConfidenceLevel.UNSEEN


class TestCategorizeAndSummarize:
    def test_categorize_keeps_input_order_and_all_levels(self):
        stats = build_item_stats([_row("b", 3, 3, True), _row("d", 1, 0, False)])
        groups = categorize(["a", "b", "c", "d"], stats)
        assert set(groups) == set(ConfidenceLevel)
        assert groups[ConfidenceLevel.UNSEEN] == ["a", "c"]
        assert groups[ConfidenceLevel.MASTERED] == ["b"]
        assert groups[ConfidenceLevel.WEAK] == ["d"]

    def test_summarize_counts_and_percentage(self):
        stats = build_item_stats([_row("b", 3, 3, True), _row("d", 1, 0, False)])
        summary = summarize(["a", "b", "c", "d"], stats)
        assert summary.total == 4
        assert summary.unseen == 2
        assert summary.mastered == 1
        assert summary.weak == 1
        assert summary.seen_count == 2
        assert summary.seen_percentage == 50

    def test_summarize_empty(self):
        summary = summarize([], {})
        assert summary.total == 0
        assert summary.seen_percentage == 0
