"""Per-item confidence levels derived from the raw attempt history.

Levels (first matching rule wins):
  unseen  : no attempts
  mastered: 100% accuracy with at least 3 attempts
  weak    : last attempt wrong, or accuracy below 50%
  strong  : accuracy above 80% with at least 2 attempts
  learning: everything else

A single wrong answer drops even a long-correct item to weak until it is
answered correctly again.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Mapping, Optional


class ConfidenceLevel(str, Enum):
    UNSEEN = "unseen"
    WEAK = "weak"
    LEARNING = "learning"
    STRONG = "strong"
    MASTERED = "mastered"


MASTERED_MIN_ATTEMPTS = 3
STRONG_MIN_ATTEMPTS = 2
STRONG_MIN_ACCURACY = 80.0
WEAK_MAX_ACCURACY = 50.0


def classify_confidence(
    total_attempts: int,
    correct_attempts: int,
    last_was_correct: Optional[bool],
) -> ConfidenceLevel:
    if total_attempts < 0 or correct_attempts < 0 or correct_attempts > total_attempts:
        raise ValueError(
            f"Invalid attempt counts: total={total_attempts}, correct={correct_attempts}"
        )
    if total_attempts == 0:
        return ConfidenceLevel.UNSEEN

    accuracy = correct_attempts / total_attempts * 100

    if accuracy == 100 and total_attempts >= MASTERED_MIN_ATTEMPTS:
        return ConfidenceLevel.MASTERED
    if last_was_correct is False or accuracy < WEAK_MAX_ACCURACY:
        return ConfidenceLevel.WEAK
    if accuracy > STRONG_MIN_ACCURACY and total_attempts >= STRONG_MIN_ATTEMPTS:
        return ConfidenceLevel.STRONG
    return ConfidenceLevel.LEARNING


@dataclass(frozen=True)
class ItemStats:
    item_id: str
    total_attempts: int
    correct_attempts: int
    last_attempt_at: Optional[datetime]
    last_was_correct: Optional[bool]
    confidence_level: ConfidenceLevel
    accuracy: float  # 0-100
    last_failed_at: Optional[datetime] = None


@dataclass(frozen=True)
class AggregateRow:
    """One item's raw totals as read from the attempt store."""
    item_id: str
    total_attempts: int
    correct_attempts: int
    last_attempt_at: Optional[datetime]
    last_was_correct: Optional[bool]
    last_failed_at: Optional[datetime] = None


def empty_stats(item_id: str) -> ItemStats:
    return ItemStats(
        item_id=item_id,
        total_attempts=0,
        correct_attempts=0,
        last_attempt_at=None,
        last_was_correct=None,
        confidence_level=ConfidenceLevel.UNSEEN,
        accuracy=0.0,
    )


def stats_from_row(row: AggregateRow) -> ItemStats:
    total = row.total_attempts
    correct = row.correct_attempts
    return ItemStats(
        item_id=row.item_id,
        total_attempts=total,
        correct_attempts=correct,
        last_attempt_at=row.last_attempt_at,
        last_was_correct=row.last_was_correct,
        confidence_level=classify_confidence(total, correct, row.last_was_correct),
        accuracy=(correct / total * 100) if total > 0 else 0.0,
        last_failed_at=row.last_failed_at,
    )


def build_item_stats(rows: Iterable[AggregateRow]) -> dict[str, ItemStats]:
    return {row.item_id: stats_from_row(row) for row in rows}


def level_of(item_id: str, stats: Mapping[str, ItemStats]) -> ConfidenceLevel:
    s = stats.get(item_id)
    return s.confidence_level if s else ConfidenceLevel.UNSEEN


def categorize(
    item_ids: Iterable[str],
    stats: Mapping[str, ItemStats],
) -> dict[ConfidenceLevel, list[str]]:
    """Group ids by level, keeping input order inside each group."""
    groups: dict[ConfidenceLevel, list[str]] = {level: [] for level in ConfidenceLevel}
    for item_id in item_ids:
        groups[level_of(item_id, stats)].append(item_id)
    return groups


@dataclass(frozen=True)
class StatsSummary:
    total: int
    unseen: int
    weak: int
    learning: int
    strong: int
    mastered: int
    seen_count: int
    seen_percentage: int


def summarize(item_ids: list[str], stats: Mapping[str, ItemStats]) -> StatsSummary:
    groups = categorize(item_ids, stats)
    total = len(item_ids)
    unseen = len(groups[ConfidenceLevel.UNSEEN])
    seen = total - unseen
    return StatsSummary(
        total=total,
        unseen=unseen,
        weak=len(groups[ConfidenceLevel.WEAK]),
        learning=len(groups[ConfidenceLevel.LEARNING]),
        strong=len(groups[ConfidenceLevel.STRONG]),
        mastered=len(groups[ConfidenceLevel.MASTERED]),
        seen_count=seen,
        seen_percentage=round(seen / total * 100) if total else 0,
    )
