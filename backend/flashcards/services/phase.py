"""Pool-wide study phase, projected fresh from current item stats."""

from enum import Enum
from typing import Mapping

from flashcards.services.confidence import ConfidenceLevel, ItemStats, level_of
from flashcards.services.errors import EmptyPool


class Phase(str, Enum):
    COVERAGE = "coverage"   # something in the pool has never been answered
    DRILLING = "drilling"   # all seen, not all mastered
    MASTERED = "mastered"   # every item mastered


def determine_phase(item_ids: list[str], stats: Mapping[str, ItemStats]) -> Phase:
    if not item_ids:
        raise EmptyPool("Cannot determine the phase of an empty pool")

    levels = [level_of(item_id, stats) for item_id in item_ids]
    if any(level == ConfidenceLevel.UNSEEN for level in levels):
        return Phase.COVERAGE
    if all(level == ConfidenceLevel.MASTERED for level in levels):
        return Phase.MASTERED
    return Phase.DRILLING
