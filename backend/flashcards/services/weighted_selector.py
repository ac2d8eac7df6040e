"""Steady-state pick once every item has been seen.

Each non-mastered, seen item gets a static weight by confidence level and one
item is drawn with probability proportional to its weight. Mastered items
never come up. Cooling is dropped rather than return nothing while a
non-mastered item exists.
"""

import logging
import random
from datetime import datetime, timezone
from typing import Mapping, Optional

from flashcards.services.confidence import ConfidenceLevel, ItemStats, categorize

logger = logging.getLogger(__name__)

SELECTION_WEIGHTS = {
    ConfidenceLevel.WEAK: 70,
    ConfidenceLevel.LEARNING: 25,
    ConfidenceLevel.STRONG: 5,
}

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _last_attempt_key(stats: Mapping[str, ItemStats], item_id: str) -> datetime:
    s = stats.get(item_id)
    if s is None or s.last_attempt_at is None:
        return _EPOCH
    ts = s.last_attempt_at
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def build_weighted_pool(
    pool_ids: list[str],
    stats: Mapping[str, ItemStats],
    cooling: set[str],
) -> list[tuple[str, int]]:
    groups = categorize(pool_ids, stats)
    weak = [i for i in groups[ConfidenceLevel.WEAK] if i not in cooling]
    learning = [i for i in groups[ConfidenceLevel.LEARNING] if i not in cooling]
    strong = [i for i in groups[ConfidenceLevel.STRONG] if i not in cooling]

    # Most recent failures first
    weak.sort(key=lambda i: _last_attempt_key(stats, i), reverse=True)

    pool = [(i, SELECTION_WEIGHTS[ConfidenceLevel.WEAK]) for i in weak]
    pool += [(i, SELECTION_WEIGHTS[ConfidenceLevel.LEARNING]) for i in learning]
    pool += [(i, SELECTION_WEIGHTS[ConfidenceLevel.STRONG]) for i in strong]
    return pool


def weighted_draw(pool: list[tuple[str, int]], rng: random.Random) -> Optional[str]:
    if not pool:
        return None
    total = sum(weight for _, weight in pool)
    draw = rng.random() * total
    cumulative = 0.0
    for item_id, weight in pool:
        cumulative += weight
        if draw < cumulative:
            return item_id
    # Float rounding at the top edge
    return pool[-1][0]


def select_weighted(
    pool_ids: list[str],
    stats: Mapping[str, ItemStats],
    cooling: set[str],
    rng: random.Random,
    avoid: Optional[str] = None,
) -> Optional[str]:
    """Weighted pick; `avoid` (the item served last) is dropped unless it is the only candidate."""
    pool = build_weighted_pool(pool_ids, stats, cooling)
    if not pool and cooling:
        pool = build_weighted_pool(pool_ids, stats, set())
        if pool:
            logger.info(f"All {len(pool)} drill candidates are cooling; ignoring cooling")
    if avoid is not None and len(pool) > 1:
        pool = [(item_id, weight) for item_id, weight in pool if item_id != avoid]
    return weighted_draw(pool, rng)
