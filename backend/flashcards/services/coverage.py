"""Coverage pass: show every never-answered item once before drilling.

The first request of a pass shuffles the pool's unseen ids (Fisher-Yates) into
a cursor. The cursor goes back to the client, which sends it with the next
request. The server never stores it and never rebuilds it from the current
unseen set, so items answered after the shuffle keep their place in the order.

When the cursor runs out without a usable id, a random unseen item is picked,
preferring ones not cooling. If every unseen item is cooling, cooling is
ignored.
"""

import logging
import random
from dataclasses import dataclass
from typing import Mapping, Optional

from flashcards.services.confidence import ConfidenceLevel, ItemStats, categorize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CoverageCursor:
    shuffled_order: tuple[str, ...]
    current_index: int = 0

    def serialize(self) -> str:
        return ",".join(self.shuffled_order)


@dataclass(frozen=True)
class CoverageResult:
    item_id: Optional[str]
    # None when the pick came from the random fallback; the client should
    # drop its stored cursor so the next request starts a fresh shuffle.
    cursor: Optional[CoverageCursor]


def parse_cursor(
    shuffled_order_raw: Optional[str],
    current_index_raw: Optional[str],
) -> Optional[CoverageCursor]:
    if not shuffled_order_raw:
        return None
    order = tuple(part.strip() for part in shuffled_order_raw.split(",") if part.strip())
    if not order:
        logger.warning("Ignoring shuffledOrder hint with no ids")
        return None

    index = 0
    if current_index_raw not in (None, ""):
        try:
            index = int(current_index_raw)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring unparseable currentIndex hint: {current_index_raw!r}")
            index = 0
        if index < 0:
            logger.warning(f"Ignoring negative currentIndex hint: {index}")
            index = 0
    return CoverageCursor(shuffled_order=order, current_index=index)


def fisher_yates(ids: list[str], rng: random.Random) -> list[str]:
    shuffled = list(ids)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def new_cursor(
    pool_ids: list[str],
    stats: Mapping[str, ItemStats],
    rng: random.Random,
) -> CoverageCursor:
    unseen = categorize(pool_ids, stats)[ConfidenceLevel.UNSEEN]
    return CoverageCursor(shuffled_order=tuple(fisher_yates(unseen, rng)), current_index=0)


def next_coverage_item(
    pool_ids: list[str],
    stats: Mapping[str, ItemStats],
    cooling: set[str],
    cursor: Optional[CoverageCursor],
    rng: random.Random,
    avoid: Optional[str] = None,
) -> CoverageResult:
    if cursor is None:
        cursor = new_cursor(pool_ids, stats, rng)

    in_pool = set(pool_ids)
    order = cursor.shuffled_order
    index = cursor.current_index
    while index < len(order):
        item_id = order[index]
        # Ids from another pool (or a stale catalog) are skipped, not served
        if item_id not in cooling and item_id in in_pool:
            return CoverageResult(
                item_id=item_id,
                cursor=CoverageCursor(shuffled_order=order, current_index=index + 1),
            )
        index += 1

    unseen = categorize(pool_ids, stats)[ConfidenceLevel.UNSEEN]
    if not unseen:
        return CoverageResult(item_id=None, cursor=None)

    candidates = [item_id for item_id in unseen if item_id not in cooling]
    if not candidates:
        logger.info(f"All {len(unseen)} unseen items are cooling; ignoring cooling")
        candidates = unseen
    if avoid is not None and len(candidates) > 1:
        candidates = [item_id for item_id in candidates if item_id != avoid]
    return CoverageResult(item_id=rng.choice(candidates), cursor=None)
