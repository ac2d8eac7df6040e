"""Next-item selection for live study mode.

Pipeline per request:
  attempt log -> per-item stats -> pool phase -> cooling set
  -> coverage cursor (phase coverage) or weighted draw (phase drilling)

The server keeps nothing between calls. The coverage cursor, the recent
answer list and the last served id arrive as hints; the updated cursor and
the newly served id leave in the result. With the last served id carried
back, two calls with the same cooling hints never serve the same item twice
in a row while another candidate is eligible.

Two "next" calls issued before either resulting attempt is recorded see the
same log and may return the same item. This is accepted for a single learner
on a single device; it is not guarded against here.
"""

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.orm import Session

from flashcards.services.attempt_store import aggregate_by_item
from flashcards.services.catalog import Catalog, CatalogItem, PoolFilter, get_profile
from flashcards.services.confidence import (
    ItemStats,
    StatsSummary,
    empty_stats,
    summarize,
)
from flashcards.services.cooling import RecentAnswer, build_cooling_set
from flashcards.services.coverage import CoverageCursor, next_coverage_item
from flashcards.services.interaction_logger import log_interaction
from flashcards.services.phase import Phase, determine_phase
from flashcards.services.weighted_selector import select_weighted

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NextItemRequest:
    pool: PoolFilter
    recent: list[RecentAnswer] = field(default_factory=list)
    exclude: frozenset[str] = frozenset()
    cursor: Optional[CoverageCursor] = None
    force_phase: Optional[Phase] = None
    # Item served by the previous call; not repeated while another candidate exists
    last_served: Optional[str] = None
    now_ms: Optional[int] = None


@dataclass(frozen=True)
class NextItemResult:
    item: Optional[CatalogItem]
    phase: Phase
    summary: StatsSummary
    item_stats: Optional[ItemStats] = None
    cursor: Optional[CoverageCursor] = None


def select_next_item(
    db: Session,
    catalog: Catalog,
    request: NextItemRequest,
    rng: random.Random,
) -> NextItemResult:
    """Pick the next item for a pool.

    Raises InvalidFilter / EmptyPool for bad filters. Returns item=None with
    phase=mastered when nothing is left to study.
    """
    if request.force_phase == Phase.MASTERED:
        raise ValueError("Only coverage or drilling can be forced")

    profile = get_profile(request.pool.domain)
    items = catalog.list_items(request.pool)
    pool_ids = [item.id for item in items]

    stats = aggregate_by_item(db, pool_ids)
    computed = determine_phase(pool_ids, stats)
    summary = summarize(pool_ids, stats)

    if computed == Phase.MASTERED:
        return NextItemResult(item=None, phase=Phase.MASTERED, summary=summary)

    phase = request.force_phase or computed
    now_ms = request.now_ms if request.now_ms is not None else int(time.time() * 1000)
    cooling = build_cooling_set(request.recent, profile.cooling, now_ms, request.exclude)

    selected_id: Optional[str] = None
    cursor: Optional[CoverageCursor] = None

    if phase == Phase.COVERAGE:
        coverage = next_coverage_item(
            pool_ids, stats, cooling, request.cursor, rng, avoid=request.last_served,
        )
        selected_id, cursor = coverage.item_id, coverage.cursor

    if selected_id is None:
        selected_id = select_weighted(pool_ids, stats, cooling, rng, avoid=request.last_served)
        if selected_id is not None:
            phase = Phase.DRILLING

    if selected_id is None and computed == Phase.COVERAGE:
        # Drilling was forced but only unseen items remain
        coverage = next_coverage_item(
            pool_ids, stats, cooling, None, rng, avoid=request.last_served,
        )
        selected_id, cursor = coverage.item_id, coverage.cursor
        phase = Phase.COVERAGE

    if selected_id is None:
        return NextItemResult(item=None, phase=Phase.MASTERED, summary=summary)

    item = catalog.get_item(selected_id)
    item_stats = stats.get(selected_id) or empty_stats(selected_id)
    logger.debug(
        f"Selected {selected_id} ({item_stats.confidence_level.value}) "
        f"in {phase.value}, cooling={len(cooling)}"
    )
    log_interaction(
        event="item_selected",
        item_id=selected_id,
        domain=item.domain,
        phase=phase.value,
        confidence=item_stats.confidence_level.value,
    )
    return NextItemResult(
        item=item,
        phase=phase,
        summary=summary,
        item_stats=item_stats,
        cursor=cursor,
    )
