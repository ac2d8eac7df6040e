"""Read-only progress numbers for the dashboard and per-item views."""

from dataclasses import dataclass

from sqlalchemy.orm import Session

from flashcards.config import settings
from flashcards.models import Attempt
from flashcards.services.attempt_store import aggregate_by_item, item_history
from flashcards.services.catalog import Catalog, CatalogItem, PoolFilter
from flashcards.services.confidence import ItemStats, StatsSummary, empty_stats, summarize

WEAK_AREA_MIN_ATTEMPTS = 3
WEAK_AREA_LIMIT = 10


def pool_summary(db: Session, catalog: Catalog, pool: PoolFilter) -> StatsSummary:
    ids = [item.id for item in catalog.list_items(pool)]
    return summarize(ids, aggregate_by_item(db, ids))


@dataclass(frozen=True)
class SectionProgress:
    total_items: int
    items_attempted: int
    total_attempts: int
    correct_attempts: int
    correctness_rate: float
    passing: bool


@dataclass(frozen=True)
class WeakArea:
    item: CatalogItem
    stats: ItemStats


@dataclass(frozen=True)
class Dashboard:
    overall: SectionProgress
    by_section: dict[str, SectionProgress]
    weak_areas: list[WeakArea]


def _progress(items: list[CatalogItem], stats: dict[str, ItemStats]) -> SectionProgress:
    attempted = [stats[i.id] for i in items if i.id in stats]
    total_attempts = sum(s.total_attempts for s in attempted)
    correct_attempts = sum(s.correct_attempts for s in attempted)
    rate = correct_attempts / total_attempts if total_attempts else 0.0
    return SectionProgress(
        total_items=len(items),
        items_attempted=len(attempted),
        total_attempts=total_attempts,
        correct_attempts=correct_attempts,
        correctness_rate=rate,
        passing=rate >= settings.pass_threshold,
    )


def dashboard(db: Session, catalog: Catalog, domain: str = "questions") -> Dashboard:
    items = catalog.domain_items(domain)
    ids = [i.id for i in items]
    stats = aggregate_by_item(db, ids)

    by_section = {}
    for section in catalog.known_sections(domain):
        section_items = [i for i in items if i.section == section]
        by_section[section] = _progress(section_items, stats)

    overall = _progress(items, stats)

    weakest = sorted(
        (s for s in stats.values() if s.total_attempts >= WEAK_AREA_MIN_ATTEMPTS),
        key=lambda s: (s.accuracy, s.item_id),
    )[:WEAK_AREA_LIMIT]
    weak_areas = [WeakArea(item=catalog.get_item(s.item_id), stats=s) for s in weakest]

    return Dashboard(overall=overall, by_section=by_section, weak_areas=weak_areas)


@dataclass(frozen=True)
class ItemDetail:
    item: CatalogItem
    stats: ItemStats
    attempts: list[Attempt]


def item_detail(db: Session, catalog: Catalog, item_id: str) -> ItemDetail:
    item = catalog.get_item(item_id)
    stats = aggregate_by_item(db, [item.id]).get(item.id) or empty_stats(item.id)
    return ItemDetail(item=item, stats=stats, attempts=item_history(db, item.id))
