import logging
import random
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from flashcards.database import get_db
from flashcards.dependencies import get_catalog, get_rng
from flashcards.schemas import (
    ItemListOut,
    NextItemOut,
    PoolOut,
    PoolsOut,
    StatsSummaryOut,
    item_out,
    item_stats_out,
    summary_out,
)
from flashcards.services.catalog import DOMAINS, Catalog, PoolFilter
from flashcards.services.cooling import parse_exclude, parse_recent_answers
from flashcards.services.coverage import parse_cursor
from flashcards.services.item_selector import NextItemRequest, select_next_item
from flashcards.services.phase import Phase
from flashcards.services.progress import pool_summary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pools", tags=["pools"])

MASTERED_MESSAGE = "Every item in this pool is mastered."


@router.get("", response_model=PoolsOut)
def list_pools(catalog: Catalog = Depends(get_catalog)):
    pools = []
    for name, profile in DOMAINS.items():
        count = len(_domain_items_or_empty(catalog, name))
        pools.append(PoolOut(
            domain=name,
            sections=catalog.known_sections(name),
            requires_section=profile.requires_section,
            item_count=count,
        ))
    return PoolsOut(pools=pools)


def _domain_items_or_empty(catalog: Catalog, domain: str):
    try:
        return catalog.domain_items(domain)
    except ValueError:
        return []


@router.get("/{domain}/items", response_model=ItemListOut)
def list_items(
    domain: str,
    section: Optional[str] = Query(None),
    catalog: Catalog = Depends(get_catalog),
):
    try:
        items = catalog.list_items(PoolFilter(domain, section))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ItemListOut(items=[item_out(i) for i in items], count=len(items))


@router.get("/{domain}/next", response_model=NextItemOut)
def next_item(
    domain: str,
    section: Optional[str] = Query(None),
    recent_timestamps: Optional[str] = Query(
        None, alias="recentTimestamps",
        description="JSON list of {itemId, answeredAt} for recent answers",
    ),
    exclude: str = Query("", description="Comma-separated item IDs to skip"),
    shuffled_order: Optional[str] = Query(None, alias="shuffledOrder"),
    current_index: Optional[str] = Query(None, alias="currentIndex"),
    last_served: Optional[str] = Query(
        None, alias="lastServed", description="Item id returned by the previous call",
    ),
    phase: Optional[Literal["coverage", "drilling"]] = Query(None),
    db: Session = Depends(get_db),
    catalog: Catalog = Depends(get_catalog),
    rng: random.Random = Depends(get_rng),
):
    """Next item to study, chosen from the pool's phase and the recent-answer hints."""
    request = NextItemRequest(
        pool=PoolFilter(domain, section),
        recent=parse_recent_answers(recent_timestamps),
        exclude=frozenset(parse_exclude(exclude)),
        cursor=parse_cursor(shuffled_order, current_index),
        force_phase=Phase(phase) if phase else None,
        last_served=(last_served or "").strip() or None,
    )
    try:
        result = select_next_item(db, catalog, request, rng)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    response = NextItemOut(
        item=item_out(result.item) if result.item else None,
        phase=result.phase.value,
        stats=summary_out(result.summary),
        item_stats=item_stats_out(result.item_stats) if result.item_stats else None,
        last_served=result.item.id if result.item else None,
    )
    if result.cursor is not None:
        response.shuffled_order = result.cursor.serialize()
        response.current_index = result.cursor.current_index
    if result.item is None:
        response.message = MASTERED_MESSAGE
    return response


@router.get("/{domain}/stats", response_model=StatsSummaryOut)
def stats(
    domain: str,
    section: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    catalog: Catalog = Depends(get_catalog),
):
    try:
        summary = pool_summary(db, catalog, PoolFilter(domain, section))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return summary_out(summary)
