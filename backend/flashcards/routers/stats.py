from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from flashcards.database import get_db
from flashcards.dependencies import get_catalog
from flashcards.schemas import (
    AttemptHistoryOut,
    DashboardOut,
    ItemDetailOut,
    WeakAreaOut,
    item_out,
    item_stats_out,
    progress_out,
)
from flashcards.services.catalog import Catalog
from flashcards.services.progress import dashboard, item_detail

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("", response_model=DashboardOut)
def get_dashboard(
    domain: str = Query("questions"),
    db: Session = Depends(get_db),
    catalog: Catalog = Depends(get_catalog),
):
    """Progress per section plus the weakest items with enough attempts to judge."""
    try:
        board = dashboard(db, catalog, domain)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return DashboardOut(
        overall=progress_out(board.overall),
        by_section={k: progress_out(v) for k, v in board.by_section.items()},
        weak_areas=[
            WeakAreaOut(item=item_out(w.item), stats=item_stats_out(w.stats))
            for w in board.weak_areas
        ],
    )


@router.get("/item/{item_id}", response_model=ItemDetailOut)
def get_item_stats(
    item_id: str,
    db: Session = Depends(get_db),
    catalog: Catalog = Depends(get_catalog),
):
    try:
        detail = item_detail(db, catalog, item_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ItemDetailOut(
        item=item_out(detail.item),
        stats=item_stats_out(detail.stats),
        attempts=[
            AttemptHistoryOut(
                id=a.id,
                selected_answer=a.selected_answer,
                is_correct=a.is_correct,
                created_at=a.created_at,
                session_id=a.session_id,
            )
            for a in detail.attempts
        ],
    )
