import random

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from flashcards.database import get_db
from flashcards.dependencies import get_catalog, get_rng
from flashcards.schemas import (
    SectionResultOut,
    SessionCompleteIn,
    SessionCompleteOut,
    SessionHistoryEntryOut,
    SessionHistoryOut,
    SessionStartIn,
    SessionStartOut,
    item_out,
)
from flashcards.services.catalog import Catalog, PoolFilter
from flashcards.services.session_assembler import (
    complete_session,
    session_history,
    start_session,
)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@router.post("", response_model=SessionStartOut)
def create_session(
    req: SessionStartIn,
    db: Session = Depends(get_db),
    catalog: Catalog = Depends(get_catalog),
    rng: random.Random = Depends(get_rng),
):
    try:
        started = start_session(
            db, catalog, PoolFilter(req.domain, req.section), rng, target_size=req.target_size,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SessionStartOut(
        session_id=started.session_id,
        items=[item_out(i) for i in started.items],
        count=started.count,
        quota_per_section=started.quota_per_section,
    )


@router.patch("", response_model=SessionCompleteOut)
def finish_session(
    req: SessionCompleteIn,
    db: Session = Depends(get_db),
    catalog: Catalog = Depends(get_catalog),
):
    try:
        report = complete_session(db, catalog, req.session_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return SessionCompleteOut(
        session_id=report.session_id,
        completed_at=report.completed_at,
        total=report.total,
        correct=report.correct,
        incorrect=report.incorrect,
        passed=report.passed,
        by_section={
            key: SectionResultOut.model_validate(result, from_attributes=True)
            for key, result in report.by_section.items()
        },
    )


@router.get("/history", response_model=SessionHistoryOut)
def history(
    db: Session = Depends(get_db),
    catalog: Catalog = Depends(get_catalog),
):
    entries = session_history(db, catalog)
    return SessionHistoryOut(sessions=[
        SessionHistoryEntryOut.model_validate(e, from_attributes=True) for e in entries
    ])
