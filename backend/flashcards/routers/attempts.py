from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from flashcards.database import get_db
from flashcards.dependencies import get_catalog
from flashcards.schemas import AttemptIn, AttemptOut
from flashcards.services.attempt_store import record_attempt
from flashcards.services.catalog import Catalog

router = APIRouter(prefix="/api/attempts", tags=["attempts"])


@router.post("", response_model=AttemptOut)
def submit_attempt(
    req: AttemptIn,
    db: Session = Depends(get_db),
    catalog: Catalog = Depends(get_catalog),
):
    """Record one answer. Self-assessed items take CORRECT or WRONG."""
    try:
        attempt, item = record_attempt(
            db, catalog, req.item_id, req.selected_answer, session_id=req.session_id,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return AttemptOut(id=attempt.id, is_correct=attempt.is_correct, correct_answer=item.reference)
