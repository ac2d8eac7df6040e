"""Append-only attempt log and the aggregates the scheduler reads from it.

Nothing here updates or deletes an Attempt row. Per-item stats are rebuilt
from the log on every call; there is no cached knowledge table.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from flashcards.models import Attempt, StudySession
from flashcards.services.catalog import Catalog, CatalogItem
from flashcards.services.confidence import AggregateRow, ItemStats, build_item_stats
from flashcards.services.errors import SessionNotFound
from flashcards.services.interaction_logger import log_interaction

logger = logging.getLogger(__name__)


def _utc(ts: Optional[datetime]) -> Optional[datetime]:
    if ts is None:
        return None
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def append_attempt(
    db: Session,
    item_id: str,
    selected_answer: str,
    is_correct: bool,
    session_id: Optional[int] = None,
    created_at: Optional[datetime] = None,
) -> Attempt:
    if session_id is not None and db.get(StudySession, session_id) is None:
        raise SessionNotFound(f"Session {session_id} not found")

    attempt = Attempt(
        item_id=item_id,
        session_id=session_id,
        selected_answer=selected_answer,
        is_correct=is_correct,
    )
    if created_at is not None:
        attempt.created_at = created_at
    db.add(attempt)
    db.commit()
    db.refresh(attempt)
    return attempt


def record_attempt(
    db: Session,
    catalog: Catalog,
    item_id: str,
    selected_answer: str,
    session_id: Optional[int] = None,
) -> tuple[Attempt, CatalogItem]:
    """Grade an answer against the catalog and append it.

    Self-assessed items (alphabet, Q codes) take the learner's own
    CORRECT/WRONG report; everything else is compared with the answer key.
    Raises ItemNotFound, InvalidAnswer or SessionNotFound.
    """
    item = catalog.get_item(item_id)
    is_correct = item.grade(selected_answer)
    attempt = append_attempt(
        db,
        item_id=item.id,
        selected_answer=selected_answer,
        is_correct=is_correct,
        session_id=session_id,
    )
    log_interaction(
        event="attempt_recorded",
        item_id=item.id,
        domain=item.domain,
        is_correct=is_correct,
        session_id=session_id,
    )
    return attempt, item


def aggregate_by_item(db: Session, item_ids: list[str]) -> dict[str, ItemStats]:
    """Stats for every item in item_ids that has at least one attempt."""
    if not item_ids:
        return {}

    totals = (
        db.query(
            Attempt.item_id,
            func.count(Attempt.id),
            func.sum(case((Attempt.is_correct.is_(True), 1), else_=0)),
            func.max(Attempt.created_at),
            func.max(case((Attempt.is_correct.is_(False), Attempt.created_at), else_=None)),
        )
        .filter(Attempt.item_id.in_(item_ids))
        .group_by(Attempt.item_id)
        .all()
    )
    if not totals:
        return {}

    ranked = (
        db.query(
            Attempt.item_id.label("item_id"),
            Attempt.is_correct.label("is_correct"),
            func.row_number()
            .over(
                partition_by=Attempt.item_id,
                order_by=(Attempt.created_at.desc(), Attempt.id.desc()),
            )
            .label("rn"),
        )
        .filter(Attempt.item_id.in_(item_ids))
        .subquery()
    )
    last_result = dict(
        db.query(ranked.c.item_id, ranked.c.is_correct)
        .filter(ranked.c.rn == 1)
        .all()
    )

    rows = [
        AggregateRow(
            item_id=item_id,
            total_attempts=total,
            correct_attempts=int(correct or 0),
            last_attempt_at=_utc(last_at),
            last_was_correct=bool(last_result.get(item_id)),
            last_failed_at=_utc(last_failed),
        )
        for item_id, total, correct, last_at, last_failed in totals
    ]
    return build_item_stats(rows)


@dataclass(frozen=True)
class AttemptTotals:
    total: int
    correct: int

    @property
    def incorrect(self) -> int:
        return self.total - self.correct

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total else 0.0


def aggregate_by_session(db: Session, session_id: int) -> AttemptTotals:
    total, correct = (
        db.query(
            func.count(Attempt.id),
            func.sum(case((Attempt.is_correct.is_(True), 1), else_=0)),
        )
        .filter(Attempt.session_id == session_id)
        .one()
    )
    return AttemptTotals(total=total or 0, correct=int(correct or 0))


def overall_totals(db: Session, item_ids: Optional[list[str]] = None) -> AttemptTotals:
    query = db.query(
        func.count(Attempt.id),
        func.sum(case((Attempt.is_correct.is_(True), 1), else_=0)),
    )
    if item_ids is not None:
        query = query.filter(Attempt.item_id.in_(item_ids))
    total, correct = query.one()
    return AttemptTotals(total=total or 0, correct=int(correct or 0))


def session_attempts(db: Session, session_id: int) -> list[tuple[str, bool]]:
    """(item_id, is_correct) for each attempt in a session, oldest first."""
    rows = (
        db.query(Attempt.item_id, Attempt.is_correct)
        .filter(Attempt.session_id == session_id)
        .order_by(Attempt.created_at.asc(), Attempt.id.asc())
        .all()
    )
    return [(item_id, bool(is_correct)) for item_id, is_correct in rows]


def item_history(db: Session, item_id: str) -> list[Attempt]:
    return (
        db.query(Attempt)
        .filter(Attempt.item_id == item_id)
        .order_by(Attempt.created_at.desc(), Attempt.id.desc())
        .all()
    )
