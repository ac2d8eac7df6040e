"""Timed practice sessions: fixed-size item batches balanced across sections.

Without a section filter a sectioned domain is split into one pool per section
(the four exam sections get 5 items each out of 20). With a filter, or for a
domain without sections, there is a single pool holding the whole target.

Each pool is filled by a simple cascade rather than the confidence
weighting used in live study:
  1. never-attempted items, random order
  2. attempted items, fewest attempts first
     (1 and 2 together stop at half the quota, rounded up)
  3. items with a wrong answer, latest failure first
  4. anything left in the pool, random order
A pool smaller than its quota just contributes fewer items. The combined
batch is shuffled so sections don't come in blocks.
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from flashcards.config import settings
from flashcards.models import Attempt, StudySession
from flashcards.services.attempt_store import (
    aggregate_by_item,
    aggregate_by_session,
    session_attempts,
)
from flashcards.services.catalog import Catalog, CatalogItem, PoolFilter, get_profile
from flashcards.services.confidence import ItemStats
from flashcards.services.coverage import fisher_yates
from flashcards.services.errors import EmptyPool, SessionNotFound, report_inconsistency
from flashcards.services.interaction_logger import log_interaction

logger = logging.getLogger(__name__)

DEFAULT_TARGET_SIZE = 20
ALL_SECTIONS = "all"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _aware(ts: Optional[datetime]) -> datetime:
    if ts is None:
        return _EPOCH
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def _failure_key(s: ItemStats) -> tuple[datetime, datetime]:
    """Latest failure first; stats without a failure time fall back to the last attempt."""
    last_attempt = _aware(s.last_attempt_at)
    last_failed = _aware(s.last_failed_at) if s.last_failed_at is not None else last_attempt
    return last_failed, last_attempt


def split_quota(target: int, pool_count: int) -> list[int]:
    """Even split; the remainder goes to the first pools."""
    if pool_count <= 0:
        return []
    base, remainder = divmod(target, pool_count)
    return [base + (1 if i < remainder else 0) for i in range(pool_count)]


def _select_from_pool(
    pool_ids: list[str],
    stats: Mapping[str, ItemStats],
    quota: int,
    rng: random.Random,
) -> list[str]:
    selected: list[str] = []
    chosen: set[str] = set()

    def take(candidates: list[str], limit: int) -> None:
        for item_id in candidates:
            if len(selected) >= limit:
                return
            if item_id not in chosen:
                chosen.add(item_id)
                selected.append(item_id)

    if quota <= 0:
        return selected

    least_seen_cap = (quota + 1) // 2

    never_seen = fisher_yates([i for i in pool_ids if i not in stats], rng)
    take(never_seen, least_seen_cap)

    # Shuffle first so the stable sort breaks ties randomly
    attempted = fisher_yates([i for i in pool_ids if i in stats], rng)
    attempted.sort(key=lambda i: stats[i].total_attempts)
    take(attempted, least_seen_cap)

    failed = [
        i for i in pool_ids
        if i in stats and stats[i].correct_attempts < stats[i].total_attempts
    ]
    failed.sort(key=lambda i: _failure_key(stats[i]), reverse=True)
    take(failed, quota)

    take(fisher_yates(pool_ids, rng), quota)
    return selected


@dataclass(frozen=True)
class AssembledSession:
    item_ids: list[str]
    quota_per_section: dict[str, int]


def assemble_session(
    pools: Mapping[str, list[str]],
    quotas: Mapping[str, int],
    stats: Mapping[str, ItemStats],
    rng: random.Random,
) -> AssembledSession:
    combined: list[str] = []
    seen: set[str] = set()
    for key, pool_ids in pools.items():
        for item_id in _select_from_pool(pool_ids, stats, quotas.get(key, 0), rng):
            # No id twice, even across sections
            if item_id not in seen:
                seen.add(item_id)
                combined.append(item_id)
    return AssembledSession(
        item_ids=fisher_yates(combined, rng),
        quota_per_section=dict(quotas),
    )


def _session_pools(
    catalog: Catalog,
    pool: PoolFilter,
    target: int,
) -> tuple[dict[str, list[str]], dict[str, int]]:
    profile = get_profile(pool.domain)

    if pool.section is not None:
        items = catalog.list_items(pool)
        return {pool.section: [i.id for i in items]}, {pool.section: target}

    sections = list(profile.session_sections) or catalog.sections(pool.domain)
    if not sections:
        items = catalog.list_items(pool)
        return {ALL_SECTIONS: [i.id for i in items]}, {ALL_SECTIONS: target}

    pools: dict[str, list[str]] = {}
    quotas: dict[str, int] = {}
    for section, quota in zip(sections, split_quota(target, len(sections))):
        try:
            items = catalog.list_items(PoolFilter(pool.domain, section))
        except EmptyPool:
            logger.warning(f"Section {section!r} has no items; its quota stays empty")
            items = []
        pools[section] = [i.id for i in items]
        quotas[section] = quota

    if not any(pools.values()):
        raise EmptyPool(f"No items available for {pool.domain}")
    return pools, quotas


@dataclass(frozen=True)
class StartedSession:
    session_id: int
    items: list[CatalogItem]
    quota_per_section: dict[str, int]

    @property
    def count(self) -> int:
        return len(self.items)


def start_session(
    db: Session,
    catalog: Catalog,
    pool: PoolFilter,
    rng: random.Random,
    target_size: Optional[int] = None,
) -> StartedSession:
    target = target_size or settings.session_target_size or DEFAULT_TARGET_SIZE
    pools, quotas = _session_pools(catalog, pool, target)

    all_ids = [item_id for ids in pools.values() for item_id in ids]
    stats = aggregate_by_item(db, all_ids)
    assembled = assemble_session(pools, quotas, stats, rng)

    session = StudySession(
        domain=pool.domain,
        section_filter=pool.section,
        item_ids_json=assembled.item_ids,
        quota_json=assembled.quota_per_section,
        target_size=target,
    )
    db.add(session)
    db.commit()
    db.refresh(session)

    logger.info(
        f"Started session {session.id}: {len(assembled.item_ids)} items "
        f"from {pool.domain}/{pool.section or ALL_SECTIONS}"
    )
    log_interaction(
        event="session_started",
        domain=pool.domain,
        session_id=session.id,
        section=pool.section,
        count=len(assembled.item_ids),
    )
    return StartedSession(
        session_id=session.id,
        items=[catalog.get_item(i) for i in assembled.item_ids],
        quota_per_section=assembled.quota_per_section,
    )


@dataclass(frozen=True)
class SectionResult:
    total: int
    correct: int
    accuracy: float
    passed: bool


@dataclass(frozen=True)
class SessionReport:
    session_id: int
    total: int
    correct: int
    incorrect: int
    passed: bool
    by_section: dict[str, SectionResult]
    completed_at: Optional[datetime]


def _passed(correct: int, total: int) -> bool:
    return total > 0 and correct / total >= settings.pass_threshold


def complete_session(db: Session, catalog: Catalog, session_id: int) -> SessionReport:
    """Mark a session finished and roll up its attempts.

    Completing twice is harmless: the first completion time is kept and the
    totals are recomputed from the log.
    """
    session = db.get(StudySession, session_id)
    if session is None:
        raise SessionNotFound(f"Session {session_id} not found")

    if session.completed_at is None:
        session.completed_at = datetime.now(timezone.utc)
        db.commit()

    totals = aggregate_by_session(db, session_id)

    counts: dict[str, list[int]] = {}
    for item_id, is_correct in session_attempts(db, session_id):
        item = catalog.find_item(item_id)
        if item is None:
            report_inconsistency(f"Session {session_id} has an attempt on unknown item {item_id}")
            continue
        key = item.section or item.domain
        bucket = counts.setdefault(key, [0, 0])
        bucket[0] += 1
        if is_correct:
            bucket[1] += 1

    by_section = {
        key: SectionResult(
            total=total,
            correct=correct,
            accuracy=correct / total if total else 0.0,
            passed=_passed(correct, total),
        )
        for key, (total, correct) in counts.items()
    }

    log_interaction(
        event="session_completed",
        domain=session.domain,
        session_id=session_id,
        total=totals.total,
        correct=totals.correct,
    )
    return SessionReport(
        session_id=session_id,
        total=totals.total,
        correct=totals.correct,
        incorrect=totals.incorrect,
        passed=_passed(totals.correct, totals.total),
        by_section=by_section,
        completed_at=session.completed_at,
    )


@dataclass(frozen=True)
class SessionHistoryEntry:
    id: int
    domain: str
    created_at: datetime
    completed_at: Optional[datetime]
    questions_total: int
    questions_correct: int
    sections_covered: list[str]
    passed: bool


def session_history(db: Session, catalog: Catalog) -> list[SessionHistoryEntry]:
    """All sessions, newest first, with attempt totals and sections touched."""
    rows = (
        db.query(
            StudySession,
            func.count(Attempt.id),
            func.sum(case((Attempt.is_correct.is_(True), 1), else_=0)),
        )
        .outerjoin(Attempt, Attempt.session_id == StudySession.id)
        .group_by(StudySession.id)
        .order_by(StudySession.created_at.desc(), StudySession.id.desc())
        .all()
    )

    sections_by_session: dict[int, set[str]] = {}
    pairs = (
        db.query(Attempt.session_id, Attempt.item_id)
        .filter(Attempt.session_id.isnot(None))
        .distinct()
        .all()
    )
    for sid, item_id in pairs:
        item = catalog.find_item(item_id)
        if item is None:
            report_inconsistency(f"Session {sid} has an attempt on unknown item {item_id}")
            continue
        sections_by_session.setdefault(sid, set()).add(item.section or item.domain)

    history = []
    for session, total, correct in rows:
        correct = int(correct or 0)
        history.append(SessionHistoryEntry(
            id=session.id,
            domain=session.domain,
            created_at=session.created_at,
            completed_at=session.completed_at,
            questions_total=total,
            questions_correct=correct,
            sections_covered=sorted(sections_by_session.get(session.id, set())),
            passed=_passed(correct, total),
        ))
    return history
