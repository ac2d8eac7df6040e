"""Cooling: keep recently answered items out of the next few picks.

The client remembers what it answered and when, and sends that list back as
a JSON hint on every request. Two rules, unioned:
  - time: anything answered less than cooling_period_ms ago
  - count: the cooling_count most recently answered distinct items, any age

The hint is best effort. Garbage in means no cooling, never an error.
"""

import json
import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CoolingPolicy:
    cooling_period_ms: int
    cooling_count: int


# Large bank (hundreds of exam questions)
LARGE_POOL_COOLING = CoolingPolicy(cooling_period_ms=5 * 60 * 1000, cooling_count=10)
# Small banks (26 letters, ~20 Q codes): short window so the pool doesn't starve
SMALL_POOL_COOLING = CoolingPolicy(cooling_period_ms=1 * 60 * 1000, cooling_count=3)


@dataclass(frozen=True)
class RecentAnswer:
    item_id: str
    answered_at: int  # epoch ms


def _parse_entry(entry) -> Optional[RecentAnswer]:
    if not isinstance(entry, dict):
        return None
    item_id = entry.get("itemId", entry.get("questionId"))
    answered_at = entry.get("answeredAt")
    if not isinstance(item_id, str) or not item_id:
        return None
    if isinstance(answered_at, bool) or not isinstance(answered_at, (int, float)):
        return None
    if not math.isfinite(answered_at):
        return None
    return RecentAnswer(item_id=item_id, answered_at=int(answered_at))


def parse_recent_answers(raw: Optional[str]) -> list[RecentAnswer]:
    """Parse the recentTimestamps hint: [{"itemId": ..., "answeredAt": ms}, ...]."""
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Ignoring unparseable recentTimestamps hint")
        return []
    if not isinstance(data, list):
        logger.warning("Ignoring recentTimestamps hint that is not a list")
        return []

    recent = []
    for entry in data:
        parsed = _parse_entry(entry)
        if parsed is None:
            # Any malformed entry drops the whole hint
            logger.warning(f"Ignoring recentTimestamps hint with malformed entry: {entry!r}")
            return []
        recent.append(parsed)
    return recent


def parse_exclude(raw: Optional[str]) -> set[str]:
    """Comma-separated ids the client wants skipped (e.g. the item on screen)."""
    if not raw:
        return set()
    return {part.strip() for part in raw.split(",") if part.strip()}


def build_cooling_set(
    recent: list[RecentAnswer],
    policy: CoolingPolicy,
    now_ms: int,
    extra_exclude: Iterable[str] = (),
) -> set[str]:
    cooling = set(extra_exclude)

    for answer in recent:
        if now_ms - answer.answered_at < policy.cooling_period_ms:
            cooling.add(answer.item_id)

    newest_first = sorted(recent, key=lambda a: a.answered_at, reverse=True)
    latest: list[str] = []
    for answer in newest_first:
        if len(latest) >= policy.cooling_count:
            break
        if answer.item_id not in latest:
            latest.append(answer.item_id)
    cooling.update(latest)

    return cooling
