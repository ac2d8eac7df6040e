"""Append-only JSONL log of study events, one file per UTC day.

Events: attempt_recorded, item_selected, session_started, session_completed.
Disabled when TESTING=1.
"""

import json
import os
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from flashcards.config import settings


def _get_log_path() -> Path:
    log_dir = settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    return log_dir / f"interactions_{today}.jsonl"


def _encode(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Cannot log value of type {type(value).__name__}")


def log_interaction(
    event: str,
    item_id: str | None = None,
    domain: str | None = None,
    session_id: int | None = None,
    **extra,
) -> None:
    if os.environ.get("TESTING") == "1":
        return

    entry = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "item_id": item_id,
        "domain": domain,
        "session_id": session_id,
        **extra,
    }
    entry = {k: v for k, v in entry.items() if v is not None}

    log_path = _get_log_path()
    with open(log_path, "a", encoding="utf-8") as f:
        f.write(json.dumps(entry, ensure_ascii=False, default=_encode) + "\n")
