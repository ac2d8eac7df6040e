"""Static item catalog for the three study domains.

Each domain is a JSON bank under settings.data_dir:
  questions : questions.json, multiple choice, four exam sections
  alphabet  : alphabet.json, Polish and NATO spelling alphabets (self-assessed)
  qcodes    : q_codes.json, operator Q codes (self-assessed)

Banks are parsed into one flat list of CatalogItem. The catalog is immutable
once loaded; CatalogCache owns the loaded copy and reloads it after
invalidate().
"""

import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from flashcards.services.cooling import (
    CoolingPolicy,
    LARGE_POOL_COOLING,
    SMALL_POOL_COOLING,
)
from flashcards.services.errors import (
    EmptyPool,
    InvalidAnswer,
    InvalidFilter,
    ItemNotFound,
)

logger = logging.getLogger(__name__)

EXAM_SECTIONS = (
    "Radiotechnika",
    "Przepisy",
    "Bezpieczeństwo",
    "Procedury operatorskie",
)

SELF_REPORT_CORRECT = {"correct", "true", "yes", "1", "ok"}
SELF_REPORT_WRONG = {"wrong", "false", "no", "0", "incorrect"}


@dataclass(frozen=True)
class CatalogItem:
    id: str
    domain: str
    section: Optional[str]
    answer_key: Optional[str]
    self_assessed: bool
    reference: str
    payload: dict = field(default_factory=dict, compare=False, hash=False)

    def grade(self, selected_answer: str) -> bool:
        answer = selected_answer.strip()
        if self.self_assessed:
            lowered = answer.lower()
            if lowered in SELF_REPORT_CORRECT:
                return True
            if lowered in SELF_REPORT_WRONG:
                return False
            raise InvalidAnswer(
                f"Item {self.id} is self-assessed; expected CORRECT or WRONG, got {selected_answer!r}"
            )
        return answer.upper() == (self.answer_key or "").upper()


@dataclass(frozen=True)
class DomainProfile:
    name: str
    filename: str
    cooling: CoolingPolicy
    # Sections a session is balanced across when no section filter is given.
    # Empty means "whatever sections the bank has".
    session_sections: tuple[str, ...] = ()
    requires_section: bool = False


DOMAINS: dict[str, DomainProfile] = {
    "questions": DomainProfile(
        name="questions",
        filename="questions.json",
        cooling=LARGE_POOL_COOLING,
        session_sections=EXAM_SECTIONS,
    ),
    "alphabet": DomainProfile(
        name="alphabet",
        filename="alphabet.json",
        cooling=SMALL_POOL_COOLING,
        requires_section=True,
    ),
    "qcodes": DomainProfile(
        name="qcodes",
        filename="q_codes.json",
        cooling=SMALL_POOL_COOLING,
    ),
}


def get_profile(domain: str) -> DomainProfile:
    profile = DOMAINS.get(domain)
    if profile is None:
        raise InvalidFilter(
            f"Unknown domain {domain!r}. Must be one of: {', '.join(DOMAINS)}"
        )
    return profile


@dataclass(frozen=True)
class PoolFilter:
    domain: str
    section: Optional[str] = None


def _parse_questions(raw: dict) -> list[CatalogItem]:
    items = []
    for q in raw.get("questions", []):
        items.append(CatalogItem(
            id=str(q["id"]),
            domain="questions",
            section=q["section"],
            answer_key=q["correctAnswerLetter"],
            self_assessed=False,
            reference=q["correctAnswerLetter"],
            payload=q,
        ))
    return items


def _parse_alphabet(raw: dict) -> list[CatalogItem]:
    items = []
    for section in ("polish", "nato"):
        for letter in raw.get(section, []):
            items.append(CatalogItem(
                id=str(letter["id"]),
                domain="alphabet",
                section=section,
                answer_key=None,
                self_assessed=True,
                reference=letter["phonetic"],
                payload=letter,
            ))
    return items


def _parse_qcodes(raw: dict) -> list[CatalogItem]:
    items = []
    for qc in raw.get("qCodes", []):
        items.append(CatalogItem(
            id=str(qc["id"]),
            domain="qcodes",
            section=None,
            answer_key=None,
            self_assessed=True,
            reference=qc["meaning"],
            payload=qc,
        ))
    return items


_PARSERS: dict[str, Callable[[dict], list[CatalogItem]]] = {
    "questions": _parse_questions,
    "alphabet": _parse_alphabet,
    "qcodes": _parse_qcodes,
}


class Catalog:
    def __init__(self, items: list[CatalogItem]):
        self._items = list(items)
        self._by_id: dict[str, CatalogItem] = {}
        for item in self._items:
            if item.id in self._by_id:
                raise ValueError(f"Duplicate item id in catalog: {item.id}")
            self._by_id[item.id] = item

    def __len__(self) -> int:
        return len(self._items)

    def sections(self, domain: str) -> list[str]:
        """Sections present in a domain's bank, in bank order."""
        get_profile(domain)
        seen: list[str] = []
        for item in self._items:
            if item.domain == domain and item.section and item.section not in seen:
                seen.append(item.section)
        return seen

    def known_sections(self, domain: str) -> list[str]:
        profile = get_profile(domain)
        known = list(profile.session_sections)
        for section in self.sections(domain):
            if section not in known:
                known.append(section)
        return known

    def domain_items(self, domain: str) -> list[CatalogItem]:
        """Every item of a domain, across sections."""
        get_profile(domain)
        items = [item for item in self._items if item.domain == domain]
        if not items:
            raise EmptyPool(f"No items available for {domain}")
        return items

    def list_items(self, pool: PoolFilter) -> list[CatalogItem]:
        """Items matching the filter, in bank order.

        Raises InvalidFilter for an unknown domain/section (or a missing
        section where the domain needs one) and EmptyPool when a valid filter
        matches nothing.
        """
        profile = get_profile(pool.domain)
        if pool.section is None:
            if profile.requires_section:
                raise InvalidFilter(
                    f"Domain {pool.domain!r} needs a section: "
                    f"{', '.join(self.known_sections(pool.domain))}"
                )
        elif pool.section not in self.known_sections(pool.domain):
            raise InvalidFilter(f"Unknown section {pool.section!r} for domain {pool.domain!r}")

        items = [
            item for item in self._items
            if item.domain == pool.domain
            and (pool.section is None or item.section == pool.section)
        ]
        if not items:
            raise EmptyPool(f"No items available for {pool.domain}/{pool.section or 'all'}")
        return items

    def find_item(self, item_id: str) -> Optional[CatalogItem]:
        return self._by_id.get(item_id)

    def get_item(self, item_id: str) -> CatalogItem:
        item = self._by_id.get(item_id)
        if item is None:
            raise ItemNotFound(f"Item {item_id} not found")
        return item


def load_catalog(data_dir: Path) -> Catalog:
    items: list[CatalogItem] = []
    for domain, profile in DOMAINS.items():
        path = Path(data_dir) / profile.filename
        if not path.exists():
            logger.warning(f"Catalog bank missing for {domain}: {path}")
            continue
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
        parsed = _PARSERS[domain](raw)
        logger.info(f"Loaded {len(parsed)} {domain} items from {path.name}")
        items.extend(parsed)
    return Catalog(items)


class CatalogCache:
    """Read-through holder for the loaded catalog."""

    def __init__(self, data_dir: Path, loader: Callable[[Path], Catalog] = load_catalog):
        self._data_dir = data_dir
        self._loader = loader
        self._catalog: Optional[Catalog] = None
        self._lock = threading.Lock()

    def get(self) -> Catalog:
        with self._lock:
            if self._catalog is None:
                self._catalog = self._loader(self._data_dir)
            return self._catalog

    def invalidate(self) -> None:
        with self._lock:
            self._catalog = None
