import os
import random
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker

os.environ["FLASHCARDS_SKIP_MIGRATIONS"] = "1"
os.environ["FLASHCARDS_DATABASE_URL"] = "sqlite:///:memory:"
os.environ["FLASHCARDS_STRICT_CONSISTENCY"] = "1"
os.environ["TESTING"] = "1"

from flashcards.database import Base, get_db
from flashcards.dependencies import get_catalog, get_rng
from flashcards.main import app
from flashcards.services.attempt_store import append_attempt
from flashcards.services.catalog import EXAM_SECTIONS, Catalog, CatalogItem

QUESTIONS_PER_SECTION = 6
BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_question(n: int, section: str, answer: str = "A") -> CatalogItem:
    return CatalogItem(
        id=f"Q{n}",
        domain="questions",
        section=section,
        answer_key=answer,
        self_assessed=False,
        reference=answer,
        payload={"id": f"Q{n}", "number": n, "text": f"Question {n}", "section": section},
    )


def make_letter(alphabet: str, letter: str, phonetic: str) -> CatalogItem:
    prefix = "PL" if alphabet == "polish" else "NATO"
    return CatalogItem(
        id=f"AL-{prefix}-{letter}",
        domain="alphabet",
        section=alphabet,
        answer_key=None,
        self_assessed=True,
        reference=phonetic,
        payload={"letter": letter, "phonetic": phonetic},
    )


def make_qcode(code: str, meaning: str) -> CatalogItem:
    return CatalogItem(
        id=f"QC-{code}",
        domain="qcodes",
        section=None,
        answer_key=None,
        self_assessed=True,
        reference=meaning,
        payload={"code": code, "meaning": meaning},
    )


def build_test_catalog() -> Catalog:
    items = []
    n = 1
    for section in EXAM_SECTIONS:
        for _ in range(QUESTIONS_PER_SECTION):
            items.append(make_question(n, section))
            n += 1
    for letter, word in [("A", "Adam"), ("B", "Barbara"), ("C", "Celina"), ("D", "Dorota"), ("E", "Edward")]:
        items.append(make_letter("polish", letter, word))
    for letter, word in [("A", "Alfa"), ("B", "Bravo"), ("C", "Charlie"), ("D", "Delta"), ("E", "Echo")]:
        items.append(make_letter("nato", letter, word))
    for code, meaning in [("QRA", "Nazwa stacji"), ("QRT", "Kończę nadawanie"),
                          ("QSL", "Potwierdzam odbiór"), ("QTH", "Lokalizacja stacji")]:
        items.append(make_qcode(code, meaning))
    return Catalog(items)


def record(db, item_id, correct=True, minutes=0, session_id=None):
    """Append an attempt at BASE_TIME + minutes."""
    return append_attempt(
        db,
        item_id=item_id,
        selected_answer="A" if correct else "B",
        is_correct=correct,
        session_id=session_id,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def catalog():
    return build_test_catalog()


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def client(db_session, catalog):
    from fastapi.testclient import TestClient

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_catalog] = lambda: catalog
    app.dependency_overrides[get_rng] = lambda: random.Random(7)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
