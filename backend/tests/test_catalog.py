import json

import pytest

from flashcards.services.catalog import (
    Catalog,
    CatalogCache,
    PoolFilter,
    get_profile,
    load_catalog,
)
from flashcards.services.errors import EmptyPool, InvalidAnswer, InvalidFilter, ItemNotFound
from tests.conftest import make_question


def _write_banks(path):
    (path / "questions.json").write_text(json.dumps({"questions": [
        {"id": "Q1", "number": 1, "text": "?", "section": "Przepisy",
         "answers": [{"letter": "A", "text": "x"}], "correctAnswerLetter": "A"},
    ]}), encoding="utf-8")
    (path / "alphabet.json").write_text(json.dumps({
        "polish": [{"id": "AL-PL-A", "letter": "A", "phonetic": "Adam"}],
        "nato": [{"id": "AL-NATO-A", "letter": "A", "phonetic": "Alfa"}],
    }), encoding="utf-8")
    (path / "q_codes.json").write_text(json.dumps({"qCodes": [
        {"id": "QC-QTH", "code": "QTH", "meaning": "Lokalizacja", "meaningEnglish": "Location", "hint": ""},
    ]}), encoding="utf-8")


class TestLoadCatalog:
    def test_loads_all_banks(self, tmp_path):
        _write_banks(tmp_path)
        catalog = load_catalog(tmp_path)
        assert len(catalog) == 4
        assert catalog.get_item("AL-PL-A").section == "polish"
        assert catalog.get_item("QC-QTH").self_assessed is True
        assert catalog.get_item("Q1").answer_key == "A"

    def test_missing_bank_is_skipped(self, tmp_path):
        _write_banks(tmp_path)
        (tmp_path / "q_codes.json").unlink()
        catalog = load_catalog(tmp_path)
        assert catalog.find_item("QC-QTH") is None
        with pytest.raises(EmptyPool):
            catalog.list_items(PoolFilter("qcodes"))

    def test_shipped_banks_load(self):
        from flashcards.config import BASE_DIR
        catalog = load_catalog(BASE_DIR / "data")
        assert len(catalog.list_items(PoolFilter("alphabet", "nato"))) == 26
        assert catalog.sections("questions")


def test_duplicate_ids_rejected():
    with pytest.raises(ValueError):
        Catalog([make_question(1, "Przepisy"), make_question(1, "Radiotechnika")])


class TestListItems:
    def test_section_filter(self, catalog):
        items = catalog.list_items(PoolFilter("questions", "Przepisy"))
        assert len(items) == 6
        assert {i.section for i in items} == {"Przepisy"}

    def test_whole_domain(self, catalog):
        assert len(catalog.list_items(PoolFilter("questions"))) == 24
        assert len(catalog.list_items(PoolFilter("qcodes"))) == 4

    def test_unknown_domain(self, catalog):
        with pytest.raises(InvalidFilter):
            catalog.list_items(PoolFilter("morse"))

    def test_unknown_section(self, catalog):
        with pytest.raises(InvalidFilter):
            catalog.list_items(PoolFilter("alphabet", "greek"))

    def test_alphabet_needs_section(self, catalog):
        with pytest.raises(InvalidFilter):
            catalog.list_items(PoolFilter("alphabet"))

    def test_known_section_without_items_is_empty_pool(self):
        catalog = Catalog([make_question(1, "Przepisy")])
        with pytest.raises(EmptyPool):
            catalog.list_items(PoolFilter("questions", "Radiotechnika"))

    def test_get_item_unknown(self, catalog):
        with pytest.raises(ItemNotFound):
            catalog.get_item("nope")


class TestGrade:
    def test_objective(self, catalog):
        item = catalog.get_item("Q1")
        assert item.grade("a") is True
        assert item.grade("B") is False

    @pytest.mark.parametrize("answer", ["CORRECT", "true", "Yes", "1", "ok"])
    def test_self_report_correct(self, catalog, answer):
        assert catalog.get_item("QC-QRA").grade(answer) is True

    @pytest.mark.parametrize("answer", ["WRONG", "false", "no", "0", "incorrect"])
    def test_self_report_wrong(self, catalog, answer):
        assert catalog.get_item("QC-QRA").grade(answer) is False

    def test_self_report_unrecognized(self, catalog):
        with pytest.raises(InvalidAnswer):
            catalog.get_item("AL-PL-A").grade("Adam")


def test_profiles():
    assert get_profile("questions").cooling.cooling_count == 10
    assert get_profile("alphabet").cooling.cooling_count == 3
    with pytest.raises(InvalidFilter):
        get_profile("nope")


class TestCatalogCache:
    def test_loads_once_until_invalidated(self, tmp_path):
        calls = []

        def loader(path):
            calls.append(path)
            return Catalog([make_question(len(calls), "Przepisy")])

        cache = CatalogCache(tmp_path, loader=loader)
        first = cache.get()
        assert cache.get() is first
        assert len(calls) == 1

        cache.invalidate()
        second = cache.get()
        assert second is not first
        assert len(calls) == 2
