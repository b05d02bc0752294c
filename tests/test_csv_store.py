from __future__ import annotations

import csv
from pathlib import Path

import pytest

from csv_store import CSV_COLUMNS, CsvPoemStore
from errors import AlreadyExists, StoreCorrupt
from models import AccessionNumber, Poem, PrimaryId

SAMPLE_POEM = Poem(id="160729", accession_number="1916.1018", text="Stone eyes watch,\nmulti-line.")


@pytest.fixture
def store(tmp_path: Path) -> CsvPoemStore:
    """Point the store at a temp file for every test."""
    return CsvPoemStore(tmp_path / "poems.csv")


def test_lookup_returns_none_when_no_file(store: CsvPoemStore) -> None:
    assert store.lookup(PrimaryId("160729")) is None


def test_put_creates_file_with_header(store: CsvPoemStore) -> None:
    store.put(SAMPLE_POEM)

    with store.path.open(newline="", encoding="utf-8") as fh:
        reader = csv.DictReader(fh)
        assert reader.fieldnames == CSV_COLUMNS
        rows = list(reader)
    assert len(rows) == 1
    assert rows[0]["poem"] == SAMPLE_POEM.text
    assert rows[0]["created_at"]


def test_round_trip_by_primary_id_and_accession_number(store: CsvPoemStore) -> None:
    store.put(SAMPLE_POEM)

    assert store.lookup(PrimaryId("160729")) == SAMPLE_POEM
    assert store.lookup(AccessionNumber("1916.1018")) == SAMPLE_POEM
    assert store.lookup(PrimaryId("1916")) is None


def test_second_put_for_same_id_is_rejected(store: CsvPoemStore) -> None:
    store.put(SAMPLE_POEM)

    with pytest.raises(AlreadyExists):
        store.put(Poem(id="160729", accession_number="1916.1018", text="another poem"))

    assert store.lookup(PrimaryId("160729")) == SAMPLE_POEM


def test_header_written_once_across_puts(store: CsvPoemStore) -> None:
    store.put(SAMPLE_POEM)
    store.put(Poem(id="1", accession_number="A1", text="x"))

    lines = store.path.read_text(encoding="utf-8").count("id,accession_number,poem,created_at")
    assert lines == 1


def test_row_without_poem_column_is_corrupt(store: CsvPoemStore) -> None:
    store.path.write_text("id,accession_number\n42,A1\n", encoding="utf-8")

    with pytest.raises(StoreCorrupt):
        store.lookup(PrimaryId("42"))
