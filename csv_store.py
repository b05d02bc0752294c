"""CSV file poem cache for local runs without DynamoDB."""

from __future__ import annotations

import csv
import logging
from datetime import UTC, datetime
from pathlib import Path

from errors import AlreadyExists, StoreCorrupt, StoreUnavailable
from models import AccessionNumber, LookupKey, Poem, PrimaryId

LOGGER = logging.getLogger(__name__)

CSV_COLUMNS = [
    "id",
    "accession_number",
    "poem",
    "created_at",
]


class CsvPoemStore:
    """Append-only CSV with the same lookup rules as the DynamoDB store.

    The existence check and the append are not atomic across processes.
    """

    def __init__(self, path: str | Path = "poems.csv") -> None:
        self.path = Path(path)

    def lookup(self, key: LookupKey) -> Poem | None:
        """Return the first row matching ``key`` by id or accession number, or None."""
        if isinstance(key, PrimaryId):
            matches = [poem for poem in self._read_all() if poem.id == key.value]
        elif isinstance(key, AccessionNumber):
            matches = [poem for poem in self._read_all() if poem.accession_number == key.value]
        else:
            raise TypeError(f"unsupported lookup key: {key!r}")

        if not matches:
            return None
        if len(matches) > 1 and isinstance(key, AccessionNumber):
            LOGGER.warning(
                "Accession number %s maps to %s poems (ids=%s); using the first",
                key.value,
                len(matches),
                ", ".join(poem.id for poem in matches),
            )
        return matches[0]

    def put(self, poem: Poem) -> None:
        """Append ``poem``; raises ``AlreadyExists`` if its id is already in the file."""
        if self.lookup(PrimaryId(poem.id)) is not None:
            raise AlreadyExists(f"a poem for id {poem.id} is already stored")

        write_header = not self.path.exists() or self.path.stat().st_size == 0
        row = {
            "id": poem.id,
            "accession_number": poem.accession_number,
            "poem": poem.text,
            "created_at": datetime.now(UTC).isoformat(),
        }
        try:
            with self.path.open("a", newline="", encoding="utf-8") as fh:
                writer = csv.DictWriter(fh, fieldnames=CSV_COLUMNS)
                if write_header:
                    writer.writeheader()
                writer.writerow(row)
        except OSError as exc:
            raise StoreUnavailable(f"could not write poem to {self.path}: {exc}") from exc

        LOGGER.info("Wrote CSV row for id=%s to %s", poem.id, self.path)

    def _read_all(self) -> list[Poem]:
        if not self.path.exists():
            return []

        try:
            with self.path.open(newline="", encoding="utf-8") as fh:
                rows = list(csv.DictReader(fh))
        except OSError as exc:
            raise StoreUnavailable(f"could not read {self.path}: {exc}") from exc

        poems: list[Poem] = []
        for row in rows:
            poem_id = row.get("id") or ""
            if not poem_id:
                continue
            text = row.get("poem")
            if text is None:
                raise StoreCorrupt(f"CSV row for id {poem_id} has no poem column")
            poems.append(
                Poem(id=poem_id, accession_number=row.get("accession_number") or "", text=text)
            )
        return poems
