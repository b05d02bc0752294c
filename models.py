"""Shared typed models for the poem pipeline."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from errors import InvalidRequest


@dataclass(frozen=True, slots=True)
class Artwork:
    """Catalog record for one artwork, as returned by the artwork source."""

    id: int
    accession_number: str
    description_blob: str


@dataclass(frozen=True, slots=True)
class Poem:
    """Cached poem keyed by the artwork's primary id."""

    id: str
    accession_number: str
    text: str


@dataclass(frozen=True, slots=True)
class PrimaryId:
    value: str


@dataclass(frozen=True, slots=True)
class AccessionNumber:
    value: str


LookupKey = PrimaryId | AccessionNumber

_PRIMARY_ID_RE = re.compile(r"[+-]?[0-9]+")


def classify_identifier(raw: str | None) -> LookupKey:
    """Turn a caller-supplied identifier into a lookup key.

    An optionally signed run of ASCII digits is a primary id; everything else
    (including ``"1_000"`` and non-ASCII digits) is treated as an accession
    number. The caller's string (stripped) is kept as the value so ``"007"`` is
    looked up as ``"007"``, not ``"7"``.
    """
    value = (raw or "").strip()
    if not value:
        raise InvalidRequest("an artwork id or accession number is required")

    if _PRIMARY_ID_RE.fullmatch(value):
        return PrimaryId(value)
    return AccessionNumber(value)


@dataclass(frozen=True, slots=True)
class PoemResponse:
    """Successful pipeline outcome."""

    poem: str
    id: str
    accession_number: str
    cached: bool = False

    @classmethod
    def from_poem(cls, poem: Poem, cached: bool) -> PoemResponse:
        return cls(poem=poem.text, id=poem.id, accession_number=poem.accession_number, cached=cached)

    def to_body(self) -> dict[str, Any]:
        return {"poem": self.poem, "id": self.id, "accessionNumber": self.accession_number}
