"""Cache-through poem generation: lookup, fetch, generate, persist."""

from __future__ import annotations

import logging
import time
from typing import Protocol

from errors import AlreadyExists, DeadlineExceeded, PoemPipelineError
from models import Artwork, LookupKey, Poem, PoemResponse, PrimaryId, classify_identifier

LOGGER = logging.getLogger(__name__)


class ArtworkSource(Protocol):
    def fetch(self, identifier: str, timeout: float | None = None) -> Artwork: ...


class PoemGenerator(Protocol):
    def generate(self, description: str, timeout: float | None = None) -> str: ...


class PoemStore(Protocol):
    def lookup(self, key: LookupKey) -> Poem | None: ...

    def put(self, poem: Poem) -> None: ...


class GenerationPipeline:
    """Returns the stored poem for an artwork, generating and storing one on a miss.

    Steps run strictly in order and stop at the first failure. Nothing is
    retried here.
    """

    def __init__(self, source: ArtworkSource, generator: PoemGenerator, store: PoemStore) -> None:
        self.source = source
        self.generator = generator
        self.store = store

    def run(self, identifier: str | None, deadline: float | None = None) -> PoemResponse:
        """Resolve ``identifier`` to a poem.

        Args:
            identifier: Numeric artwork id or accession number, as sent by the caller.
            deadline: Optional ``time.monotonic()`` value after which no further
                external call is started. The remaining budget is passed on as
                the timeout of the fetch and generation calls.
        """
        key = classify_identifier(identifier)

        _remaining(deadline, "lookup")
        cached = self.store.lookup(key)
        if cached is not None:
            LOGGER.info("Lookup hit for %s: id=%s", key.value, cached.id)
            return PoemResponse.from_poem(cached, cached=True)
        LOGGER.info("Lookup miss for %s (%s)", key.value, type(key).__name__)

        artwork = self.source.fetch(key.value, timeout=_remaining(deadline, "artwork fetch"))
        LOGGER.info("Fetched artwork id=%s accession_number=%s", artwork.id, artwork.accession_number)

        text = self.generator.generate(
            artwork.description_blob, timeout=_remaining(deadline, "poem generation")
        )
        LOGGER.info("Generated poem for id=%s (%s chars)", artwork.id, len(text))

        # Identity comes from the fetched artwork, never from the caller's string.
        poem = Poem(id=str(artwork.id), accession_number=artwork.accession_number, text=text)
        return PoemResponse.from_poem(self._persist(poem), cached=False)

    def _persist(self, poem: Poem) -> Poem:
        """Store ``poem`` and return the poem that ends up being served."""
        try:
            self.store.put(poem)
        except AlreadyExists:
            return self._winner_or(poem)
        except PoemPipelineError as exc:
            LOGGER.warning("Could not cache poem for id=%s, returning it uncached: %s", poem.id, exc)
            return poem

        LOGGER.info("Stored poem for id=%s", poem.id)
        return poem

    def _winner_or(self, poem: Poem) -> Poem:
        try:
            winner = self.store.lookup(PrimaryId(poem.id))
        except PoemPipelineError as exc:
            LOGGER.warning("Lost write race for id=%s and could not re-read the winner: %s", poem.id, exc)
            return poem

        if winner is None:
            LOGGER.warning("Lost write race for id=%s but no stored poem was found", poem.id)
            return poem

        LOGGER.info("Lost write race for id=%s; returning the stored poem", poem.id)
        return winner


def _remaining(deadline: float | None, step: str) -> float | None:
    if deadline is None:
        return None
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise DeadlineExceeded(f"request deadline exceeded before {step}")
    return remaining
