"""Error taxonomy shared by every pipeline component."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_REQUEST = "InvalidRequest"
    UPSTREAM_UNAVAILABLE = "UpstreamUnavailable"
    ARTWORK_NOT_FOUND = "ArtworkNotFound"
    UPSTREAM_MALFORMED = "UpstreamMalformed"
    GENERATION_FAILED = "GenerationFailed"
    STORE_UNAVAILABLE = "StoreUnavailable"
    STORE_CORRUPT = "StoreCorrupt"
    ALREADY_EXISTS = "AlreadyExists"
    CONFIG_MISSING = "ConfigMissing"
    DEADLINE_EXCEEDED = "DeadlineExceeded"


# HTTP status reported at the API boundary for each failure kind.
STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.INVALID_REQUEST: 400,
    ErrorKind.ARTWORK_NOT_FOUND: 404,
    ErrorKind.UPSTREAM_UNAVAILABLE: 502,
    ErrorKind.UPSTREAM_MALFORMED: 502,
    ErrorKind.GENERATION_FAILED: 502,
    ErrorKind.STORE_UNAVAILABLE: 503,
    ErrorKind.DEADLINE_EXCEEDED: 504,
    ErrorKind.STORE_CORRUPT: 500,
    ErrorKind.ALREADY_EXISTS: 500,
    ErrorKind.CONFIG_MISSING: 500,
}


class PoemPipelineError(Exception):
    """Base class; ``kind`` discriminates the failure for callers."""

    kind: ErrorKind

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND.get(self.kind, 500)


class InvalidRequest(PoemPipelineError):
    kind = ErrorKind.INVALID_REQUEST


class UpstreamUnavailable(PoemPipelineError):
    kind = ErrorKind.UPSTREAM_UNAVAILABLE


class ArtworkNotFound(UpstreamUnavailable):
    kind = ErrorKind.ARTWORK_NOT_FOUND


class UpstreamMalformed(PoemPipelineError):
    kind = ErrorKind.UPSTREAM_MALFORMED


class GenerationFailed(PoemPipelineError):
    kind = ErrorKind.GENERATION_FAILED


class StoreUnavailable(PoemPipelineError):
    kind = ErrorKind.STORE_UNAVAILABLE


class StoreCorrupt(PoemPipelineError):
    kind = ErrorKind.STORE_CORRUPT


class AlreadyExists(PoemPipelineError):
    """Raised by a conditional put when another writer stored the id first."""

    kind = ErrorKind.ALREADY_EXISTS


class ConfigMissing(PoemPipelineError):
    kind = ErrorKind.CONFIG_MISSING


class DeadlineExceeded(PoemPipelineError):
    kind = ErrorKind.DEADLINE_EXCEEDED
