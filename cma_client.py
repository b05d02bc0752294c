"""Cleveland Museum of Art Open Access API client."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

import requests

from config import DEFAULT_CMA_API_URL, cap_timeout
from errors import ArtworkNotFound, UpstreamMalformed, UpstreamUnavailable
from models import Artwork

REQUEST_TIMEOUT_SECONDS = 20

LOGGER = logging.getLogger(__name__)


class CMAArtworkSource:
    """Fetches one artwork record per call. No caching, no retries."""

    def __init__(
        self,
        base_url: str = DEFAULT_CMA_API_URL,
        session: requests.Session | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def artwork_url(self, identifier: str) -> str:
        # The API accepts either the numeric id or the accession number here.
        return f"{self.base_url}/artworks/{quote(identifier, safe='')}"

    def fetch(self, identifier: str, timeout: float | None = None) -> Artwork:
        """Fetch and normalize one artwork.

        Args:
            identifier: Numeric artwork id or accession number.
            timeout: Optional request budget in seconds; it can only shorten
                the client's configured timeout.

        Raises:
            ArtworkNotFound: The API answered 404.
            UpstreamUnavailable: Connection error, timeout or other non-200 status.
            UpstreamMalformed: The body is not JSON or lacks id / accession number.
        """
        url = self.artwork_url(identifier)
        LOGGER.debug("CMA fetch: GET %s", url)

        try:
            response = self.session.get(url, timeout=cap_timeout(timeout, self.timeout))
        except requests.RequestException as exc:
            raise UpstreamUnavailable(f"could not reach the artwork API: {exc}") from exc

        if response.status_code == 404:
            raise ArtworkNotFound(f"artwork {identifier!r} not found")
        if response.status_code != 200:
            raise UpstreamUnavailable(
                f"could not fetch artwork {identifier!r}: HTTP {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamMalformed(f"artwork API returned invalid JSON for {identifier!r}") from exc

        artwork = parse_artwork_payload(payload)
        LOGGER.info(
            "CMA fetch: identifier=%s id=%s accession_number=%s",
            identifier,
            artwork.id,
            artwork.accession_number,
        )
        return artwork


def parse_artwork_payload(payload: Any) -> Artwork:
    """Normalize an API body into an Artwork.

    The whole record is kept as the description blob so the prompt sees every
    catalog field, not just ``description``.
    """
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        record = payload["data"]
    elif isinstance(payload, dict):
        record = payload
    else:
        raise UpstreamMalformed("unexpected artwork payload shape: expected an object")

    artwork_id = _as_int(record.get("id"))
    if artwork_id is None:
        raise UpstreamMalformed("artwork payload has no integer id")

    accession_number = _as_str(record.get("accession_number")) or _as_str(record.get("accessionNumber"))
    if accession_number is None:
        raise UpstreamMalformed(f"artwork {artwork_id} has no accession number")

    return Artwork(
        id=artwork_id,
        accession_number=accession_number,
        description_blob=json.dumps(record, ensure_ascii=False),
    )


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _as_str(value: Any) -> str | None:
    return value.strip() if isinstance(value, str) and value.strip() else None
