"""Artist check run before a release is added to the collection."""

import logging
from typing import Protocol

from discogs_sync.clients.discogs import DiscogsAPIError
from discogs_sync.core.models import ValidationResult
from discogs_sync.core.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class ReleaseSource(Protocol):
    def get_release(self, release_id: int) -> dict: ...


class ValidationGate:
    """
    Confirms a release id points at the artist the user expects.

    The check is a case-sensitive substring test against the release's
    `artists_sort`, so "Brahms" accepts "Johannes Brahms". A release that
    cannot be fetched never passes.
    """

    def __init__(self, client: ReleaseSource, limiter: RateLimiter):
        self._client = client
        self._limiter = limiter

    def validate(self, release_id: int, expected_artist: str | None) -> ValidationResult:
        if not expected_artist or not expected_artist.strip():
            return ValidationResult.ok()

        try:
            with self._limiter.paced():
                release = self._client.get_release(release_id)
        except DiscogsAPIError as e:
            return ValidationResult.fetch_failure(f"could not fetch release {release_id}: {e}")

        if not isinstance(release, dict):
            return ValidationResult.fetch_failure(
                f"release {release_id} returned an unexpected payload: {type(release).__name__}")

        canonical = release.get("artists_sort")
        if not isinstance(canonical, str) or not canonical:
            return ValidationResult.mismatch(f"release {release_id} returned no artist")

        if expected_artist not in canonical:
            return ValidationResult.mismatch(
                f"expected '{expected_artist}', Discogs has '{canonical}'")

        logger.debug(f"Validated {release_id}: '{canonical}' matches '{expected_artist}'")
        return ValidationResult.ok()
