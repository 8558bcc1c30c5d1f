"""
Discogs API Client

Thin wrapper over the collection and database endpoints used by the sync.
Every failure surfaces as DiscogsAPIError; callers decide whether it is
fatal. Retries on 429/5xx/network errors only happen while attempts remain,
and the default is a single attempt.
"""

import logging
import random
import time
from typing import Any, Callable

import requests

from discogs_sync import __version__

logger = logging.getLogger(__name__)

API_BASE = "https://api.discogs.com"
PER_PAGE = 100
DEFAULT_USER_AGENT = f"DiscogsCollectionSync/{__version__}"
REQUEST_TIMEOUT = 30
MAX_BACKOFF = 30.0


class DiscogsAPIError(Exception):
    """Discogs request failed."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


def _retry_after(response: requests.Response, attempt: int) -> float:
    value = response.headers.get("Retry-After")
    if value is not None:
        try:
            return max(0.0, float(value))
        except ValueError:
            pass
    return min(MAX_BACKOFF, 2 ** attempt) + random.uniform(0.0, 0.5)


class DiscogsClient:
    """Discogs collection client for a single user."""

    def __init__(self, token: str, username: str,
                 user_agent: str = DEFAULT_USER_AGENT,
                 base_url: str = API_BASE,
                 max_attempts: int = 1,
                 session: requests.Session | None = None,
                 sleep: Callable[[float], None] = time.sleep,
                 timeout: float = REQUEST_TIMEOUT):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._username = username
        self._base_url = base_url.rstrip("/")
        self._max_attempts = max_attempts
        self._sleep = sleep
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "Authorization": f"Discogs token={token}",
            "User-Agent": user_agent,
            "Accept": "application/json",
        })
        logger.debug(f"Discogs client initialized for {username}")

    @property
    def collection_base(self) -> str:
        return f"{self._base_url}/users/{self._username}/collection"

    def _request(self, method: str, url: str, name: str, **kwargs: Any) -> dict:
        """Issue a request, retrying transient failures while attempts remain."""
        for attempt in range(self._max_attempts):
            final = attempt == self._max_attempts - 1
            try:
                response = self._session.request(method, url, timeout=self._timeout, **kwargs)
            except requests.RequestException as e:
                if not final:
                    wait = min(MAX_BACKOFF, 2 ** attempt)
                    logger.warning(f"Network error on {name}, retrying in {wait}s...")
                    self._sleep(wait)
                    continue
                raise DiscogsAPIError(f"Network error on {name}: {e}") from e

            status = response.status_code

            if status == 429 and not final:
                wait = _retry_after(response, attempt)
                logger.warning(f"Rate limited on {name}, waiting {wait:.1f}s...")
                self._sleep(wait)
                continue

            if status >= 500 and not final:
                wait = min(MAX_BACKOFF, 2 ** attempt)
                logger.warning(f"Server error {status} on {name}, retrying in {wait}s...")
                self._sleep(wait)
                continue

            if status >= 400:
                raise DiscogsAPIError(
                    f"API error on {name}: HTTP {status} {response.text[:200]}", status)

            if status == 204 or not response.content:
                return {}
            try:
                return response.json()
            except ValueError as e:
                raise DiscogsAPIError(f"Invalid JSON on {name}: {e}", status) from e

        raise DiscogsAPIError(f"{name} failed after {self._max_attempts} attempts")

    def get_collection_page(self, folder_id: int, url: str | None = None) -> dict:
        """Fetch one page of a folder listing. `url` is the previous page's next link."""
        if url is None:
            url = f"{self.collection_base}/folders/{folder_id}/releases"
            return self._request("GET", url, f"list folder {folder_id}",
                                 params={"per_page": PER_PAGE})
        return self._request("GET", url, f"list folder {folder_id}")

    def get_release(self, release_id: int) -> dict:
        return self._request("GET", f"{self._base_url}/releases/{release_id}",
                             f"get release {release_id}")

    def add_release(self, folder_id: int, release_id: int) -> dict:
        url = f"{self.collection_base}/folders/{folder_id}/releases/{release_id}"
        return self._request("POST", url, f"add release {release_id}")

    def delete_instance(self, folder_id: int, release_id: int, instance_id: int) -> None:
        url = (f"{self.collection_base}/folders/{folder_id}"
               f"/releases/{release_id}/instances/{instance_id}")
        self._request("DELETE", url, f"delete release {release_id}")
