"""Materializes the actual state of a Discogs collection folder."""

import logging
from typing import Any, Protocol

from discogs_sync.clients.discogs import DiscogsAPIError
from discogs_sync.core.models import ActualItem, ActualSet, RemoteUnavailable
from discogs_sync.core.rate_limiter import DEFAULT_PAGE_DELAY, RateLimiter

logger = logging.getLogger(__name__)


class CollectionPageSource(Protocol):
    def get_collection_page(self, folder_id: int, url: str | None = None) -> dict: ...


def _as_list(value: Any) -> list:
    """Listing fields may come back as a single object instead of a list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _next_url(page: dict) -> str | None:
    pagination = page.get("pagination") or {}
    urls = pagination.get("urls") or {}
    return urls.get("next") or None


def _extract_item(entry: Any) -> ActualItem | None:
    if not isinstance(entry, dict):
        logger.warning(f"Skipping malformed listing entry: {entry!r}")
        return None
    try:
        catalog_id = int(entry["id"])
    except (KeyError, TypeError, ValueError):
        logger.warning(f"Skipping listing entry without usable release id: {entry!r}")
        return None
    instance_id = entry.get("instance_id")
    try:
        instance_id = int(instance_id) if instance_id is not None else None
    except (TypeError, ValueError):
        instance_id = None
    return ActualItem(catalog_id=catalog_id, instance_id=instance_id)


class RemoteCollectionReader:
    """Pages through a folder listing until the next link runs out."""

    def __init__(self, client: CollectionPageSource, limiter: RateLimiter,
                 page_delay: float = DEFAULT_PAGE_DELAY):
        self._client = client
        self._limiter = limiter
        self._page_delay = page_delay

    def fetch_all(self, folder_id: int) -> ActualSet:
        items: list[ActualItem] = []
        url = None
        page_no = 0

        while True:
            page_no += 1
            try:
                with self._limiter.paced(self._page_delay):
                    page = self._client.get_collection_page(folder_id, url)
            except DiscogsAPIError as e:
                raise RemoteUnavailable(
                    f"Failed to fetch folder {folder_id} page {page_no}: {e}") from e
            if not isinstance(page, dict):
                raise RemoteUnavailable(
                    f"Folder {folder_id} page {page_no} returned an unexpected payload")

            releases = _as_list(page.get("releases"))
            logger.debug(f"Folder {folder_id} page {page_no}: {len(releases)} releases")
            if not releases:
                break

            for entry in releases:
                item = _extract_item(entry)
                if item is not None:
                    items.append(item)

            url = _next_url(page)
            if not url:
                break

        actual = ActualSet.from_items(items)
        logger.info(f"Discogs folder {folder_id}: {len(actual)} releases "
                    f"({len(actual) - len(actual.instances)} without instance id)")
        return actual
