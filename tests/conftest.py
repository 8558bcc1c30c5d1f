"""
Shared fixtures for the sync tests.

Provides a fake clock so pacing never really sleeps, and an in-memory
Discogs client that records every call it receives.
"""

import pytest

from discogs_sync.clients.discogs import DiscogsAPIError
from discogs_sync.core.rate_limiter import RateLimiter


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeDiscogsClient:
    """
    `pages` maps the requested next-URL (None for the first page) to a page
    payload. `releases` maps release id to a payload or an exception to raise.
    """

    def __init__(self, pages=None, releases=None, fail_deletes=(), fail_adds=(),
                 page_errors=(), clock=None, latency=0.0):
        self.pages = pages if pages is not None else {None: {"releases": []}}
        self.releases = releases or {}
        self.fail_deletes = set(fail_deletes)
        self.fail_adds = set(fail_adds)
        self.page_errors = set(page_errors)
        self.clock = clock
        self.latency = latency
        self.calls: list[tuple] = []
        self.started: list[float] = []

    def _call(self, *call):
        self.calls.append(call)
        if self.clock is not None:
            self.started.append(self.clock.now)
            self.clock.now += self.latency

    def get_collection_page(self, folder_id, url=None):
        self._call("page", folder_id, url)
        if url in self.page_errors:
            raise DiscogsAPIError("API error on list folder: HTTP 503", 503)
        return self.pages[url]

    def get_release(self, release_id):
        self._call("release", release_id)
        payload = self.releases.get(release_id)
        if isinstance(payload, Exception):
            raise payload
        if payload is None:
            raise DiscogsAPIError(f"API error on get release {release_id}: HTTP 404", 404)
        return payload

    def add_release(self, folder_id, release_id):
        self._call("add", folder_id, release_id)
        if release_id in self.fail_adds:
            raise DiscogsAPIError(f"API error on add release {release_id}: HTTP 500", 500)
        return {"instance_id": 9000 + release_id}

    def delete_instance(self, folder_id, release_id, instance_id):
        self._call("delete", folder_id, release_id, instance_id)
        if release_id in self.fail_deletes:
            raise DiscogsAPIError(f"API error on delete release {release_id}: HTTP 500", 500)

    def mutating_calls(self):
        return [c for c in self.calls if c[0] in ("add", "delete")]


def listing(*entries, next_url=None):
    """Build a folder listing page from (release_id, instance_id) pairs."""
    page = {"releases": [{"id": rid, "instance_id": iid} for rid, iid in entries]}
    page["pagination"] = {"urls": {"next": next_url} if next_url else {}}
    return page


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock) -> RateLimiter:
    return RateLimiter(1.1, clock=clock, sleep=clock.sleep)
