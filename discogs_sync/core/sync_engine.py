"""
Sync Engine

Reconciles a Discogs collection folder against the desired release list.

Run phases
----------
1. FETCH the whole folder listing (any failed page aborts the run)
2. DIFF desired ids against listed ids
3. DELETE releases no longer desired, addressed by instance id
4. ADD desired releases that pass the artist check

Deletes always run before adds. Past the fetch, nothing aborts the run:
every per-item problem is recorded in the SyncReport and the next item is
processed. Every validation fetch and every add/delete goes through the
shared RateLimiter, which keeps the interval idle after each call finishes.
"""

import logging
import time
from typing import Iterable, Protocol

from discogs_sync.clients.discogs import DiscogsAPIError
from discogs_sync.core.diff import diff
from discogs_sync.core.models import (
    ActualSet, DesiredItem, DesiredSet, Diff, IssueKind, RemoteUnavailable,
    SyncReport, SyncState,
)
from discogs_sync.core.rate_limiter import DEFAULT_PAGE_DELAY, RateLimiter
from discogs_sync.core.reader import RemoteCollectionReader
from discogs_sync.core.validation import ValidationGate

logger = logging.getLogger(__name__)

# Folder 0 ("All") is a read-only view on Discogs
ALL_FOLDER_ID = 0


class DiscogsClientProtocol(Protocol):
    def get_collection_page(self, folder_id: int, url: str | None = None) -> dict: ...
    def get_release(self, release_id: int) -> dict: ...
    def add_release(self, folder_id: int, release_id: int) -> dict: ...
    def delete_instance(self, folder_id: int, release_id: int, instance_id: int) -> None: ...


class ReconciliationDriver:
    """Runs fetch, diff, delete and add for one folder."""

    def __init__(self, client: DiscogsClientProtocol, limiter: RateLimiter,
                 folder_id: int, page_delay: float = DEFAULT_PAGE_DELAY,
                 dry_run: bool = False):
        if folder_id == ALL_FOLDER_ID:
            raise ValueError("Folder 0 (All) is not writable; choose a concrete folder")
        self._client = client
        self._limiter = limiter
        self._folder_id = folder_id
        self._dry_run = dry_run
        self._reader = RemoteCollectionReader(client, limiter, page_delay)
        self._gate = ValidationGate(client, limiter)
        self.state = SyncState.IDLE

    def _delete_phase(self, to_delete: Iterable[int], actual: ActualSet,
                      report: SyncReport) -> None:
        self.state = SyncState.DELETING
        for release_id in to_delete:
            instance_id = actual.instance_for(release_id)
            if instance_id is None:
                logger.warning(f"Ghost record: {release_id} has no instance id, not deleting")
                report.record(IssueKind.GHOST_RECORD, release_id, "no instance id in folder listing")
                continue

            if self._dry_run:
                logger.info(f"[dry run] Would delete {release_id} (instance {instance_id})")
                report.deleted.append(release_id)
                continue

            try:
                with self._limiter.paced():
                    self._client.delete_instance(self._folder_id, release_id, instance_id)
            except DiscogsAPIError as e:
                logger.warning(f"Failed to delete {release_id}: {e}")
                report.record(IssueKind.ITEM_OPERATION_FAILURE, release_id, f"delete failed: {e}")
                continue
            logger.info(f"Deleted: {release_id} (instance {instance_id})")
            report.deleted.append(release_id)

    def _add_phase(self, to_add: Iterable[int], desired: DesiredSet,
                   report: SyncReport) -> None:
        self.state = SyncState.ADDING
        for release_id in to_add:
            if self._dry_run:
                logger.info(f"[dry run] Would add {release_id}")
                report.added.append(release_id)
                continue

            result = self._gate.validate(release_id, desired.artist_for(release_id))
            if not result.passed:
                logger.warning(f"Skipping add of {release_id}: {result.reason}")
                report.record(result.kind, release_id, result.reason)
                continue

            try:
                with self._limiter.paced():
                    self._client.add_release(self._folder_id, release_id)
            except DiscogsAPIError as e:
                logger.warning(f"Failed to add {release_id}: {e}")
                report.record(IssueKind.ITEM_OPERATION_FAILURE, release_id, f"add failed: {e}")
                continue
            logger.info(f"Added: {release_id}")
            report.added.append(release_id)

    def plan(self, desired: DesiredSet) -> tuple[ActualSet, Diff]:
        """Fetch the folder and compute the diff without changing anything."""
        self.state = SyncState.FETCHING
        try:
            actual = self._reader.fetch_all(self._folder_id)
        except RemoteUnavailable:
            self.state = SyncState.ABORTED
            raise

        self.state = SyncState.DIFFING
        return actual, diff(desired, actual)

    def sync(self, items: Iterable[DesiredItem]) -> SyncReport:
        """Perform a full reconciliation run. Raises RemoteUnavailable if the fetch fails."""
        start = time.time()
        desired = DesiredSet.from_items(items)

        logger.info("=" * 50)
        logger.info(f"Starting sync of folder {self._folder_id}"
                    + (" (dry run)" if self._dry_run else ""))
        logger.info(f"Desired: {len(desired)} releases")

        try:
            actual, changes = self.plan(desired)
        except RemoteUnavailable as e:
            logger.error(f"Aborting sync: {e}")
            raise

        report = SyncReport(desired_count=len(desired), actual_count=len(actual),
                            dry_run=self._dry_run)
        logger.info(f"Planned {len(changes.to_delete)} deletes, {len(changes.to_add)} adds")

        if changes.empty:
            logger.info("Collection already in sync!")
        else:
            self._delete_phase(changes.to_delete, actual, report)
            self._add_phase(changes.to_add, desired, report)

        self.state = SyncState.DONE
        report.duration = time.time() - start

        summary = report.summary()
        logger.info(f"Completed in {report.duration:.1f}s: +{summary['added']} -{summary['deleted']} "
                    f"ghost={summary['skipped_ghost']} invalid={summary['skipped_validation']} "
                    f"failed={summary['failed']}")
        logger.info("=" * 50)
        return report
