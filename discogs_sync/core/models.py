"""Data models for sync operations."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Mapping, Optional


class ConfigurationError(Exception):
    """Raised when credentials, settings or the desired-state file are unusable."""
    pass


class RemoteUnavailable(Exception):
    """Raised when the remote collection cannot be fully fetched."""
    pass


class IssueKind(str, Enum):
    GHOST_RECORD = "ghost_record"
    VALIDATION_MISMATCH = "validation_mismatch"
    VALIDATION_FETCH_FAILURE = "validation_fetch_failure"
    ITEM_OPERATION_FAILURE = "item_operation_failure"


class SyncState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    DIFFING = "diffing"
    DELETING = "deleting"
    ADDING = "adding"
    DONE = "done"
    ABORTED = "aborted"


def _dedupe(ids: Iterable[int]) -> tuple[int, ...]:
    """Drop repeated ids, keeping first-seen order."""
    return tuple(dict.fromkeys(ids))


@dataclass(frozen=True)
class DesiredItem:
    """A release the collection should contain."""
    id: int
    artist: Optional[str] = None


@dataclass(frozen=True)
class ActualItem:
    """A release currently held in the remote folder."""
    catalog_id: int
    instance_id: Optional[int] = None


@dataclass(frozen=True)
class DesiredSet:
    ids: tuple[int, ...]
    artists: Mapping[int, Optional[str]] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "ids", _dedupe(self.ids))

    @classmethod
    def from_items(cls, items: Iterable[DesiredItem]) -> "DesiredSet":
        ids: List[int] = []
        artists: dict[int, Optional[str]] = {}
        for item in items:
            if item.id in artists:
                continue
            ids.append(item.id)
            artists[item.id] = item.artist
        return cls(ids=tuple(ids), artists=artists)

    def artist_for(self, release_id: int) -> Optional[str]:
        return self.artists.get(release_id)

    def __contains__(self, release_id: object) -> bool:
        return release_id in self.ids

    def __len__(self) -> int:
        return len(self.ids)


@dataclass(frozen=True)
class ActualSet:
    """
    Releases observed in the remote folder.

    `instances` only holds catalog ids whose instance id is known; an id in
    `ids` without an entry there is a ghost record.
    """
    ids: tuple[int, ...]
    instances: Mapping[int, int] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "ids", _dedupe(self.ids))

    @classmethod
    def from_items(cls, items: Iterable[ActualItem]) -> "ActualSet":
        ids: List[int] = []
        seen: set[int] = set()
        instances: dict[int, int] = {}
        for item in items:
            if item.catalog_id not in seen:
                seen.add(item.catalog_id)
                ids.append(item.catalog_id)
            # First instance id wins; later duplicates are ignored
            if item.instance_id is not None and item.catalog_id not in instances:
                instances[item.catalog_id] = item.instance_id
        return cls(ids=tuple(ids), instances=instances)

    def instance_for(self, release_id: int) -> Optional[int]:
        return self.instances.get(release_id)

    def __contains__(self, release_id: object) -> bool:
        return release_id in self.ids

    def __len__(self) -> int:
        return len(self.ids)


@dataclass(frozen=True)
class Diff:
    to_add: tuple[int, ...] = ()
    to_delete: tuple[int, ...] = ()

    @property
    def empty(self) -> bool:
        return not self.to_add and not self.to_delete


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of checking a release against its expected artist."""
    passed: bool
    reason: str = ""
    kind: Optional[IssueKind] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(passed=True)

    @classmethod
    def mismatch(cls, reason: str) -> "ValidationResult":
        return cls(passed=False, reason=reason, kind=IssueKind.VALIDATION_MISMATCH)

    @classmethod
    def fetch_failure(cls, reason: str) -> "ValidationResult":
        return cls(passed=False, reason=reason, kind=IssueKind.VALIDATION_FETCH_FAILURE)


@dataclass(frozen=True)
class SyncIssue:
    """A non-fatal per-item problem recorded during a run."""
    kind: IssueKind
    release_id: int
    message: str


@dataclass
class SyncReport:
    """Result of a reconciliation run."""
    added: List[int] = field(default_factory=list)
    deleted: List[int] = field(default_factory=list)
    issues: List[SyncIssue] = field(default_factory=list)
    desired_count: int = 0
    actual_count: int = 0
    dry_run: bool = False
    error: Optional[str] = None
    duration: float = 0.0

    @classmethod
    def failure(cls, error: str) -> "SyncReport":
        """Create a report for a run that aborted before any change."""
        return cls(error=error)

    def record(self, kind: IssueKind, release_id: int, message: str) -> None:
        self.issues.append(SyncIssue(kind, release_id, message))

    def count(self, *kinds: IssueKind) -> int:
        return sum(1 for issue in self.issues if issue.kind in kinds)

    @property
    def skipped_ghost(self) -> int:
        return self.count(IssueKind.GHOST_RECORD)

    @property
    def skipped_validation(self) -> int:
        return self.count(IssueKind.VALIDATION_MISMATCH, IssueKind.VALIDATION_FETCH_FAILURE)

    @property
    def failed(self) -> int:
        return self.count(IssueKind.ITEM_OPERATION_FAILURE)

    @property
    def success(self) -> bool:
        return self.error is None and self.failed == 0

    def summary(self) -> dict:
        return {
            "added": len(self.added),
            "deleted": len(self.deleted),
            "skipped_ghost": self.skipped_ghost,
            "skipped_validation": self.skipped_validation,
            "failed": self.failed,
        }
