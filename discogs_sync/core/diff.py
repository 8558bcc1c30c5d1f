"""Set difference between desired and actual collection state."""

from discogs_sync.core.models import ActualSet, DesiredSet, Diff


def diff(desired: DesiredSet, actual: ActualSet) -> Diff:
    """
    Compute the releases to add and delete.

    Both lists keep the iteration order of their source set so runs are
    reproducible.
    """
    actual_ids = set(actual.ids)
    desired_ids = set(desired.ids)
    to_add = tuple(rid for rid in desired.ids if rid not in actual_ids)
    to_delete = tuple(rid for rid in actual.ids if rid not in desired_ids)
    return Diff(to_add=to_add, to_delete=to_delete)
