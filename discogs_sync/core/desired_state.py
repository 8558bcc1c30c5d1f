"""Read-only loader for the desired collection file."""

import json
import logging
from pathlib import Path
from typing import Any

from discogs_sync.core.models import ConfigurationError, DesiredItem

logger = logging.getLogger(__name__)


def _parse_entry(entry: Any, index: int) -> DesiredItem:
    if isinstance(entry, bool):
        raise ConfigurationError(f"Entry {index}: expected a release id, got {entry!r}")
    if isinstance(entry, int):
        return DesiredItem(id=entry)
    if isinstance(entry, dict):
        release_id = entry.get("id")
        if isinstance(release_id, str) and release_id.strip().isdigit():
            release_id = int(release_id)
        if not isinstance(release_id, int) or isinstance(release_id, bool):
            raise ConfigurationError(f"Entry {index}: missing integer 'id'")
        artist = entry.get("artist")
        if artist is not None and not isinstance(artist, str):
            raise ConfigurationError(f"Entry {index}: 'artist' must be a string")
        if artist is not None:
            artist = artist.strip() or None
        return DesiredItem(id=release_id, artist=artist)
    raise ConfigurationError(f"Entry {index}: expected a release id or object, got {entry!r}")


def load_desired_items(path: Path) -> list[DesiredItem]:
    """
    Load desired releases from a JSON file.

    Accepts a list of ids or {"id", "artist"} objects, or an object whose
    "releases" key holds such a list.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Desired-state file not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read desired-state file {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("releases")
    if not isinstance(data, list):
        raise ConfigurationError(f"{path}: expected a list of releases")

    items = [_parse_entry(entry, i) for i, entry in enumerate(data)]
    logger.debug(f"Loaded {len(items)} desired releases from {path}")
    return items
