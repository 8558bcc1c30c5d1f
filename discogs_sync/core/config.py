"""Environment-driven settings for a sync run."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from discogs_sync.clients.discogs import DEFAULT_USER_AGENT
from discogs_sync.core.models import ConfigurationError
from discogs_sync.core.rate_limiter import DEFAULT_PAGE_DELAY, DEFAULT_REQUEST_DELAY

DEFAULT_DATA_DIR = Path("~/.discogs_sync").expanduser()
UNCATEGORIZED_FOLDER_ID = 1

_TRUE = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class SyncConfig:
    token: str
    username: str
    folder_id: int = UNCATEGORIZED_FOLDER_ID
    desired_file: Path = DEFAULT_DATA_DIR / "collection.json"
    data_dir: Path = DEFAULT_DATA_DIR
    request_delay: float = DEFAULT_REQUEST_DELAY
    page_delay: float = DEFAULT_PAGE_DELAY
    max_attempts: int = 1
    dry_run: bool = False
    user_agent: str = DEFAULT_USER_AGENT


def data_dir_from_env(environ: Mapping[str, str] | None = None) -> Path:
    environ = os.environ if environ is None else environ
    value = environ.get("DISCOGS_SYNC_DATA_DIR")
    return Path(value).expanduser() if value else DEFAULT_DATA_DIR


def _number(environ: Mapping[str, str], name: str, default, cast):
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got '{raw}'")


def load_config(environ: Mapping[str, str] | None = None) -> SyncConfig:
    environ = os.environ if environ is None else environ

    required = ["DISCOGS_TOKEN", "DISCOGS_USERNAME"]
    missing = [var for var in required if not environ.get(var)]
    if missing:
        raise ConfigurationError(f"Missing config: {', '.join(missing)}")

    folder_id = _number(environ, "DISCOGS_FOLDER_ID", UNCATEGORIZED_FOLDER_ID, int)
    if folder_id == 0:
        raise ConfigurationError("DISCOGS_FOLDER_ID 0 (All) is not writable")
    if folder_id < 0:
        raise ConfigurationError(f"DISCOGS_FOLDER_ID must be positive, got {folder_id}")

    request_delay = _number(environ, "DISCOGS_REQUEST_DELAY", DEFAULT_REQUEST_DELAY, float)
    page_delay = _number(environ, "DISCOGS_PAGE_DELAY", DEFAULT_PAGE_DELAY, float)
    if request_delay < 0 or page_delay < 0:
        raise ConfigurationError("Request and page delays must not be negative")

    max_attempts = _number(environ, "DISCOGS_MAX_ATTEMPTS", 1, int)
    if max_attempts < 1:
        raise ConfigurationError("DISCOGS_MAX_ATTEMPTS must be at least 1")

    data_dir = data_dir_from_env(environ)
    desired_file = environ.get("DISCOGS_DESIRED_FILE")

    return SyncConfig(
        token=environ["DISCOGS_TOKEN"],
        username=environ["DISCOGS_USERNAME"],
        folder_id=folder_id,
        desired_file=Path(desired_file).expanduser() if desired_file else data_dir / "collection.json",
        data_dir=data_dir,
        request_delay=request_delay,
        page_delay=page_delay,
        max_attempts=max_attempts,
        dry_run=environ.get("DISCOGS_DRY_RUN", "").strip().lower() in _TRUE,
        user_agent=environ.get("DISCOGS_USER_AGENT") or DEFAULT_USER_AGENT,
    )
