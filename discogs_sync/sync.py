#!/usr/bin/env python3
"""Discogs Collection Sync - Entry Point"""

import fcntl
import logging
import os
import sys
from pathlib import Path

from discogs_sync.clients.discogs import DiscogsClient
from discogs_sync.core.config import data_dir_from_env, load_config
from discogs_sync.core.desired_state import load_desired_items
from discogs_sync.core.models import ConfigurationError, RemoteUnavailable, SyncReport
from discogs_sync.core.rate_limiter import RateLimiter
from discogs_sync.core.status import write_running_status, write_status
from discogs_sync.core.sync_engine import ReconciliationDriver

logger = logging.getLogger(__name__)


def setup_logging(data_dir: Path) -> None:
    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    data_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.FileHandler(data_dir / "discogs_sync.log", encoding="utf-8"),
            logging.StreamHandler()
        ]
    )


def acquire_lock(lock_file: Path) -> int | None:
    """
    Take an exclusive flock on the lock file, or return None if another run holds it.

    The kernel drops the flock when its owner exits, so a leftover file from a
    crashed run never blocks the next one. The file itself is never removed.
    """
    try:
        fd = os.open(str(lock_file), os.O_CREAT | os.O_RDWR)
    except OSError as e:
        logger.error(f"Could not open lock file {lock_file}: {e}")
        return None
    try:
        fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:
        os.close(fd)
        return None
    os.ftruncate(fd, 0)
    os.write(fd, f"{os.getpid()}\n".encode())
    return fd


def release_lock(fd: int) -> None:
    try:
        fcntl.flock(fd, fcntl.LOCK_UN)
        os.close(fd)
    except OSError as e:
        logger.warning(f"Failed to release lock: {e}")


def run(status_file: Path) -> int:
    try:
        config = load_config()
        items = load_desired_items(config.desired_file)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        write_status(SyncReport.failure(f"Configuration error: {e}"), status_file)
        return 1

    client = DiscogsClient(config.token, config.username,
                           user_agent=config.user_agent,
                           max_attempts=config.max_attempts)
    limiter = RateLimiter(config.request_delay)
    driver = ReconciliationDriver(client, limiter, config.folder_id,
                                  page_delay=config.page_delay,
                                  dry_run=config.dry_run)

    try:
        report = driver.sync(items)
    except RemoteUnavailable as e:
        write_status(SyncReport.failure(f"Discogs unavailable: {e}"), status_file)
        return 1

    write_status(report, status_file)

    if report.success:
        logger.info(f"Sync completed: {report.summary()}")
        return 0
    logger.warning(f"Sync finished with failures: {report.summary()}")
    return 1


def main() -> int:
    data_dir = data_dir_from_env()
    setup_logging(data_dir)
    lock_file = data_dir / ".sync.lock"
    status_file = data_dir / "sync_status.json"

    lock_fd = acquire_lock(lock_file)
    if lock_fd is None:
        logger.warning("Another sync running, exiting")
        return 0

    try:
        write_running_status(status_file)
        return run(status_file)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        write_status(SyncReport.failure(f"Unexpected error: {e}"), status_file)
        return 1
    finally:
        release_lock(lock_fd)


if __name__ == "__main__":
    sys.exit(main())
