"""Tests for the command-line entry point."""

import json
import os
import time
from unittest.mock import patch

import pytest

from conftest import FakeDiscogsClient, listing
from discogs_sync import sync


@pytest.fixture
def env(tmp_path, monkeypatch):
    desired = tmp_path / "collection.json"
    desired.write_text(json.dumps([1, {"id": 2, "artist": "Brahms"}]))
    monkeypatch.setenv("DISCOGS_TOKEN", "secret")
    monkeypatch.setenv("DISCOGS_USERNAME", "collector")
    monkeypatch.setenv("DISCOGS_SYNC_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("DISCOGS_DESIRED_FILE", str(desired))
    monkeypatch.setenv("DISCOGS_REQUEST_DELAY", "0")
    monkeypatch.setenv("DISCOGS_PAGE_DELAY", "0")
    return tmp_path


def read_status(data_dir):
    return json.loads((data_dir / "sync_status.json").read_text())


def test_successful_run(env):
    client = FakeDiscogsClient(pages={None: listing((1, 11), (3, 33))},
                               releases={2: {"artists_sort": "Johannes Brahms"}})

    with patch("discogs_sync.sync.DiscogsClient", return_value=client):
        assert sync.main() == 0

    status = read_status(env)
    assert status["status"] == "success"
    assert status["added"] == 1
    assert status["deleted"] == 1
    fd = sync.acquire_lock(env / ".sync.lock")
    assert fd is not None
    sync.release_lock(fd)


def test_item_failure_exits_non_zero(env):
    client = FakeDiscogsClient(pages={None: listing((1, 11))}, fail_adds={2},
                               releases={2: {"artists_sort": "Brahms"}})

    with patch("discogs_sync.sync.DiscogsClient", return_value=client):
        assert sync.main() == 1

    assert read_status(env)["failed"] == 1


def test_remote_unavailable_exits_non_zero(env):
    client = FakeDiscogsClient(pages={None: listing((1, 11), next_url="next")},
                               page_errors={"next"})

    with patch("discogs_sync.sync.DiscogsClient", return_value=client):
        assert sync.main() == 1

    status = read_status(env)
    assert status["status"] == "failed"
    assert "Discogs unavailable" in status["last_error"]
    assert client.mutating_calls() == []


def test_configuration_error_makes_no_remote_calls(env, monkeypatch):
    monkeypatch.delenv("DISCOGS_TOKEN")

    with patch("discogs_sync.sync.DiscogsClient") as client_cls:
        assert sync.main() == 1

    client_cls.assert_not_called()
    assert "DISCOGS_TOKEN" in read_status(env)["last_error"]


def test_concurrent_run_exits_quietly(env):
    with patch("discogs_sync.sync.acquire_lock", return_value=None), \
            patch("discogs_sync.sync.run") as run:
        assert sync.main() == 0

    run.assert_not_called()


class TestRunLock:

    def test_held_lock_blocks_second_run_even_when_old(self, tmp_path):
        lock_file = tmp_path / ".sync.lock"
        held = sync.acquire_lock(lock_file)
        assert held is not None
        try:
            old = time.time() - 7200
            os.utime(lock_file, (old, old))

            assert sync.acquire_lock(lock_file) is None
            assert lock_file.exists()
        finally:
            sync.release_lock(held)

    def test_leftover_unlocked_file_is_reused(self, tmp_path):
        lock_file = tmp_path / ".sync.lock"
        lock_file.write_text("12345\n")

        fd = sync.acquire_lock(lock_file)
        try:
            assert fd is not None
            assert lock_file.read_text() == f"{os.getpid()}\n"
        finally:
            sync.release_lock(fd)

    def test_released_lock_can_be_taken_again(self, tmp_path):
        lock_file = tmp_path / ".sync.lock"
        sync.release_lock(sync.acquire_lock(lock_file))

        fd = sync.acquire_lock(lock_file)
        assert fd is not None
        sync.release_lock(fd)
