"""Tests for loading the desired collection file."""

import json

import pytest

from discogs_sync.core.desired_state import load_desired_items
from discogs_sync.core.models import ConfigurationError, DesiredItem


def write(tmp_path, data):
    path = tmp_path / "collection.json"
    path.write_text(json.dumps(data))
    return path


def test_mixed_ids_and_objects(tmp_path):
    path = write(tmp_path, [101, {"id": 202, "artist": "Brahms"}, {"id": "303", "artist": "  "}])

    assert load_desired_items(path) == [
        DesiredItem(101),
        DesiredItem(202, "Brahms"),
        DesiredItem(303),
    ]


def test_releases_wrapper(tmp_path):
    path = write(tmp_path, {"releases": [{"id": 5}]})
    assert load_desired_items(path) == [DesiredItem(5)]


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_desired_items(tmp_path / "nope.json")


def test_invalid_json(tmp_path):
    path = tmp_path / "collection.json"
    path.write_text("[1, 2,")

    with pytest.raises(ConfigurationError, match="Cannot read"):
        load_desired_items(path)


@pytest.mark.parametrize("data", [
    [{"artist": "Brahms"}],
    [{"id": 1, "artist": 5}],
    ["abc"],
    [True],
    {"items": []},
])
def test_bad_entries(tmp_path, data):
    with pytest.raises(ConfigurationError):
        load_desired_items(write(tmp_path, data))
