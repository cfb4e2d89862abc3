import json
import os

import pytest

from catalog_feed.persist.state import FeedStateStore, StateError


def test_missing_file_is_bootstrap(tmp_path):
    state = FeedStateStore(tmp_path / "state.json").read()
    assert state.sequence_number == 0
    assert state.last_run_timestamp is None
    assert state.is_bootstrap


def test_mutators_update_one_value_each(tmp_path):
    store = FeedStateStore(tmp_path / "sub" / "state.json")
    store.advance_timestamp("2024-05-01T00:00:00.000Z")
    assert store.read().sequence_number == 0
    assert store.increment_sequence() == 1
    assert store.increment_sequence() == 2
    state = store.read()
    assert state.sequence_number == 2
    assert state.last_run_timestamp == "2024-05-01T00:00:00.000Z"
    assert not state.is_bootstrap


def test_null_values_read_as_unset(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"sequence_number": None, "last_run_timestamp": None}))
    state = FeedStateStore(path).read()
    assert state.sequence_number == 0
    assert state.is_bootstrap


def test_corrupt_state_raises(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json")
    with pytest.raises(StateError):
        FeedStateStore(path).read()
    path.write_text(json.dumps({"sequence_number": -3}))
    with pytest.raises(StateError):
        FeedStateStore(path).read()


def test_failed_replace_keeps_previous_value(tmp_path, monkeypatch):
    path = tmp_path / "state.json"
    store = FeedStateStore(path)
    store.increment_sequence()

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", broken_replace)
    with pytest.raises(OSError):
        store.advance_timestamp("2024-05-01T00:00:00.000Z")
    monkeypatch.undo()

    assert json.loads(path.read_text()) == {"sequence_number": 1}
    assert [p.name for p in tmp_path.iterdir()] == ["state.json"]
