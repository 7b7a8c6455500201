"""
Tests for persistence — the stamp store.
"""

import json
from pathlib import Path

import pytest

from polybuild.core.errors import StampWriteError
from polybuild.core.models.params import ParameterTuple
from polybuild.core.persistence.stamp_store import StampStore, action_key


class TestActionKey:
    def test_readable_prefix(self):
        key = action_key("build", ParameterTuple(profile="release"))
        assert key.startswith("build-release-")

    def test_distinct_tuples_distinct_keys(self):
        tuples = [
            ParameterTuple(),
            ParameterTuple(profile="release"),
            ParameterTuple(features=["a"]),
            ParameterTuple(features=["a", "b"]),
            ParameterTuple(target_arch="wasm32-unknown-unknown"),
            ParameterTuple(toolchain="nightly"),
        ]
        keys = {action_key("build", t) for t in tuples}
        assert len(keys) == len(tuples)

    def test_distinct_actions(self):
        assert action_key("install", ParameterTuple()) != action_key("build", ParameterTuple())

    def test_feature_order_same_key(self):
        assert action_key("build", ParameterTuple(features=["a", "b"])) == (
            action_key("build", ParameterTuple(features=["b", "a"]))
        )


class TestStampStore:
    def test_read_missing(self, tmp_path: Path):
        store = StampStore(tmp_path / "stamps")
        assert store.read("install-dev-x") is None
        assert not store.is_fresh("install-dev-x", "abc")
        assert store.keys() == []

    def test_write_and_read(self, tmp_path: Path):
        store = StampStore(tmp_path / "stamps")
        record = store.write("install-dev-x", "f1", action="install", variant="pnpm")
        assert record.fingerprint == "f1"
        assert store.read("install-dev-x") == "f1"
        assert store.is_fresh("install-dev-x", "f1")
        assert not store.is_fresh("install-dev-x", "f2")

    def test_write_creates_directories(self, tmp_path: Path):
        store = StampStore(tmp_path / "deep" / "nested" / "stamps")
        store.write("k", "f")
        assert store.path_for("k").is_file()

    def test_unwritable_directory_raises_polybuild_error(self, tmp_path: Path):
        (tmp_path / "blocker").write_text("not a directory")
        store = StampStore(tmp_path / "blocker" / "stamps")
        with pytest.raises(StampWriteError, match="Cannot write stamp"):
            store.write("k", "f")
        assert store.read("k") is None

    def test_overwrite(self, tmp_path: Path):
        store = StampStore(tmp_path)
        store.write("k", "old")
        store.write("k", "new")
        assert store.read("k") == "new"

    def test_no_temp_files_left(self, tmp_path: Path):
        store = StampStore(tmp_path / "s")
        store.write("k", "f")
        assert sorted(p.name for p in (tmp_path / "s").iterdir()) == ["k.json"]

    def test_valid_json_document(self, tmp_path: Path):
        store = StampStore(tmp_path)
        store.write("build-dev-x", "f", action="build", parameters={"profile": "dev"})
        data = json.loads(store.path_for("build-dev-x").read_text())
        assert data["schema_version"] == 1
        assert data["action_key"] == "build-dev-x"
        assert data["parameters"] == {"profile": "dev"}
        assert data["written_at"]

    def test_corrupt_stamp_is_absent(self, tmp_path: Path):
        store = StampStore(tmp_path)
        store.path_for("k").write_text("not json {{{")
        assert store.read("k") is None
        assert store.records() == []

    def test_invalid_schema_is_absent(self, tmp_path: Path):
        store = StampStore(tmp_path)
        store.path_for("k").write_text(json.dumps({"action_key": "k"}))
        assert store.load("k") is None

    def test_keys_isolated(self, tmp_path: Path):
        store = StampStore(tmp_path)
        store.write("a", "1")
        store.write("b", "2")
        assert store.keys() == ["a", "b"]
        assert store.read("a") == "1"

    def test_clear_one(self, tmp_path: Path):
        store = StampStore(tmp_path / "s")
        store.write("a", "1")
        store.write("b", "2")
        assert store.clear("a") == 1
        assert store.clear("a") == 0
        assert store.keys() == ["b"]

    def test_clear_all(self, tmp_path: Path):
        store = StampStore(tmp_path / "s")
        store.write("a", "1")
        store.write("b", "2")
        assert store.clear() == 2
        assert not (tmp_path / "s").exists()
        assert store.clear() == 0

    def test_records(self, tmp_path: Path):
        store = StampStore(tmp_path)
        store.write("a", "1", variant="cargo")
        [record] = store.records()
        assert record.variant == "cargo"
