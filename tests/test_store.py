"""Tests for the WorldStore — atomic commits, deletes, persistence."""

import sys
import os
import json

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from horde.core.mutations import MutationBatch, WorldPaths
from horde.engine.store import CommitError, WorldStore


def _store() -> WorldStore:
    return WorldStore({"worlds": {"w": {"chunks": {"0,0": {"1,1": {"groups": {
        "g1": {"name": "Orcs", "status": "idle"},
    }}}}}}})


class TestReads:
    def test_get_returns_copy(self):
        store = _store()
        group = store.get("worlds/w/chunks/0,0/1,1/groups/g1")
        group["status"] = "moving"
        assert store.get("worlds/w/chunks/0,0/1,1/groups/g1/status") == "idle"

    def test_missing_path_default(self):
        assert _store().get("worlds/w/chunks/9,9", "none") == "none"
        assert _store().chat("w") == {}

    def test_chunks(self):
        assert list(_store().chunks("w")) == ["0,0"]


class TestCommit:
    def test_multi_path_update(self):
        store = _store()
        batch = MutationBatch()
        batch.update("worlds/w/chunks/0,0/1,1/groups/g1", {"status": "moving", "pathIndex": 0})
        batch.set("worlds/w/chat/m1", {"text": "hello"})
        assert store.commit(batch) == 3
        assert store.get("worlds/w/chunks/0,0/1,1/groups/g1/status") == "moving"
        assert store.chat("w") == {"m1": {"text": "hello"}}
        assert store.commits == 1

    def test_empty_batch_is_noop(self):
        store = _store()
        assert store.commit(MutationBatch()) == 0
        assert store.commits == 0

    def test_delete_prunes_empty_parents(self):
        store = _store()
        store.commit({"worlds/w/chunks/0,0/1,1/groups/g1": None})
        assert store.get("worlds/w/chunks/0,0/1,1") is None
        assert store.get("worlds/w/chunks") is None

    def test_delete_missing_path(self):
        store = _store()
        store.commit({"worlds/w/chunks/5,5/groups/x": None})
        assert store.get("worlds/w/chunks/0,0/1,1/groups/g1/name") == "Orcs"

    def test_failed_commit_leaves_store_unchanged(self):
        store = _store()
        batch = {
            "worlds/w/chunks/0,0/1,1/groups/g1/status": "moving",
            "worlds/w/chunks/0,0/1,1/groups/g1/name/first": "bad",
        }
        try:
            store.commit(batch)
        except CommitError:
            pass
        else:
            raise AssertionError("expected CommitError")
        assert store.get("worlds/w/chunks/0,0/1,1/groups/g1/status") == "idle"
        assert store.commits == 0

    def test_values_are_copied_in(self):
        store = _store()
        record = {"items": {"SAND": 1}}
        store.commit({"worlds/w/chunks/0,0/1,1/structure": record})
        record["items"]["SAND"] = 99
        assert store.get("worlds/w/chunks/0,0/1,1/structure/items/SAND") == 1


class TestPaths:
    def test_world_paths(self):
        paths = WorldPaths("w", 20)
        assert paths.tile(25, -3) == "worlds/w/chunks/1,-1/25,-3"
        assert paths.group(1, 1, "g1") == "worlds/w/chunks/0,0/1,1/groups/g1"
        assert paths.battle(1, 1, "b1") == "worlds/w/chunks/0,0/1,1/battles/b1"
        assert paths.chat("m1") == "worlds/w/chat/m1"

    def test_batch_last_write_wins(self):
        batch = MutationBatch().set("a/b", 1).set("a/b", 2).delete("a/c")
        assert batch.as_dict() == {"a/b": 2, "a/c": None}


class TestPersistence:
    def test_round_trip(self, tmp_path):
        store = _store()
        path = tmp_path / "world.json"
        store.dump_json(path)
        loaded = WorldStore.load_json(path)
        assert loaded.to_dict() == store.to_dict()

    def test_rejects_non_object(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([1, 2]))
        try:
            WorldStore.load_json(path)
        except ValueError:
            pass
        else:
            raise AssertionError("expected ValueError")
