# =============================================================================
# tests/unit/test_cache_store.py
# Unit Tests for LocalCacheStore and cache keys
# =============================================================================

import pytest


class TestCacheKey:
    """Test snapshot key construction"""

    def test_collection_only(self):
        from parlor_core.offline import cache_key

        assert cache_key("cases") == "cases"

    def test_tenant_and_owner_narrow_the_key(self):
        from parlor_core.offline import cache_key

        assert cache_key("clients", "parlor-1") == "clients:parlor-1"
        assert cache_key("clients", "parlor-1", "u-7") == "clients:parlor-1:u-7"

    def test_distinct_collections_give_distinct_keys(self):
        from parlor_core.offline import cache_key

        keys = {cache_key(name, "parlor-1") for name in ("cases", "clients", "tasks", "payments")}
        assert len(keys) == 4

    def test_empty_collection_rejected(self):
        from parlor_core.offline import cache_key

        with pytest.raises(ValueError):
            cache_key("")


class TestLocalCacheStoreSnapshots:
    """Test save/load behavior"""

    def test_missing_key_loads_empty(self, store):
        """Nothing stored yet means an empty snapshot"""
        assert store.load("cases") == []

    def test_save_then_load_preserves_order(self, store, sample_cases):
        store.save("cases", sample_cases)

        loaded = store.load("cases")

        assert [r["id"] for r in loaded] == ["c1", "c2", "c3", "c4"]
        assert loaded == sample_cases

    def test_save_replaces_previous_snapshot(self, store):
        store.save("cases", [{"id": "a"}, {"id": "b"}])
        store.save("cases", [{"id": "c"}])

        assert store.load("cases") == [{"id": "c"}]

    def test_non_json_values_are_not_stored(self, store):
        """Dates must arrive as ISO strings; a date object rejects the whole snapshot"""
        from datetime import date

        store.save("cases", [{"id": "a", "date_of_death": "2024-03-01"}])
        store.save("cases", [{"id": "a", "date_of_death": date(2024, 3, 1)}])

        assert store.load("cases") == [{"id": "a", "date_of_death": "2024-03-01"}]

    def test_snapshot_survives_reopen(self, tmp_path):
        """A new store on the same file sees earlier snapshots"""
        from parlor_core.offline import LocalCacheStore

        path = tmp_path / "cache.db"
        first = LocalCacheStore(path)
        first.save("tasks", [{"id": "t1"}])
        first.close()

        second = LocalCacheStore(path)
        try:
            assert second.load("tasks") == [{"id": "t1"}]
        finally:
            second.close()

    def test_in_memory_store(self):
        from parlor_core.offline import LocalCacheStore

        memory = LocalCacheStore()
        memory.save("cases", [{"id": "x"}])

        assert memory.load("cases") == [{"id": "x"}]
        memory.close()


class TestCacheIsolation:
    """Writes under one key never touch another"""

    def test_tasks_write_does_not_alter_cases(self, store, sample_cases, sample_tasks):
        store.save("cases", sample_cases)

        store.save("tasks", sample_tasks)
        store.save("tasks", [])

        assert store.load("cases") == sample_cases

    def test_reset_single_key(self, store):
        store.save("cases", [{"id": "a"}])
        store.save("tasks", [{"id": "b"}])

        store.reset("cases")

        assert store.load("cases") == []
        assert store.load("tasks") == [{"id": "b"}]
        assert store.keys() == ["tasks"]

    def test_reset_all(self, store):
        store.save("cases", [{"id": "a"}])
        store.save("tasks", [{"id": "b"}])

        store.reset()

        assert store.keys() == []


class TestCacheCorruption:
    """Unreadable snapshots degrade to empty instead of raising"""

    def _write_raw(self, store, key, payload):
        conn = store._get_connection()
        conn.execute(
            "INSERT INTO cache_snapshots (cache_key, payload, entity_count, updated_at) VALUES (?, ?, 0, 'now')",
            (key, payload),
        )
        conn.commit()

    def test_invalid_json_loads_empty(self, store):
        self._write_raw(store, "cases", "{not json")

        assert store.load("cases") == []

    def test_non_list_payload_loads_empty(self, store):
        self._write_raw(store, "cases", '{"id": "a"}')

        assert store.load("cases") == []

    def test_list_of_non_records_loads_empty(self, store):
        self._write_raw(store, "cases", "[1, 2, 3]")

        assert store.load("cases") == []

    def test_decode_raises_cache_corrupt(self):
        from parlor_core.errors import CacheCorrupt
        from parlor_core.offline import LocalCacheStore

        with pytest.raises(CacheCorrupt) as exc_info:
            LocalCacheStore._decode("cases", "nope")

        assert exc_info.value.details["cache_key"] == "cases"

    def test_unserializable_save_keeps_previous_snapshot(self, store):
        """A failed write leaves the last good snapshot in place"""
        store.save("cases", [{"id": "good"}])

        circular = {"id": "bad"}
        circular["self"] = circular
        store.save("cases", [circular])

        assert store.load("cases") == [{"id": "good"}]

    def test_database_error_on_save_is_logged_not_raised(self, store, monkeypatch):
        import sqlite3

        store.save("cases", [{"id": "good"}])
        real_connection = store._get_connection

        def locked():
            raise sqlite3.OperationalError("database is locked")

        monkeypatch.setattr(store, "_get_connection", locked)
        store.save("cases", [{"id": "new"}])
        assert store.load("cases") == []

        monkeypatch.setattr(store, "_get_connection", real_connection)
        assert store.load("cases") == [{"id": "good"}]

    def test_unwritable_path_degrades(self, tmp_path):
        """A cache file under a regular file can never be opened"""
        from parlor_core.offline import LocalCacheStore

        blocker = tmp_path / "not_a_dir"
        blocker.write_text("")
        broken = LocalCacheStore(blocker / "cache.db")

        broken.save("cases", [{"id": "a"}])

        assert broken.load("cases") == []


class TestSnapshotUpdate:
    """Read-modify-write against the stored snapshot"""

    def test_change_applies_to_stored_records(self, store):
        store.save("cases", [{"id": "a"}])

        result = store.update("cases", lambda rows: [{"id": "b"}] + rows, default=[{"id": "stale"}])

        assert result == [{"id": "b"}, {"id": "a"}]
        assert store.load("cases") == result

    def test_missing_snapshot_starts_from_default(self, store):
        result = store.update("cases", lambda rows: rows + [{"id": "b"}], default=[{"id": "a"}])

        assert result == [{"id": "a"}, {"id": "b"}]
        assert store.load("cases") == result

    def test_unserializable_result_is_returned_but_not_stored(self, store):
        from datetime import date

        store.save("cases", [{"id": "a"}])

        result = store.update("cases", lambda rows: rows + [{"id": "b", "due": date(2024, 3, 1)}])

        assert [r["id"] for r in result] == ["a", "b"]
        assert store.load("cases") == [{"id": "a"}]

    def test_unreadable_store_changes_default_only(self, store, monkeypatch):
        import sqlite3

        store.save("cases", [{"id": "a"}])
        real_connection = store._get_connection

        def locked():
            raise sqlite3.OperationalError("database is locked")

        monkeypatch.setattr(store, "_get_connection", locked)
        result = store.update("cases", lambda rows: rows + [{"id": "b"}], default=[{"id": "mine"}])

        assert result == [{"id": "mine"}, {"id": "b"}]
        monkeypatch.setattr(store, "_get_connection", real_connection)
        assert store.load("cases") == [{"id": "a"}]
