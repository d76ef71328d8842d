"""Tests for the sqlite settings store and the persisted seen-cursor."""

from whatsnew.changelog import parse_changelog
from whatsnew.db import LAST_SEEN, LAST_USED, CursorStore
from whatsnew.versions import DEFAULT_LAST_SEEN, SeenCursor, VersionStamp


class TestDatabase:
    def test_creates_parent_directory(self, db):
        assert db.path.parent.is_dir()

    def test_roundtrip(self, db):
        db.set("ns", "key", {"version": "1.0.0"})

        assert db.get("ns", "key") == {"version": "1.0.0"}
        assert db.get("other", "key") is None

    def test_update(self, db):
        db.set("ns", "count", 1)

        assert db.update("ns", "count", lambda value: value + 1) == 2
        assert db.get("ns", "count") == 2


class TestCursorStore:
    def test_defaults_are_written_back(self, store, db):
        """A missing cursor is replaced by the defaults and persisted."""
        cursor = store.load()

        assert cursor.last_used == VersionStamp(version="0.0.0")
        assert cursor.last_seen == DEFAULT_LAST_SEEN
        assert db.get(store.namespace, LAST_USED) == {"version": "0.0.0", "date": None}
        assert db.get(store.namespace, LAST_SEEN)["version"] == "3.2.8"

    def test_malformed_cursor_uses_default(self, store, db):
        db.set(store.namespace, LAST_SEEN, {"version": 3})
        db.set(store.namespace, LAST_USED, "not an object")

        cursor = store.load()

        assert cursor.last_seen == DEFAULT_LAST_SEEN
        assert cursor.last_used.version == "0.0.0"

    def test_namespaces_are_independent(self, db):
        CursorStore(db, "a").acknowledge("5.0.0", None)

        assert CursorStore(db, "b").load().last_seen == DEFAULT_LAST_SEEN

    def test_save_and_load(self, store):
        cursor = SeenCursor(
            last_used=VersionStamp(version="3.3.0", date=1),
            last_seen=VersionStamp(version="3.2.9"),
        )
        store.save(cursor)

        assert store.load() == cursor

    def test_acknowledge(self, store):
        store.acknowledge("3.3.0", 1677974400000)

        assert store.load().last_seen == VersionStamp(version="3.3.0", date=1677974400000)

    def test_acknowledge_without_version(self, store):
        """An unversioned release still records its date."""
        stamp = store.acknowledge(None, 1677974400000)

        assert stamp.version == "0.0.0"
        assert store.load().last_seen.date == 1677974400000

    def test_migrate_raises_version(self, store):
        store.save(SeenCursor(last_used=VersionStamp(version="3.2.0", date=42)))

        migrated = store.migrate_version("3.3.0")

        assert migrated == VersionStamp(version="3.3.0", date=42)
        assert store.load().last_used == migrated

    def test_migrate_keeps_newer_version(self, store):
        store.save(SeenCursor(last_used=VersionStamp(version="4.0.0")))

        assert store.migrate_version("3.3.0").version == "4.0.0"

    def test_migrate_leaves_last_seen(self, store):
        store.acknowledge("3.1.0", None)
        store.migrate_version("3.3.0")

        assert store.load().last_seen.version == "3.1.0"

    async def test_update_flag_clears_after_migration(self, store, sample):
        """Recording the newest version makes the next identical parse not an update."""
        first = await parse_changelog(sample, store.load())
        assert first.updated is True

        store.migrate_version(first.newest.version)
        second = await parse_changelog(sample, store.load())

        assert store.load().last_used.version == "3.3.0"
        assert second.updated is False
