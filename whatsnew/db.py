from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Optional

from .versions import DEFAULT_LAST_SEEN, DEFAULT_LAST_USED, SeenCursor, VersionStamp, ZERO, version_lt


SCHEMA = """
CREATE TABLE IF NOT EXISTS settings (
  namespace TEXT NOT NULL,
  key TEXT NOT NULL,
  value TEXT NOT NULL,
  PRIMARY KEY (namespace, key)
);
"""

LAST_USED = "last-version-used"
LAST_SEEN = "last-changelog-seen"
DEFAULT_NAMESPACE = "subnautica-support/common-changelog/draft"


class Database:
    def __init__(self, path: str) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        logging.info(f"Initializing database at {self.path}")

        with self._conn() as conn:
            conn.executescript(SCHEMA)

        logging.info("Database schema created/verified")

    @contextmanager
    def _conn(self):
        conn = sqlite3.connect(self.path)
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _read(conn: sqlite3.Connection, namespace: str, key: str) -> Any:
        row = conn.execute(
            "SELECT value FROM settings WHERE namespace=? AND key=?",
            (namespace, key),
        ).fetchone()
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError:
            logging.warning(f"Discarding undecodable value for {namespace}/{key}")
            return None

    @staticmethod
    def _write(conn: sqlite3.Connection, namespace: str, key: str, value: Any) -> None:
        conn.execute(
            """
            INSERT INTO settings(namespace, key, value)
            VALUES (?, ?, ?)
            ON CONFLICT(namespace, key) DO UPDATE SET value=excluded.value
            """,
            (namespace, key, json.dumps(value)),
        )

    def get(self, namespace: str, key: str) -> Any:
        with self._conn() as conn:
            return self._read(conn, namespace, key)

    def set(self, namespace: str, key: str, value: Any) -> None:
        with self._conn() as conn:
            self._write(conn, namespace, key, value)
        logging.debug(f"Stored {namespace}/{key} = {value!r}")

    def update(self, namespace: str, key: str, change: Callable[[Any], Any]) -> Any:
        """Read-modify-write ``key`` inside a single transaction."""
        with self._conn() as conn:
            conn.execute("BEGIN IMMEDIATE")
            value = change(self._read(conn, namespace, key))
            self._write(conn, namespace, key, value)
        logging.debug(f"Updated {namespace}/{key} = {value!r}")
        return value


class CursorStore:
    """The persisted seen-cursor of one changelog consumer."""

    def __init__(self, db: Database, namespace: str = DEFAULT_NAMESPACE) -> None:
        self.db = db
        self.namespace = namespace

    def _stamp(self, key: str, default: VersionStamp) -> VersionStamp:
        raw = self.db.get(self.namespace, key)
        stamp = VersionStamp.load(raw, default)
        if stamp is default:
            self.db.set(self.namespace, key, stamp.model_dump())
        return stamp

    def load(self) -> SeenCursor:
        return SeenCursor(
            last_used=self._stamp(LAST_USED, DEFAULT_LAST_USED),
            last_seen=self._stamp(LAST_SEEN, DEFAULT_LAST_SEEN),
        )

    def save(self, cursor: SeenCursor) -> None:
        self.db.set(self.namespace, LAST_USED, cursor.last_used.model_dump())
        self.db.set(self.namespace, LAST_SEEN, cursor.last_seen.model_dump())

    def acknowledge(self, version: Optional[str], date: Optional[int]) -> VersionStamp:
        """Record that the user has read the changelog up to ``version``."""
        stamp = VersionStamp(version=version or ZERO, date=date)
        self.db.set(self.namespace, LAST_SEEN, stamp.model_dump())
        logging.info(f"Changelog acknowledged up to {stamp.version}")
        return stamp

    def mark_used(self, version: Optional[str], date: Optional[int]) -> VersionStamp:
        stamp = VersionStamp(version=version or ZERO, date=date)
        self.db.set(self.namespace, LAST_USED, stamp.model_dump())
        return stamp

    def migrate_version(self, version: str) -> VersionStamp:
        """Raise the last used version to ``version``, keeping its stored date."""

        def change(raw: Any) -> dict:
            stored = VersionStamp.load(raw, DEFAULT_LAST_USED)
            if version_lt(stored.version, version):
                logging.info(f"Migrating last used version {stored.version} -> {version}")
                stored = VersionStamp(version=version, date=stored.date)
            return stored.model_dump()

        return VersionStamp.model_validate(self.db.update(self.namespace, LAST_USED, change))
