"""Embedded key-value storage adapter backed by SQLite.

Each collection is its own table keyed by the record's numeric id, so a
``save_all`` only touches the ids it is given.  Records that are not in the
call stay in place (upsert, ``full_replace = False``).  The ``meta`` table
holds ``site``, ``menu`` and the ``saved_at`` marker under fixed keys.

A ``save_all`` runs inside one transaction: readers see either the previous
snapshot or the new one.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from ..errors import PersistFailureError, StoreEmptyError
from .base import COLLECTION_NAMES, CachedCollections

logger = logging.getLogger(__name__)

DEFAULT_SQLITE_PATH = Path("data") / "db" / "content.sqlite3"

META_TABLE = "meta"
SITE_KEY = "site"
MENU_KEY = "menu"
SAVED_AT_KEY = "saved_at"


class SqliteAdapter:
    """Store each collection in its own SQLite table.

    Args:
        path: Database file.  Created, with its parent directory, on the
            first save; never by ``health()`` or ``get_all()``.
    """

    name = "sqlite"
    full_replace = False

    def __init__(self, path: str | Path = DEFAULT_SQLITE_PATH) -> None:
        self.path = Path(path)
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    @contextmanager
    def _connection(
        self, *, read_only: bool = False
    ) -> Iterator[sqlite3.Connection]:
        if read_only:
            conn = sqlite3.connect(
                f"{self.path.resolve().as_uri()}?mode=ro", uri=True
            )
        else:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.path)
        try:
            yield conn
        finally:
            conn.close()

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        statements = [
            f"CREATE TABLE IF NOT EXISTS {name} ("
            "id INTEGER PRIMARY KEY, value TEXT NOT NULL)"
            for name in COLLECTION_NAMES
        ]
        statements.append(
            f"CREATE TABLE IF NOT EXISTS {META_TABLE} ("
            "key TEXT PRIMARY KEY, value TEXT NOT NULL)"
        )
        for statement in statements:
            conn.execute(statement)

    # ------------------------------------------------------------------
    # StorageAdapter
    # ------------------------------------------------------------------

    def get_all(self) -> CachedCollections:
        with self._lock:
            if not self.path.exists():
                raise StoreEmptyError(f"SQLite store missing: {self.path}")
            try:
                with self._connection(read_only=True) as conn:
                    if self._meta_get(conn, SAVED_AT_KEY) is None:
                        raise StoreEmptyError(
                            f"SQLite store is empty: {self.path}"
                        )
                    collections = {
                        name: {
                            row_id: json.loads(value)
                            for row_id, value in conn.execute(
                                f"SELECT id, value FROM {name} ORDER BY id"
                            )
                        }
                        for name in COLLECTION_NAMES
                    }
                    site = self._meta_get(conn, SITE_KEY)
                    menu = self._meta_get(conn, MENU_KEY)
            except sqlite3.Error as exc:
                raise PersistFailureError(
                    f"Cannot read SQLite store {self.path}: {exc}"
                ) from exc

        return CachedCollections(**collections, site=site, menu=menu)

    def save_all(self, data: CachedCollections) -> None:
        payload = data.model_dump(mode="json")
        with self._lock:
            try:
                with self._connection() as conn:
                    with conn:
                        self._ensure_schema(conn)
                        for name in COLLECTION_NAMES:
                            conn.executemany(
                                f"INSERT INTO {name} (id, value) VALUES (?, ?) "
                                "ON CONFLICT(id) DO UPDATE SET value = excluded.value",
                                (
                                    (int(record_id), json.dumps(record))
                                    for record_id, record in payload[
                                        name
                                    ].items()
                                ),
                            )
                        # Singletons are kept when the call omits them.
                        if payload["site"] is not None:
                            self._meta_put(conn, SITE_KEY, payload["site"])
                        if payload["menu"] is not None:
                            self._meta_put(conn, MENU_KEY, payload["menu"])
                        self._meta_put(
                            conn,
                            SAVED_AT_KEY,
                            datetime.now(timezone.utc).isoformat(),
                        )
            except (OSError, sqlite3.Error) as exc:
                raise PersistFailureError(
                    f"Cannot write SQLite store {self.path}: {exc}"
                ) from exc
        logger.debug("Upserted snapshot into %s: %s", self.path, data.counts())

    def health(self) -> bool:
        try:
            if not self.path.exists():
                return False
            with self._connection(read_only=True) as conn:
                return self._meta_get(conn, SAVED_AT_KEY) is not None
        except Exception:
            return False

    # ------------------------------------------------------------------
    # Meta helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _meta_get(conn: sqlite3.Connection, key: str):
        try:
            row = conn.execute(
                f"SELECT value FROM {META_TABLE} WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.OperationalError:
            # Table not created yet.
            return None
        return json.loads(row[0]) if row else None

    @staticmethod
    def _meta_put(conn: sqlite3.Connection, key: str, value) -> None:
        conn.execute(
            f"INSERT INTO {META_TABLE} (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, json.dumps(value)),
        )
