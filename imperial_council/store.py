"""Named snapshot blobs persisted in SQLite."""
from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

_DB_SCHEMA = """
CREATE TABLE IF NOT EXISTS snapshots (
    name TEXT PRIMARY KEY,
    saved_at TEXT NOT NULL,
    payload TEXT NOT NULL
);
"""


class SnapshotStore:
    """Read/write named JSON blobs; the engine never sees the file layout."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        with closing(sqlite3.connect(self._db_path)) as conn:
            conn.executescript(_DB_SCHEMA)
            conn.commit()

    def write(self, name: str, blob: Dict[str, Any], *, now: Optional[datetime] = None) -> None:
        timestamp = (now or datetime.now(timezone.utc)).isoformat()
        with closing(sqlite3.connect(self._db_path)) as conn:
            conn.execute(
                "REPLACE INTO snapshots (name, saved_at, payload) VALUES (?, ?, ?)",
                (name, timestamp, json.dumps(blob)),
            )
            conn.commit()
        logger.debug("Wrote snapshot %s", name)

    def read(self, name: str) -> Dict[str, Any]:
        """Return the blob stored under ``name``; ``KeyError`` when absent."""

        with closing(sqlite3.connect(self._db_path)) as conn:
            row = conn.execute(
                "SELECT payload FROM snapshots WHERE name = ?", (name,)
            ).fetchone()
        if row is None:
            raise KeyError(name)
        return json.loads(row[0])

    def names(self) -> List[str]:
        with closing(sqlite3.connect(self._db_path)) as conn:
            rows = conn.execute("SELECT name FROM snapshots ORDER BY name").fetchall()
        return [row[0] for row in rows]

    def delete(self, name: str) -> bool:
        with closing(sqlite3.connect(self._db_path)) as conn:
            cursor = conn.execute("DELETE FROM snapshots WHERE name = ?", (name,))
            conn.commit()
            return cursor.rowcount > 0


__all__ = ["SnapshotStore"]
