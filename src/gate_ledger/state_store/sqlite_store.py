"""
SQLite-based record store implementation.

Tables:
- kv_store: one row per storage key, value is a JSON document

The ledger is stored as a full snapshot under a single key and overwritten on
every mutation. Reads never raise: a missing or corrupt snapshot loads as an
empty ledger.
"""

import json
import logging
import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from ..schemas.access_record import AccessRecord, RecordSchemaError

logger = logging.getLogger(__name__)

DEFAULT_LEDGER_KEY = "uag_records"


class RecordStore:
    """
    SQLite-backed durable key-value store for the ledger snapshot.

    Passive backend: written on every ledger change, read once at startup.
    Single-writer; no cross-process sharing.
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Path | str, ledger_key: str = DEFAULT_LEDGER_KEY):
        """
        Initialize record store.

        Args:
            db_path: Path to SQLite database file
            ledger_key: Key the ledger snapshot is stored under
        """
        self.db_path = Path(db_path)
        self.ledger_key = ledger_key
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._init_db()
        except sqlite3.DatabaseError as e:
            self._quarantine(e)
            self._init_db()

    def _quarantine(self, error: Exception) -> Path:
        """Move an unreadable database file aside so a fresh one can be created."""
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        backup = self.db_path.with_name(f"{self.db_path.name}.corrupt-{stamp}")
        self.db_path.replace(backup)
        logger.error(
            "Database %s is unreadable (%s); moved to %s and starting empty",
            self.db_path,
            error,
            backup,
        )
        return backup

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with row factory."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """
            )

            conn.execute(
                "INSERT OR REPLACE INTO schema_version (version) VALUES (?)", (self.SCHEMA_VERSION,)
            )

    def load(self) -> list[AccessRecord]:
        """Read the persisted ledger snapshot.

        Returns an empty list when nothing is stored or the stored value is
        malformed. Failures are logged, never raised.
        """
        try:
            with self._transaction() as conn:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?", (self.ledger_key,)
                ).fetchone()
        except sqlite3.Error as e:
            logger.error("Failed to read ledger snapshot from %s: %s", self.db_path, e)
            return []

        if row is None:
            return []

        try:
            data = json.loads(row["value"])
            if not isinstance(data, list):
                raise RecordSchemaError(f"Snapshot must be a list, got {type(data).__name__}")
            records = [AccessRecord.from_dict(item) for item in data]
        except (json.JSONDecodeError, RecordSchemaError) as e:
            logger.warning(
                "Stored ledger snapshot under %r is corrupt, starting empty: %s",
                self.ledger_key,
                e,
            )
            return []

        logger.debug("Loaded %d record(s) from %s", len(records), self.db_path)
        return records

    def save(self, records: Sequence[AccessRecord]) -> bool:
        """Overwrite the persisted snapshot with the given records.

        Best-effort: a failed write is logged and reported through the return
        value, never raised.

        Returns:
            True if the snapshot was written
        """
        now = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        value = json.dumps([record.to_dict() for record in records], ensure_ascii=False)

        try:
            with self._transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO kv_store (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                        updated_at = excluded.updated_at
                """,
                    (self.ledger_key, value, now),
                )
        except sqlite3.Error as e:
            logger.error(
                "Failed to persist ledger snapshot (%d record(s)) to %s: %s",
                len(records),
                self.db_path,
                e,
            )
            return False

        return True

    def get_raw(self) -> str | None:
        """Raw stored value, for diagnostics."""
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (self.ledger_key,)
            ).fetchone()
            return row["value"] if row else None

    def put_raw(self, value: str) -> None:
        """Store a raw value under the ledger key, bypassing serialization."""
        now = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        with self._transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)",
                (self.ledger_key, value, now),
            )
