"""Tests for record store."""

import json
import sqlite3

import pytest
from conftest import make_record

from gate_ledger.state_store import DEFAULT_LEDGER_KEY, RecordStore


class TestRecordStore:
    """Tests for SQLite record store."""

    @pytest.fixture
    def store(self, temp_db):
        """Create a fresh record store."""
        return RecordStore(temp_db)

    def test_init_creates_db(self, temp_db):
        """Initializing creates database file."""
        RecordStore(temp_db)
        assert temp_db.exists()

    def test_init_creates_tables(self, store):
        """Key-value table is created."""
        conn = store._get_connection()
        try:
            tables = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
            table_names = [t[0] for t in tables]

            assert "kv_store" in table_names
            assert "schema_version" in table_names
        finally:
            conn.close()

    def test_default_key(self, store):
        """Default key is uag_records."""
        assert store.ledger_key == DEFAULT_LEDGER_KEY == "uag_records"

    def test_unreadable_file_is_moved_aside(self, temp_db, caplog):
        """A file that is not a database is kept as a backup and a fresh store starts empty."""
        garbage = b"this is not a sqlite database at all" * 200
        temp_db.write_bytes(garbage)

        store = RecordStore(temp_db)

        assert store.load() == []
        backups = list(temp_db.parent.glob(f"{temp_db.name}.corrupt-*"))
        assert len(backups) == 1
        assert backups[0].read_bytes() == garbage
        assert "unreadable" in caplog.text

        assert store.save([make_record(0)]) is True
        assert [r.id for r in RecordStore(temp_db).load()] == ["rec-0"]

class TestLoad:
    """Loading never raises; bad state loads as empty."""

    @pytest.fixture
    def store(self, temp_db):
        return RecordStore(temp_db)

    def test_load_missing_returns_empty(self, store):
        """Nothing stored loads as empty."""
        assert store.load() == []

    def test_load_malformed_json_returns_empty(self, store):
        """Malformed JSON loads as empty."""
        store.put_raw("{not json")
        assert store.load() == []

    def test_load_non_list_returns_empty(self, store):
        """Non-list value loads as empty."""
        store.put_raw(json.dumps({"id": "x"}))
        assert store.load() == []

    def test_load_schema_mismatch_returns_empty(self, store, sample_record_dict):
        """Schema mismatch loads as empty."""
        del sample_record_dict["fleetNumber"]
        store.put_raw(json.dumps([sample_record_dict]))
        assert store.load() == []

    def test_load_bad_type_value_returns_empty(self, store, sample_record_dict):
        """Unknown record type loads as empty."""
        sample_record_dict["type"] = "SIDEWAYS"
        store.put_raw(json.dumps([sample_record_dict]))
        assert store.load() == []

    def test_corrupt_state_is_logged(self, store, caplog):
        """Corrupt state is logged."""
        store.put_raw("[1, 2")
        with caplog.at_level("WARNING"):
            store.load()
        assert "corrupt" in caplog.text

    def test_load_persisted_layout(self, store, sample_record_dict):
        """Records written in the persisted layout are rehydrated."""
        store.put_raw(json.dumps([sample_record_dict]))

        records = store.load()

        assert len(records) == 1
        assert records[0].id == sample_record_dict["id"]
        assert records[0].collaborator_name == "João Souza"
        assert records[0].material_exit is True
        assert records[0].photo is None


class TestSave:
    """Saving overwrites the full snapshot."""

    @pytest.fixture
    def store(self, temp_db):
        return RecordStore(temp_db)

    def test_save_then_load_round_trip(self, store):
        """Saved records load back equal."""
        records = [make_record(0, photo=True), make_record(1), make_record(2, photo=True)]

        assert store.save(records) is True

        assert store.load() == records

    def test_save_overwrites(self, store):
        """Save replaces the previous snapshot."""
        store.save([make_record(0), make_record(1)])
        store.save([make_record(2)])

        assert [r.id for r in store.load()] == ["rec-2"]

    def test_save_empty(self, store):
        """Saving nothing stores an empty list."""
        store.save([make_record(0)])
        store.save([])

        assert store.load() == []
        assert store.get_raw() == "[]"

    def test_survives_reopen(self, temp_db):
        """Data survives a new store on the same file."""
        RecordStore(temp_db).save([make_record(0), make_record(1)])

        reopened = RecordStore(temp_db)

        assert [r.id for r in reopened.load()] == ["rec-0", "rec-1"]

    def test_keys_are_isolated(self, temp_db):
        """Different keys do not share data."""
        RecordStore(temp_db, ledger_key="gate-a").save([make_record(0)])

        assert RecordStore(temp_db, ledger_key="gate-b").load() == []

    def test_save_failure_returns_false(self, store, monkeypatch):
        """A failed write is reported, not raised."""

        def broken_connection():
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(store, "_get_connection", broken_connection)

        assert store.save([make_record(0)]) is False

    def test_read_failure_returns_empty(self, store, monkeypatch):
        """Read errors load as empty."""
        def broken_connection():
            raise sqlite3.OperationalError("database is locked")

        monkeypatch.setattr(store, "_get_connection", broken_connection)

        assert store.load() == []
