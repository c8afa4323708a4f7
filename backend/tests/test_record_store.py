"""
Unit Tests for the Record Store
Tests for: load/save, single-record mutations, uniqueness queries,
corrupt data recovery, the SQLAlchemy backend
"""
import json
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import create_tables
from app.errors import StorageUnavailable
from app.services.record_store import (
    InMemoryBackend,
    RecordStore,
    SqlAlchemyBackend,
    find_by_email,
    find_by_roll_no,
    replace_record,
    STORAGE_KEY,
)
from tests.factories import make_record


@pytest.fixture
def sql_session_factory():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False},
                           poolclass=StaticPool)
    create_tables(bind=engine)
    yield sessionmaker(bind=engine)
    engine.dispose()


class TestLoadSave:

    def test_missing_key_loads_empty(self, store):
        assert store.load_all() == []

    def test_round_trip_preserves_order_and_content(self, store):
        records = [make_record(3), make_record(1), make_record(2, updated_on="2026-10-18T10:00:00.000Z")]
        store.save_all(records)
        assert store.load_all() == records

    def test_load_is_idempotent(self, store):
        store.save_all([make_record(1), make_record(2)])
        assert store.load_all() == store.load_all()

    def test_stored_json_uses_camel_case(self, store, backend):
        store.save_all([make_record(1)])
        stored = json.loads(backend.get(STORAGE_KEY))
        assert stored[0]["rollNo"] == "BSC001"
        assert stored[0]["registeredOn"] == "2026-10-17T09:30:00.000Z"
        assert stored[0]["updatedOn"] is None

    def test_save_overwrites(self, store):
        store.save_all([make_record(1), make_record(2)])
        store.save_all([make_record(3)])
        assert [r.id for r in store.load_all()] == ["S003"]

    def test_custom_key(self, backend):
        store = RecordStore(backend, key="other")
        store.save_all([make_record(1)])
        assert backend.get("other") is not None
        assert backend.get(STORAGE_KEY) is None


class TestCorruptData:

    @pytest.mark.parametrize("raw", [
        "{not json",
        '{"id": "S001"}',
        '[{"id": "S001"}]',
        "42",
    ])
    def test_unreadable_data_loads_empty(self, backend, store, raw):
        backend.set(STORAGE_KEY, raw)
        assert store.load_all() == []

    def test_null_loads_empty(self, backend, store):
        backend.set(STORAGE_KEY, "null")
        assert store.load_all() == []

    def test_browser_format_loads(self, backend, store):
        backend.set(STORAGE_KEY, json.dumps([{
            "id": "S17294", "firstName": "Ravi", "lastName": "Kumar",
            "email": "ravi@x.com", "phone": "9876543210", "dob": "2004-01-01",
            "gender": "Male", "course": "BCA", "year": "1st Year", "rollNo": "BCA001",
            "admissionDate": "2026-07-01", "address": "", "guardianName": "",
            "guardianPhone": "", "registeredOn": "2026-07-01T05:00:00.000Z", "updatedOn": None,
        }]))
        [record] = store.load_all()
        assert record.full_name == "Ravi Kumar"
        assert record.updated_on is None


class TestMutations:

    def test_insert_appends(self, store):
        store.insert(make_record(1))
        store.insert(make_record(2))
        assert [r.id for r in store.load_all()] == ["S001", "S002"]

    def test_update_replaces_in_place(self, store):
        store.save_all([make_record(1), make_record(2), make_record(3)])
        assert store.update(make_record(2, last_name="Changed"))
        records = store.load_all()
        assert [r.id for r in records] == ["S001", "S002", "S003"]
        assert records[1].last_name == "Changed"

    def test_update_unknown_id(self, store):
        store.save_all([make_record(1)])
        assert not store.update(make_record(9))
        assert len(store.load_all()) == 1

    def test_delete_by_id(self, store):
        store.save_all([make_record(1), make_record(2)])
        assert store.delete_by_id("S001")
        assert [r.id for r in store.load_all()] == ["S002"]

    def test_delete_unknown_id_writes_nothing(self, store):
        store.backend = MagicMock(wraps=InMemoryBackend())
        store.save_all([make_record(1)])
        store.backend.set.reset_mock()

        assert not store.delete_by_id("missing")
        store.backend.set.assert_not_called()

    def test_clear_removes_key(self, store, backend):
        store.save_all([make_record(1)])
        store.clear()
        assert backend.get(STORAGE_KEY) is None
        assert store.count() == 0


class TestQueries:

    @pytest.fixture(autouse=True)
    def seeded(self, store):
        store.save_all([make_record(1, roll_no="CS101", email="A@X.com"), make_record(2)])

    def test_find_by_id(self, store):
        assert store.find_by_id("S002").roll_no == "BSC002"
        assert store.find_by_id("nope") is None

    def test_find_by_roll_no_ignores_case(self, store):
        assert store.find_by_roll_no("cs101").id == "S001"

    def test_find_by_roll_no_excluding(self, store):
        assert store.find_by_roll_no("CS101", excluding_id="S001") is None

    def test_find_by_email_ignores_case(self, store):
        assert store.find_by_email("a@x.COM").id == "S001"
        assert store.find_by_email("a@x.com", excluding_id="S001") is None

    def test_count(self, store):
        assert store.count() == 2


class TestListHelpers:

    def test_lookups_run_on_the_given_list(self):
        records = [make_record(1, roll_no="CS101", email="A@X.com"), make_record(2)]

        assert find_by_roll_no(records, "cs101").id == "S001"
        assert find_by_roll_no(records, "CS101", excluding_id="S001") is None
        assert find_by_email(records, "a@x.COM").id == "S001"

    def test_replace_record_keeps_position(self):
        records = [make_record(1), make_record(2), make_record(3)]

        assert replace_record(records, make_record(2, last_name="Changed"))
        assert [r.id for r in records] == ["S001", "S002", "S003"]
        assert records[1].last_name == "Changed"

    def test_replace_record_missing_id(self):
        records = [make_record(1)]
        assert not replace_record(records, make_record(9))
        assert len(records) == 1


class TestSqlAlchemyBackend:

    def test_round_trip(self, sql_session_factory):
        store = RecordStore(SqlAlchemyBackend(sql_session_factory))
        records = [make_record(1), make_record(2)]
        store.save_all(records)
        assert store.load_all() == records

    def test_overwrite_keeps_single_row(self, sql_session_factory):
        backend = SqlAlchemyBackend(sql_session_factory)
        backend.set("k", "one")
        backend.set("k", "two")
        assert backend.get("k") == "two"

    def test_remove(self, sql_session_factory):
        backend = SqlAlchemyBackend(sql_session_factory)
        backend.set("k", "one")
        backend.remove("k")
        backend.remove("k")
        assert backend.get("k") is None

    def test_database_errors_become_storage_unavailable(self):
        session = MagicMock()
        session.__enter__.return_value.get.side_effect = OperationalError("SELECT", {}, Exception("disk I/O error"))
        backend = SqlAlchemyBackend(lambda: session)

        with pytest.raises(StorageUnavailable):
            backend.get("k")
        with pytest.raises(StorageUnavailable):
            backend.set("k", "[]")
