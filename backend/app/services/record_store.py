"""
Record Store - durable collection of student records.

The whole collection lives under ONE storage key as a JSON array. Every
mutation reads the entire array, changes it in memory and writes the
entire array back, so a reader never observes a half-applied change.
Concurrent writers are last-writer-wins; nothing here detects races.

Storage is pluggable through a small key-value backend:
- SqlAlchemyBackend: one row per key in the kv_entries table
- InMemoryBackend: a plain dict, for tests and scratch use

Unreadable data never reaches the caller: load_all() logs it and
answers with an empty collection. A backend that cannot be reached at
all raises StorageUnavailable.
"""

import json
import os
from typing import Dict, List, Optional, Protocol

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from app.errors import StorageCorrupt, StorageUnavailable
from app.logging_config import get_logger, log_with_context
from app.models.key_value import KeyValueEntry
from app.models.student import StudentRecord

logger = get_logger("store")
db_logger = get_logger("db")

STORAGE_KEY = os.getenv("EDUREGISTER_STORAGE_KEY", "eduregister_students")


class KeyValueBackend(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class InMemoryBackend:
    """Dict-backed storage. Values are kept as serialized text."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class SqlAlchemyBackend:
    """
    Key-value storage on the kv_entries table.

    Each call opens its own session and commits (or rolls back) before
    returning, so a set() is all-or-nothing.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        try:
            with self.session_factory() as db:
                entry = db.get(KeyValueEntry, key)
                return entry.value if entry else None
        except SQLAlchemyError as e:
            log_with_context(db_logger, "ERROR", "Failed to read storage key",
                             context={"key": key}, extra_data={"error": str(e)})
            raise StorageUnavailable(str(e)) from e

    def set(self, key: str, value: str) -> None:
        try:
            with self.session_factory() as db:
                entry = db.get(KeyValueEntry, key)
                if entry is None:
                    db.add(KeyValueEntry(key=key, value=value))
                else:
                    entry.value = value
                db.commit()
        except SQLAlchemyError as e:
            log_with_context(db_logger, "ERROR", "Failed to write storage key",
                             context={"key": key}, extra_data={"error": str(e), "size": len(value)})
            raise StorageUnavailable(str(e)) from e

    def remove(self, key: str) -> None:
        try:
            with self.session_factory() as db:
                entry = db.get(KeyValueEntry, key)
                if entry is not None:
                    db.delete(entry)
                    db.commit()
        except SQLAlchemyError as e:
            log_with_context(db_logger, "ERROR", "Failed to remove storage key",
                             context={"key": key}, extra_data={"error": str(e)})
            raise StorageUnavailable(str(e)) from e


def _parse_records(raw: str) -> List[StudentRecord]:
    """Decode the stored JSON array, raising StorageCorrupt on any defect."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise StorageCorrupt(f"invalid JSON ({e})") from e

    # The browser version stored `null` for an empty collection
    if data is None:
        return []
    if not isinstance(data, list):
        raise StorageCorrupt(f"expected a JSON array, got {type(data).__name__}")

    try:
        return [StudentRecord.model_validate(item) for item in data]
    except ValidationError as e:
        raise StorageCorrupt(f"invalid record ({e.error_count()} errors)") from e


# ── List-level helpers ───────────────────────────────────────
#
# Lookups over an already loaded collection, so one action can load
# once and run every check against the same list.

def find_by_id(records: List[StudentRecord], student_id: str) -> Optional[StudentRecord]:
    return next((r for r in records if r.id == student_id), None)


def find_by_roll_no(records: List[StudentRecord], roll_no: str,
                    excluding_id: Optional[str] = None) -> Optional[StudentRecord]:
    wanted = roll_no.lower()
    return next((r for r in records if r.roll_no.lower() == wanted and r.id != excluding_id), None)


def find_by_email(records: List[StudentRecord], email: str,
                  excluding_id: Optional[str] = None) -> Optional[StudentRecord]:
    wanted = email.lower()
    return next((r for r in records if r.email.lower() == wanted and r.id != excluding_id), None)


def replace_record(records: List[StudentRecord], record: StudentRecord) -> bool:
    """Swap in the record with the same id, keeping its position. False if absent."""
    for index, existing in enumerate(records):
        if existing.id == record.id:
            records[index] = record
            return True
    return False


class RecordStore:
    """
    The student collection on top of a key-value backend.

    Uniqueness queries are linear scans over the loaded array; roll
    number and email compare case-insensitively. Each method below
    loads once; callers chaining several checks should load_all() and
    use the list-level helpers instead.
    """

    def __init__(self, backend: KeyValueBackend, key: str = STORAGE_KEY):
        self.backend = backend
        self.key = key

    # ── Whole-collection operations ──────────────────────────

    def load_all(self) -> List[StudentRecord]:
        raw = self.backend.get(self.key)
        if raw is None:
            return []
        try:
            return _parse_records(raw)
        except StorageCorrupt as e:
            log_with_context(logger, "WARNING", "Stored records unreadable, treating store as empty",
                             context={"key": self.key},
                             extra_data={"detail": e.detail, "size": len(raw)})
            return []

    def save_all(self, records: List[StudentRecord]) -> None:
        payload = json.dumps([record.to_storage() for record in records])
        self.backend.set(self.key, payload)
        log_with_context(logger, "DEBUG", "Saved student collection",
                         context={"key": self.key},
                         extra_data={"record_count": len(records)})

    def clear(self) -> None:
        self.backend.remove(self.key)
        log_with_context(logger, "INFO", "Cleared student collection", context={"key": self.key})

    def count(self) -> int:
        return len(self.load_all())

    # ── Single-record mutations ──────────────────────────────

    def insert(self, record: StudentRecord) -> None:
        records = self.load_all()
        records.append(record)
        self.save_all(records)

    def update(self, record: StudentRecord) -> bool:
        """Replace the record with the same id in place. False if absent."""
        records = self.load_all()
        if not replace_record(records, record):
            return False
        self.save_all(records)
        return True

    def delete_by_id(self, student_id: str) -> bool:
        records = self.load_all()
        remaining = [r for r in records if r.id != student_id]
        if len(remaining) == len(records):
            return False
        self.save_all(remaining)
        return True

    # ── Queries ──────────────────────────────────────────────

    def find_by_id(self, student_id: str) -> Optional[StudentRecord]:
        return find_by_id(self.load_all(), student_id)

    def find_by_roll_no(self, roll_no: str, excluding_id: Optional[str] = None) -> Optional[StudentRecord]:
        return find_by_roll_no(self.load_all(), roll_no, excluding_id)

    def find_by_email(self, email: str, excluding_id: Optional[str] = None) -> Optional[StudentRecord]:
        return find_by_email(self.load_all(), email, excluding_id)
