"""
Record Store - owns the ordered collection of student records.

The collection is held in memory and mirrored to a single key of a
persistence slot as a JSON array. The slot is read once by load() and
rewritten wholesale by save() after every mutation.

Failure handling:
- Read failures (missing key, unreadable slot, malformed JSON, invalid
  entries) are logged and the collection becomes empty. load() never raises.
- Write failures raise StorageError with a user-visible message. The
  in-memory mutation that preceded the write is kept, never rolled back.
- Updating or removing an unknown id is a silent no-op.

The store does not validate field values; callers run the validator
(app.services.validation) before add() and update().
"""

import json
import os
import time
import uuid
from datetime import datetime, timezone
from typing import Iterator, List, Optional, Union

from pydantic import ValidationError

from app.exceptions import StorageError
from app.logging_config import get_logger, log_with_context
from app.models.student import StudentForm, StudentPatch, StudentRecord
from app.services.validation import normalize_email
from app.storage.base import PersistenceSlot

logger = get_logger("store")

STORAGE_KEY = os.getenv("STUDENT_RECORDS_KEY", "studentRecords")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordStore:

    def __init__(self, slot: PersistenceSlot, key: str = STORAGE_KEY):
        self.slot = slot
        self.key = key
        self.records: List[StudentRecord] = []

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[StudentRecord]:
        return iter(list(self.records))

    def all(self) -> List[StudentRecord]:
        """Return the records in insertion order (a copy of the list)."""
        return list(self.records)

    # ── Persistence ───────────────────────────────────────────

    def load(self) -> List[StudentRecord]:
        """
        Replace the in-memory collection with the slot's contents.

        Returns the loaded records; an empty list when the key is absent or
        the stored value cannot be read or decoded.
        """
        self.records = self._read()
        return self.all()

    def _read(self) -> List[StudentRecord]:
        try:
            raw = self.slot.get(self.key)
        except StorageError as e:
            log_with_context(logger, "ERROR", "Error loading students from storage: {}".format(e),
                             context={"storage_key": self.key})
            return []

        if raw is None:
            log_with_context(logger, "DEBUG", "No stored records, starting empty",
                             context={"storage_key": self.key})
            return []

        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError("stored value is a {}, not a list".format(type(data).__name__))
            records = [StudentRecord.model_validate(item) for item in data]
        except (ValueError, TypeError, RecursionError, ValidationError) as e:
            # JSONDecodeError is a ValueError; deeply nested arrays raise RecursionError
            log_with_context(logger, "WARNING", "Discarding unreadable stored records: {}".format(e),
                             context={"storage_key": self.key},
                             extra_data={"bytes": len(raw)})
            return []

        log_with_context(logger, "INFO", "Loaded {} records".format(len(records)),
                         context={"storage_key": self.key})
        return records

    def save(self) -> None:
        """
        Write the whole collection to the slot.

        Raises:
            StorageError: the slot rejected the write; memory is unchanged
        """
        start_time = time.time()
        payload = json.dumps([r.to_json_dict() for r in self.records])
        try:
            self.slot.set(self.key, payload)
        except StorageError as e:
            log_with_context(logger, "ERROR", "Error saving students to storage: {}".format(e),
                             context={"storage_key": self.key},
                             extra_data={"record_count": len(self.records)})
            raise

        duration_ms = (time.time() - start_time) * 1000
        log_with_context(logger, "DEBUG", "Saved {} records".format(len(self.records)),
                         context={"storage_key": self.key},
                         extra_data={"duration_ms": round(duration_ms, 2)})

    # ── Mutations ─────────────────────────────────────────────

    def add(self, candidate: Union[StudentForm, dict]) -> StudentRecord:
        """
        Append a new record built from a validated field set.

        Raises:
            pydantic.ValidationError: candidate is missing a field
            StorageError: persisting failed; the record stays in memory and
                is available as the error's `record`
        """
        form = StudentForm.model_validate(candidate) if isinstance(candidate, dict) else candidate
        record = StudentRecord(
            id=str(uuid.uuid4()),
            created_at=_utcnow(),
            **form.model_dump(),
        )
        self.records.append(record)
        log_with_context(logger, "INFO", "Added student {}".format(record.student_name),
                         context={"record_id": record.id, "student_id": record.student_id})
        self._persist(record)
        return record

    def update(self, record_id: str, candidate: Union[StudentForm, StudentPatch, dict]) -> Optional[StudentRecord]:
        """
        Merge a field set into an existing record.

        Only fields present in the candidate are changed. `id` and
        `created_at` are kept; `updated_at` is set. Returns None without
        touching storage when no record has the id.

        Raises:
            StorageError: persisting failed; the update stays in memory
        """
        index = self._index_of(record_id)
        if index is None:
            log_with_context(logger, "DEBUG", "Update ignored, unknown record",
                             context={"record_id": record_id})
            return None

        if isinstance(candidate, dict):
            candidate = StudentPatch.model_validate(candidate)
        if isinstance(candidate, StudentPatch):
            changes = candidate.model_dump(exclude_none=True)
        else:
            changes = candidate.model_dump()

        current = self.records[index]
        updated = current.model_copy(update={**changes, "updated_at": _utcnow()})
        self.records[index] = updated
        log_with_context(logger, "INFO", "Updated student {}".format(updated.student_name),
                         context={"record_id": record_id},
                         extra_data={"fields": sorted(changes)})
        self._persist(updated)
        return updated

    def remove(self, record_id: str) -> bool:
        """
        Remove the record with the id. Unknown ids are ignored.

        Returns whether a record was removed.

        Raises:
            StorageError: persisting failed; the record is already gone from memory
        """
        remaining = [r for r in self.records if r.id != record_id]
        if len(remaining) == len(self.records):
            log_with_context(logger, "DEBUG", "Remove ignored, unknown record",
                             context={"record_id": record_id})
            return False

        self.records = remaining
        log_with_context(logger, "INFO", "Removed student record",
                         context={"record_id": record_id})
        self._persist(None)
        return True

    def _persist(self, record: Optional[StudentRecord]) -> None:
        try:
            self.save()
        except StorageError as e:
            e.record = record
            raise

    # ── Queries ───────────────────────────────────────────────

    def _index_of(self, record_id: str) -> Optional[int]:
        for index, record in enumerate(self.records):
            if record.id == record_id:
                return index
        return None

    def find_by_id(self, record_id: str) -> Optional[StudentRecord]:
        index = self._index_of(record_id)
        return self.records[index] if index is not None else None

    def exists_by_student_id(self, value: str, exclude_id: Optional[str] = None) -> bool:
        return any(r.student_id == value and r.id != exclude_id for r in self.records)

    def exists_by_email(self, value: str, exclude_id: Optional[str] = None) -> bool:
        """Case-insensitive match on the email address."""
        wanted = normalize_email(value)
        return any(normalize_email(r.email_id) == wanted and r.id != exclude_id for r in self.records)

    def exists_by_contact(self, value: str, exclude_id: Optional[str] = None) -> bool:
        return any(r.contact_number == value and r.id != exclude_id for r in self.records)
