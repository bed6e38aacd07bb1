"""
Form Session - the create/edit workflow in front of the record store.

States:
- IDLE: no record selected; a successful submission creates a record
- EDITING: a record is selected by id; a successful submission updates it

Transitions:
- IDLE/EDITING --start_edit(id)--> EDITING (replaces any previous target)
- EDITING --cancel_edit()--> IDLE
- EDITING --successful submission--> IDLE
- IDLE --successful submission--> IDLE

Submission is split in two steps. begin_submission() records a pending
submission carrying the feedback delay the presentation layer should show
before calling complete_submission(); cancel_submission() drops it. No
waiting happens here.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional

from app.exceptions import StorageError
from app.logging_config import get_logger, log_with_context
from app.models.student import StudentForm, StudentRecord
from app.services.record_store import RecordStore
from app.services.validation import validate_form

logger = get_logger("store")

SUBMISSION_DELAY_MS = int(os.getenv("SUBMISSION_DELAY_MS", "500"))

REGISTERED_MESSAGE = "Student registered successfully!"
UPDATED_MESSAGE = "Student information updated successfully!"
DELETED_MESSAGE = "Student record deleted successfully."


class FormMode(str, Enum):
    IDLE = "idle"
    EDITING = "editing"


@dataclass(frozen=True)
class PendingSubmission:
    values: Dict[str, str]
    target_id: Optional[str]
    delay_ms: int = SUBMISSION_DELAY_MS

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000.0


@dataclass
class SubmissionResult:
    success: bool
    message: Optional[str] = None
    record: Optional[StudentRecord] = None
    errors: Dict[str, str] = field(default_factory=dict)


class FormSession:

    def __init__(self, store: RecordStore, delay_ms: int = SUBMISSION_DELAY_MS):
        self.store = store
        self.delay_ms = delay_ms
        self.edit_id: Optional[str] = None
        self.pending: Optional[PendingSubmission] = None

    @property
    def mode(self) -> FormMode:
        return FormMode.EDITING if self.edit_id is not None else FormMode.IDLE

    def start_edit(self, record_id: str) -> Optional[StudentRecord]:
        """Select a record for editing. Unknown ids leave the state unchanged."""
        record = self.store.find_by_id(record_id)
        if record is None:
            return None
        self.edit_id = record_id
        return record

    def cancel_edit(self) -> None:
        self.edit_id = None
        self.pending = None

    def begin_submission(self, values: Mapping) -> PendingSubmission:
        """Record a submission to be completed after the feedback delay."""
        self.pending = PendingSubmission(values=dict(values), target_id=self.edit_id, delay_ms=self.delay_ms)
        return self.pending

    def cancel_submission(self) -> None:
        self.pending = None

    def complete_submission(self) -> SubmissionResult:
        """
        Validate the pending values and create or update a record.

        Invalid input returns the per-field errors and leaves the state
        unchanged. When the write to storage fails the record is kept in
        memory, the session returns to IDLE and the result carries the
        storage error message.
        """
        pending = self.pending
        if pending is None:
            return SubmissionResult(success=False, message="Nothing to submit.")
        self.pending = None

        target_id = pending.target_id
        if target_id is not None and self.store.find_by_id(target_id) is None:
            # The record vanished while selected; fall back to creating
            self.edit_id = None
            target_id = None

        outcome = validate_form(pending.values, self.store, exclude_id=target_id)
        if not outcome.valid:
            return SubmissionResult(success=False, errors=outcome.errors)

        form = StudentForm(**outcome.cleaned)
        try:
            if target_id is None:
                record = self.store.add(form)
                message = REGISTERED_MESSAGE
            else:
                record = self.store.update(target_id, form)
                message = UPDATED_MESSAGE
        except StorageError as e:
            self.edit_id = None
            return SubmissionResult(success=False, message=e.message, record=e.record)

        self.edit_id = None
        return SubmissionResult(success=True, message=message, record=record)

    def submit(self, values: Mapping) -> SubmissionResult:
        self.begin_submission(values)
        return self.complete_submission()

    def delete(self, record_id: str) -> SubmissionResult:
        """
        Delete a record. Confirmation is the caller's responsibility.

        Deleting the record being edited also cancels the edit.
        """
        if self.edit_id == record_id:
            self.cancel_edit()
        try:
            removed = self.store.remove(record_id)
        except StorageError as e:
            return SubmissionResult(success=False, message=e.message)

        if removed:
            log_with_context(logger, "DEBUG", "Deleted via form session",
                             context={"record_id": record_id})
        return SubmissionResult(success=True, message=DELETED_MESSAGE)
