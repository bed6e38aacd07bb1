"""
Student API routes - the presentation layer over the record store.

Endpoints:
- Listing and fetching records
- Creating, updating and deleting records (validated first)
- Validating a single field, as a form does when a field loses focus
- Batch import of many students in one request

Field-level problems come back as 422 responses whose detail maps JSON field
names to messages. Storage write failures come back as 503; the change they
belong to is still visible in later reads.
"""

import time
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from app.exceptions import StorageError
from app.logging_config import get_logger, log_with_context
from app.models.student import StudentForm, StudentPatch, StudentRecord
from app.services.form_session import DELETED_MESSAGE, REGISTERED_MESSAGE, UPDATED_MESSAGE
from app.services.record_store import RecordStore
from app.services.validation import FieldKind, validate_field, validate_form

router = APIRouter()
logger = get_logger("http")


def get_store(request: Request) -> RecordStore:
    """FastAPI dependency returning the store owned by the application."""
    return request.app.state.store


# ── Pydantic schemas ─────────────────────────────────────────

class FieldCheckRequest(BaseModel):
    """Schema for validating one field."""
    field: FieldKind = Field(..., description="studentName, studentId, emailId or contactNumber")
    value: Optional[str] = Field(None, description="Value as typed")
    exclude_id: Optional[str] = Field(None, description="Id of the record being edited")


class FieldCheckResponse(BaseModel):
    field: FieldKind
    valid: bool
    message: Optional[str] = None


class ImportRequest(BaseModel):
    """Schema for batch import request body."""
    students: List[StudentPatch]


class ImportSummary(BaseModel):
    """Schema for import response with processing stats."""
    total_received: int
    imported: int
    rejected: int
    errors: int
    details: list


def serialize_record(record: StudentRecord) -> dict:
    """Serialize a StudentRecord for an API response."""
    return record.to_json_dict()


def _storage_failure(e: StorageError):
    return HTTPException(status_code=503, detail=e.message)


@router.get("/api/students")
def list_students(store: RecordStore = Depends(get_store)):
    """List all records in insertion order."""
    records = store.all()
    return {"data": [serialize_record(r) for r in records], "total": len(records)}


@router.get("/api/students/{record_id}")
def get_student(record_id: str, store: RecordStore = Depends(get_store)):
    record = store.find_by_id(record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Student not found")
    return serialize_record(record)


@router.post("/api/students", status_code=201)
def create_student(payload: StudentPatch, store: RecordStore = Depends(get_store)):
    """Validate every field, then register the student."""
    outcome = validate_form(payload.model_dump(), store)
    if not outcome.valid:
        raise HTTPException(status_code=422, detail={"errors": outcome.errors})

    try:
        record = store.add(StudentForm(**outcome.cleaned))
    except StorageError as e:
        raise _storage_failure(e)

    return {**serialize_record(record), "message": REGISTERED_MESSAGE}


@router.put("/api/students/{record_id}")
def update_student(record_id: str, payload: StudentPatch, store: RecordStore = Depends(get_store)):
    """Validate every field against the other records, then update."""
    if not store.find_by_id(record_id):
        raise HTTPException(status_code=404, detail="Student not found")

    outcome = validate_form(payload.model_dump(), store, exclude_id=record_id)
    if not outcome.valid:
        raise HTTPException(status_code=422, detail={"errors": outcome.errors})

    try:
        record = store.update(record_id, StudentForm(**outcome.cleaned))
    except StorageError as e:
        raise _storage_failure(e)

    return {**serialize_record(record), "message": UPDATED_MESSAGE}


@router.delete("/api/students/{record_id}")
def delete_student(record_id: str, store: RecordStore = Depends(get_store)):
    """
    Delete a record. Confirmation happens client-side before this call.

    Deleting an unknown id succeeds with deleted=false.
    """
    try:
        removed = store.remove(record_id)
    except StorageError as e:
        raise _storage_failure(e)

    return {"deleted": removed, "message": DELETED_MESSAGE}


@router.post("/api/students/validate", response_model=FieldCheckResponse)
def check_field(request: FieldCheckRequest, store: RecordStore = Depends(get_store)):
    result = validate_field(request.field, request.value, store, exclude_id=request.exclude_id)
    return FieldCheckResponse(field=result.field, valid=result.valid, message=result.message)


@router.post("/api/students/import", response_model=ImportSummary)
def import_students(request: ImportRequest, store: RecordStore = Depends(get_store)):
    """
    Register many students in one request.

    Each entry is validated against the store as it stands, including the
    entries of this batch already imported, so duplicates within the batch
    are rejected too. Entries are processed in order.
    """
    start_time = time.time()

    total = len(request.students)
    imported = 0
    rejected = 0
    errors = 0
    details = []

    log_with_context(logger, "INFO", "Starting import of {} students".format(total))

    for position, entry in enumerate(request.students):
        outcome = validate_form(entry.model_dump(), store)
        if not outcome.valid:
            rejected += 1
            details.append({
                "index": position,
                "status": "REJECTED",
                "errors": outcome.errors
            })
            continue

        try:
            record = store.add(StudentForm(**outcome.cleaned))
        except StorageError as e:
            errors += 1
            details.append({
                "index": position,
                "status": "ERROR",
                "reason": e.message,
                "id": e.record.id if e.record else None
            })
            continue

        imported += 1
        details.append({
            "index": position,
            "status": "IMPORTED",
            "id": record.id
        })

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Import complete: {} imported, {} rejected, {} errors".format(imported, rejected, errors),
        extra_data={"duration_ms": round(duration_ms, 2), "total_students": total})

    return ImportSummary(
        total_received=total,
        imported=imported,
        rejected=rejected,
        errors=errors,
        details=details
    )
