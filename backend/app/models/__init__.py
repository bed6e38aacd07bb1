from app.models.kv_entry import KeyValueEntry
from app.models.student import StudentForm, StudentPatch, StudentRecord

__all__ = ["KeyValueEntry", "StudentForm", "StudentPatch", "StudentRecord"]
