"""
Student record models.

StudentRecord is the persisted shape; it serializes with the camelCase keys
used in the stored JSON array (studentName, studentId, emailId,
contactNumber, createdAt, updatedAt). StudentForm and StudentPatch are the
field sets handed to the store for creation and update.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StudentForm(_CamelModel):
    """All four student attributes, as submitted from the form."""
    student_name: str = Field(..., description="Letters and spaces, 2-50 characters")
    student_id: str = Field(..., description="Digits only, unique")
    email_id: str = Field(..., description="Email address, unique case-insensitively")
    contact_number: str = Field(..., description="At least 10 digits, unique")


class StudentPatch(_CamelModel):
    """Any subset of the student attributes, merged into an existing record."""
    student_name: Optional[str] = None
    student_id: Optional[str] = None
    email_id: Optional[str] = None
    contact_number: Optional[str] = None


class StudentRecord(_CamelModel):
    """
    A stored student.

    `id` and `created_at` are assigned by the store and never change;
    `updated_at` stays None until the first successful edit.
    """
    id: str
    student_name: str
    student_id: str
    email_id: str
    contact_number: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _legacy_numeric_id(cls, value):
        # Older clients used the creation time in milliseconds as id
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    def to_json_dict(self) -> dict:
        """Serialize with camelCase keys and ISO 8601 timestamps."""
        return self.model_dump(mode="json", by_alias=True)

    def __repr__(self):
        return f"<StudentRecord(id={self.id}, name='{self.student_name}', student_id='{self.student_id}')>"
