"""
Field Validator - pure validation of student form fields.

Each field kind maps to a ValidationRule. Rules are applied in priority
order and the first failing step wins:
1. Required: the value must be non-empty after trimming surrounding whitespace
2. Format: the trimmed value must fully match the field's pattern
3. Uniqueness: no other record may hold the value (skipped without a store)

Validation never raises for bad input and never mutates the store. Results
are returned as data so the caller can place each message next to the
offending field.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Mapping, Optional, TYPE_CHECKING

from app.logging_config import get_logger, log_with_context

if TYPE_CHECKING:
    from app.services.record_store import RecordStore

logger = get_logger("validation")


class FieldKind(str, Enum):
    """The closed set of validated form fields (values are the JSON keys)."""
    STUDENT_NAME = "studentName"
    STUDENT_ID = "studentId"
    EMAIL_ID = "emailId"
    CONTACT_NUMBER = "contactNumber"

    @property
    def attr(self) -> str:
        """Python attribute name on StudentRecord (e.g. student_name)."""
        return re.sub(r"(?<!^)(?=[A-Z])", "_", self.value).lower()

    @property
    def display_name(self) -> str:
        return DISPLAY_NAMES[self]

    @classmethod
    def parse(cls, name) -> "FieldKind":
        """
        Resolve a FieldKind from itself, its JSON key or its attribute name.

        Raises:
            ValueError: name is not one of the four fields
        """
        if isinstance(name, cls):
            return name
        for kind in cls:
            if name == kind.value or name == kind.attr:
                return kind
        raise ValueError("Unknown field: {}".format(name))


DISPLAY_NAMES = {
    FieldKind.STUDENT_NAME: "Student Name",
    FieldKind.STUDENT_ID: "Student ID",
    FieldKind.EMAIL_ID: "Email Address",
    FieldKind.CONTACT_NUMBER: "Contact Number",
}

UniquenessCheck = Callable[["RecordStore", str, Optional[str]], bool]


@dataclass(frozen=True)
class ValidationRule:
    """How one field kind is validated."""
    pattern: "re.Pattern"
    format_message: str
    required: bool = True
    is_taken: Optional[UniquenessCheck] = None
    duplicate_message: Optional[str] = None


@dataclass(frozen=True)
class ValidationResult:
    field: FieldKind
    valid: bool
    message: Optional[str] = None
    value: str = ""

    @classmethod
    def ok(cls, kind: FieldKind, value: str) -> "ValidationResult":
        return cls(field=kind, valid=True, value=value)

    @classmethod
    def invalid(cls, kind: FieldKind, message: str, value: str = "") -> "ValidationResult":
        return cls(field=kind, valid=False, message=message, value=value)


@dataclass
class FormValidation:
    """Outcome of validating every field of a form."""
    results: Dict[FieldKind, ValidationResult] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return all(r.valid for r in self.results.values())

    @property
    def errors(self) -> Dict[str, str]:
        """Messages of the failing fields, keyed by JSON field name."""
        return {kind.value: r.message for kind, r in self.results.items() if not r.valid}

    @property
    def cleaned(self) -> Dict[str, str]:
        """Trimmed values keyed by attribute name, ready for StudentForm."""
        return {kind.attr: r.value for kind, r in self.results.items()}


# Ordered as the fields appear on the form
FIELD_RULES: Dict[FieldKind, ValidationRule] = {
    FieldKind.STUDENT_NAME: ValidationRule(
        pattern=re.compile(r"[A-Za-z ]{2,50}"),
        format_message="Name must contain only letters and spaces (2-50 characters).",
    ),
    FieldKind.STUDENT_ID: ValidationRule(
        pattern=re.compile(r"[0-9]+"),
        format_message="Student ID must contain only numbers.",
        is_taken=lambda store, value, exclude_id: store.exists_by_student_id(value, exclude_id),
        duplicate_message="This Student ID already exists.",
    ),
    FieldKind.EMAIL_ID: ValidationRule(
        pattern=re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+"),
        format_message="Please enter a valid email address.",
        is_taken=lambda store, value, exclude_id: store.exists_by_email(value, exclude_id),
        duplicate_message="This email address is already registered.",
    ),
    # Minimum length only; numbers longer than 10 digits are accepted
    FieldKind.CONTACT_NUMBER: ValidationRule(
        pattern=re.compile(r"[0-9]{10,}"),
        format_message="Contact number must be at least 10 digits.",
        is_taken=lambda store, value, exclude_id: store.exists_by_contact(value, exclude_id),
        duplicate_message="This contact number is already registered.",
    ),
}

_INPUT_FILTERS = {
    FieldKind.STUDENT_NAME: re.compile(r"[^a-zA-Z\s]"),
    FieldKind.STUDENT_ID: re.compile(r"[^0-9]"),
    FieldKind.CONTACT_NUMBER: re.compile(r"[^0-9]"),
}


def normalize_email(email: Optional[str]) -> Optional[str]:
    """
    Normalize an email address for uniqueness comparison.

    Only surrounding whitespace and case are normalized; the address is
    otherwise compared as typed.
    """
    if email is None:
        return None
    return email.strip().lower()


def sanitize_input(kind, raw: Optional[str]) -> str:
    """
    Filter characters a field can never accept while the user is typing.

    Student ID and contact number keep digits only, the name keeps letters
    and whitespace. Email is returned unchanged.
    """
    kind = FieldKind.parse(kind)
    raw = raw or ""
    pattern = _INPUT_FILTERS.get(kind)
    return pattern.sub("", raw) if pattern else raw


def validate_field(kind, raw: Optional[str], store: "RecordStore" = None,
                   exclude_id: Optional[str] = None) -> ValidationResult:
    """
    Validate one field value.

    Args:
        kind: FieldKind, JSON key (studentId) or attribute name (student_id)
        raw: Value as entered; None counts as empty
        store: Record store used for the uniqueness step
        exclude_id: Record id to ignore in uniqueness checks (the record
            being edited)

    Returns:
        ValidationResult with the trimmed value and, when invalid, the reason
    """
    kind = FieldKind.parse(kind)
    rule = FIELD_RULES[kind]
    value = (raw or "").strip()

    if not value:
        if rule.required:
            return ValidationResult.invalid(kind, "{} is required.".format(kind.display_name), value)
        return ValidationResult.ok(kind, value)

    if not rule.pattern.fullmatch(value):
        return ValidationResult.invalid(kind, rule.format_message, value)

    if store is not None and rule.is_taken is not None and rule.is_taken(store, value, exclude_id):
        log_with_context(logger, "DEBUG", "Duplicate value for {}".format(kind.value),
                         context={"field": kind.value, "exclude_id": exclude_id})
        return ValidationResult.invalid(kind, rule.duplicate_message, value)

    return ValidationResult.ok(kind, value)


def validate_form(values: Mapping, store: "RecordStore" = None,
                  exclude_id: Optional[str] = None) -> FormValidation:
    """
    Validate every field of a form.

    All fields are evaluated, even after one fails, so every error can be
    shown at once. Keys of `values` may be FieldKinds, JSON keys or
    attribute names; missing fields count as empty.
    """
    by_kind = {FieldKind.parse(name): value for name, value in values.items()}

    outcome = FormValidation()
    for kind in FIELD_RULES:
        outcome.results[kind] = validate_field(kind, by_kind.get(kind), store, exclude_id)

    if not outcome.valid:
        log_with_context(logger, "INFO", "Form validation failed",
                         context={"exclude_id": exclude_id},
                         extra_data={"errors": outcome.errors})
    return outcome
