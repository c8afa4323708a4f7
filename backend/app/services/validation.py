"""
Field Validation Service - per-field rules for the registration form.

Each validator is a pure function taking the raw field value and
returning a ValidationResult. They are independent of each other, so
the whole form is checked in one pass and every failing field is
reported together rather than stopping at the first.

The select fields (gender, course, year) accept only the fixed option
sets below.
"""

import re
from enum import Enum
from typing import Callable, Dict, List, NamedTuple, Optional

from app.errors import FieldInvalid
from app.models.student import StudentForm

# ──────────────────────────────────────────────────────────────
# Fixed option sets for the select fields
# ──────────────────────────────────────────────────────────────
GENDER_OPTIONS = ["Male", "Female", "Other"]
COURSE_OPTIONS = [
    "B.Tech", "B.Sc", "B.Com", "B.A", "BCA",
    "BBA", "M.Tech", "M.Sc", "MCA", "MBA",
]
YEAR_OPTIONS = ["1st Year", "2nd Year", "3rd Year", "4th Year", "5th Year"]

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^[6-9][0-9]{9}$")
PHONE_SEPARATORS = re.compile(r"[\s\-+]")


class RegistrationField(str, Enum):
    """Validated form fields. Values are the camelCase form keys."""
    FIRST_NAME = "firstName"
    LAST_NAME = "lastName"
    EMAIL = "email"
    PHONE = "phone"
    DOB = "dob"
    GENDER = "gender"
    COURSE = "course"
    YEAR = "year"
    ROLL_NO = "rollNo"

    @property
    def attribute(self) -> str:
        """Matching snake_case attribute on StudentForm."""
        return re.sub(r"(?<!^)(?=[A-Z])", "_", self.value).lower()


class ValidationResult(NamedTuple):
    valid: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(True)

    @classmethod
    def fail(cls, reason: str) -> "ValidationResult":
        return cls(False, reason)


def _min_length(length: int, message: str) -> Callable[[str], ValidationResult]:
    def check(value: str) -> ValidationResult:
        return ValidationResult.ok() if len(value.strip()) >= length else ValidationResult.fail(message)
    return check


def _required(message: str) -> Callable[[str], ValidationResult]:
    def check(value: str) -> ValidationResult:
        return ValidationResult.ok() if value != "" else ValidationResult.fail(message)
    return check


def _select(options: List[str], missing: str, unknown: str) -> Callable[[str], ValidationResult]:
    def check(value: str) -> ValidationResult:
        if value == "":
            return ValidationResult.fail(missing)
        if value not in options:
            return ValidationResult.fail(unknown)
        return ValidationResult.ok()
    return check


def validate_email(value: str) -> ValidationResult:
    if EMAIL_PATTERN.match(value.strip()):
        return ValidationResult.ok()
    return ValidationResult.fail("Please enter a valid email address.")


def validate_phone(value: str) -> ValidationResult:
    """Spaces, dashes and '+' are ignored; 10 digits starting with 6-9 remain."""
    if PHONE_PATTERN.match(PHONE_SEPARATORS.sub("", value)):
        return ValidationResult.ok()
    return ValidationResult.fail("Enter a valid 10-digit mobile number.")


VALIDATORS: Dict[RegistrationField, Callable[[str], ValidationResult]] = {
    RegistrationField.FIRST_NAME: _min_length(2, "First name must be at least 2 characters."),
    RegistrationField.LAST_NAME: _min_length(2, "Last name must be at least 2 characters."),
    RegistrationField.EMAIL: validate_email,
    RegistrationField.PHONE: validate_phone,
    RegistrationField.DOB: _required("Date of birth is required."),
    RegistrationField.GENDER: _select(GENDER_OPTIONS, "Please select a gender.",
                                      "Please select a valid gender."),
    RegistrationField.COURSE: _select(COURSE_OPTIONS, "Please select a course.",
                                      "Please select a valid course."),
    RegistrationField.YEAR: _select(YEAR_OPTIONS, "Please select year / semester.",
                                    "Please select a valid year / semester."),
    RegistrationField.ROLL_NO: _min_length(3, "Roll number must be at least 3 characters."),
}


def validate_field(field: RegistrationField, value: str) -> ValidationResult:
    return VALIDATORS[field](value)


class FormValidation(NamedTuple):
    """Outcome of checking every field of a form."""
    results: Dict[RegistrationField, ValidationResult]

    @property
    def is_valid(self) -> bool:
        return all(result.valid for result in self.results.values())

    @property
    def errors(self) -> List[FieldInvalid]:
        return [
            FieldInvalid(field.value, result.reason)
            for field, result in self.results.items()
            if not result.valid
        ]


def validate_form(form: StudentForm) -> FormValidation:
    """Run every field validator against the form, in field order."""
    return FormValidation({
        field: validate_field(field, getattr(form, field.attribute))
        for field in RegistrationField
    })
