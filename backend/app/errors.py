"""
Domain exceptions for the registration service.

Each error carries a user-facing message, a machine-readable code and
the HTTP status the API answers with. Field-level problems are listed
in ``errors`` as ``{"field": ..., "message": ...}`` so the form can
mark the offending inputs.
"""

from typing import Dict, List, Optional


class RegistrationError(Exception):
    """Base exception for all registration errors"""

    status_code = 500

    def __init__(self, message: str, code: str = "INTERNAL_ERROR",
                 errors: Optional[List[Dict[str, str]]] = None):
        self.message = message
        self.code = code
        self.errors = errors or []
        super().__init__(self.message)

    def to_dict(self) -> Dict:
        return {
            "code": self.code,
            "message": self.message,
            "errors": self.errors,
        }


# ============================================
# Validation
# ============================================

class FieldInvalid(RegistrationError):
    """A single form field failed its validator"""

    status_code = 422

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(reason, code="FIELD_INVALID",
                         errors=[{"field": field, "message": reason}])


class ValidationFailed(RegistrationError):
    """One or more form fields are invalid; all of them are reported"""

    status_code = 422

    def __init__(self, failures: List[FieldInvalid]):
        self.failures = failures
        super().__init__(
            "Please fix the errors before submitting.",
            code="VALIDATION_FAILED",
            errors=[{"field": f.field, "message": f.reason} for f in failures],
        )


# ============================================
# Cross-record conflicts
# ============================================

class DuplicateRollNo(RegistrationError):
    """Another student already holds this roll number"""

    status_code = 409

    def __init__(self, roll_no: str, existing_id: str):
        self.roll_no = roll_no
        self.existing_id = existing_id
        super().__init__(
            "Roll number already exists!",
            code="DUPLICATE_ROLL_NO",
            errors=[{"field": "rollNo", "message": "This roll number is already registered."}],
        )


class DuplicateEmail(RegistrationError):
    """Another student already registered this email"""

    status_code = 409

    def __init__(self, email: str, existing_id: str):
        self.email = email
        self.existing_id = existing_id
        super().__init__(
            "Email already registered!",
            code="DUPLICATE_EMAIL",
            errors=[{"field": "email", "message": "This email is already registered."}],
        )


# ============================================
# Lookup
# ============================================

class StudentNotFound(RegistrationError):
    status_code = 404

    def __init__(self, student_id: str):
        self.student_id = student_id
        super().__init__("Student not found.", code="STUDENT_NOT_FOUND")


class NothingToExport(RegistrationError):
    status_code = 404

    def __init__(self):
        super().__init__("No data to export.", code="NOTHING_TO_EXPORT")


# ============================================
# Storage
# ============================================

class StorageCorrupt(RegistrationError):
    """Stored data could not be parsed. Recovered inside the store."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Stored records are unreadable: {detail}", code="STORAGE_CORRUPT")


class StorageUnavailable(RegistrationError):
    """The durable store could not be read or written"""

    status_code = 503

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__("Storage is unavailable. Please try again.", code="STORAGE_UNAVAILABLE")
