"""
Student API routes - the registration form, list view and export.

Provides endpoints for:
- Registering and editing students (form submission)
- Listing with search, the count badge and single-record detail
- Deleting one student or clearing the whole store
- Downloading the full store as CSV

Domain errors are not handled here; the handlers in app.main turn them
into JSON responses.
"""

from typing import List

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel

from app.database import SessionLocal
from app.models.student import StudentForm, StudentRecord
from app.services.csv_export import MEDIA_TYPE
from app.services.record_store import RecordStore, SqlAlchemyBackend
from app.services.registration import RegistrationService
from app.services.validation import COURSE_OPTIONS, GENDER_OPTIONS, YEAR_OPTIONS

router = APIRouter()


# ── Response schemas ─────────────────────────────────────────

class StudentListResponse(BaseModel):
    total: int
    matched: int
    students: List[StudentRecord]


class CountResponse(BaseModel):
    count: int


class MessageResponse(BaseModel):
    message: str


class ClearResponse(BaseModel):
    message: str
    deleted: int


def get_registration_service() -> RegistrationService:
    """FastAPI dependency providing the service over the SQL-backed store."""
    return RegistrationService(RecordStore(SqlAlchemyBackend(SessionLocal)))


# ── Read endpoints ───────────────────────────────────────────

@router.get("/api/students", response_model=StudentListResponse)
def list_students(
    search: str = Query("", description="Case-insensitive search across name, email, roll no, course, phone"),
    service: RegistrationService = Depends(get_registration_service)
):
    listing = service.list_students(search)
    return StudentListResponse(total=listing.total, matched=len(listing.students),
                               students=listing.students)


@router.get("/api/students/count", response_model=CountResponse)
def count_students(service: RegistrationService = Depends(get_registration_service)):
    return CountResponse(count=service.count())


@router.get("/api/students/form-defaults")
def form_defaults(service: RegistrationService = Depends(get_registration_service)):
    """Values a freshly opened form starts with, plus the select options."""
    return {
        "form": service.form_defaults().model_dump(by_alias=True),
        "options": {
            "gender": GENDER_OPTIONS,
            "course": COURSE_OPTIONS,
            "year": YEAR_OPTIONS,
        },
    }


@router.get("/api/students/export")
def export_students(service: RegistrationService = Depends(get_registration_service)):
    """Full store as CSV; the search filter never applies here."""
    filename, content = service.export_csv()
    return Response(
        content=content,
        media_type=MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/api/students/{student_id}", response_model=StudentRecord)
def get_student(student_id: str, service: RegistrationService = Depends(get_registration_service)):
    return service.get_student(student_id)


# ── Write endpoints ──────────────────────────────────────────

@router.post("/api/students", response_model=StudentRecord, status_code=201)
def register_student(form: StudentForm, service: RegistrationService = Depends(get_registration_service)):
    return service.submit(form).record


@router.put("/api/students/{student_id}", response_model=StudentRecord)
def update_student(student_id: str, form: StudentForm, response: Response,
                   service: RegistrationService = Depends(get_registration_service)):
    """Edit a student. An unknown id registers the form as a new student."""
    result = service.submit(form, edit_id=student_id)
    if result.created:
        response.status_code = 201
    return result.record


@router.delete("/api/students/{student_id}", response_model=MessageResponse)
def delete_student(student_id: str, service: RegistrationService = Depends(get_registration_service)):
    service.delete_student(student_id)
    return MessageResponse(message="Student deleted successfully.")


@router.delete("/api/students", response_model=ClearResponse)
def clear_students(service: RegistrationService = Depends(get_registration_service)):
    deleted = service.clear_all()
    message = "All records cleared." if deleted else "Database is already empty."
    return ClearResponse(message=message, deleted=deleted)
