"""
Registration Service - one entry point per user action.

Submit pipeline:
1. Run every field validator; reject with all failures at once
2. Reconcile against the store (create vs update, uniqueness, stamps)
3. Insert the new record or replace the edited one, then persist

The collection is loaded once per submission and saved once.

The other actions (list, detail, delete, clear, export) read or rewrite
the same store. Every action is logged on the registration channel.
"""

import time
from datetime import date
from typing import Callable, List, NamedTuple, Optional, Tuple

from app.errors import NothingToExport, StudentNotFound, ValidationFailed
from app.logging_config import get_logger, log_with_context
from app.models.student import StudentForm, StudentRecord
from app.services.csv_export import export_filename, to_csv
from app.services.reconciler import Clock, IdGenerator, RecordReconciler, generate_student_id, utc_now
from app.services.record_store import RecordStore, replace_record
from app.services.search import filter_records
from app.services.validation import validate_form

logger = get_logger("registration")


class StudentListing(NamedTuple):
    total: int
    students: List[StudentRecord]


class SubmitResult(NamedTuple):
    record: StudentRecord
    created: bool


class RegistrationService:

    def __init__(self, store: RecordStore, clock: Clock = utc_now,
                 id_generator: IdGenerator = generate_student_id,
                 today: Optional[Callable[[], date]] = None):
        self.store = store
        self.clock = clock
        self.reconciler = RecordReconciler(store, clock=clock, id_generator=id_generator)
        self.today = today or (lambda: self.clock().date())

    def submit(self, form: StudentForm, edit_id: Optional[str] = None) -> SubmitResult:
        """
        Validate, reconcile and persist one form submission.

        The collection is read once and written once; every uniqueness
        check runs against that single read.

        Raises:
            ValidationFailed: one or more fields are invalid
            DuplicateRollNo / DuplicateEmail: uniqueness conflict
            StorageUnavailable: the store could not be written
        """
        start_time = time.time()

        if form.admission_date is None:
            form = form.model_copy(update={"admission_date": self.today().isoformat()})

        validation = validate_form(form)
        if not validation.is_valid:
            failures = validation.errors
            log_with_context(logger, "INFO", "Submission rejected: {} invalid field(s)".format(len(failures)),
                             context={"edit_id": edit_id},
                             extra_data={"fields": [f.field for f in failures]})
            raise ValidationFailed(failures)

        records = self.store.load_all()
        record = self.reconciler.reconcile(form, edit_id, records=records)

        created = not replace_record(records, record)
        if created:
            records.append(record)
        self.store.save_all(records)

        duration_ms = (time.time() - start_time) * 1000
        log_with_context(logger, "INFO",
                         "Student {}: {}".format("registered" if created else "updated", record.full_name),
                         context={"student_id": record.id, "roll_no": record.roll_no},
                         extra_data={"duration_ms": round(duration_ms, 2)})
        return SubmitResult(record, created)

    def list_students(self, query: str = "") -> StudentListing:
        records = self.store.load_all()
        return StudentListing(total=len(records), students=filter_records(records, query))

    def count(self) -> int:
        return self.store.count()

    def get_student(self, student_id: str) -> StudentRecord:
        record = self.store.find_by_id(student_id)
        if record is None:
            raise StudentNotFound(student_id)
        return record

    def delete_student(self, student_id: str) -> None:
        if not self.store.delete_by_id(student_id):
            raise StudentNotFound(student_id)
        log_with_context(logger, "INFO", "Student deleted", context={"student_id": student_id})

    def clear_all(self) -> int:
        """Remove every record. Returns how many there were."""
        count = self.store.count()
        if count:
            self.store.clear()
        log_with_context(logger, "INFO", "Cleared all students", extra_data={"deleted": count})
        return count

    def export_csv(self) -> Tuple[str, str]:
        """(filename, csv text) for the whole store, ignoring any search filter."""
        records = self.store.load_all()
        if not records:
            raise NothingToExport()
        log_with_context(logger, "INFO", "Exported {} record(s) to CSV".format(len(records)))
        return export_filename(self.today()), to_csv(records)

    def form_defaults(self) -> StudentForm:
        """Blank form as opened today: only the admission date is filled in."""
        return StudentForm(admission_date=self.today().isoformat())
