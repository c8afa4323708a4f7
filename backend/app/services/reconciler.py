"""
Record Reconciler - turns a validated form into the record to persist.

Decides between create and update, enforces the cross-record rules and
stamps identity and provenance:

1. An edit target that exists in the store means update, else create
2. Roll number must be unused by any other record (case-insensitive)
3. Email must be unused by any other record (case-insensitive)
4. id: kept on update, freshly generated on create
5. registeredOn: kept on update, now on create
6. updatedOn: now on update, null on create

The roll number is checked first, so when both collide the user hears
about the roll number.

The clock and id generator are injected so tests can pin both.
"""

import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional

from app.errors import DuplicateEmail, DuplicateRollNo
from app.logging_config import get_logger, log_with_context
from app.models.student import StudentForm, StudentRecord
from app.services.record_store import RecordStore, find_by_email, find_by_id, find_by_roll_no

logger = get_logger("registration")

Clock = Callable[[], datetime]
IdGenerator = Callable[[], str]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_student_id() -> str:
    return str(uuid.uuid4())


def format_timestamp(moment: datetime) -> str:
    """ISO 8601 in UTC with millisecond precision and a Z suffix."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


class RecordReconciler:

    def __init__(self, store: RecordStore, clock: Clock = utc_now,
                 id_generator: IdGenerator = generate_student_id):
        self.store = store
        self.clock = clock
        self.id_generator = id_generator

    def _new_id(self, records: List[StudentRecord]) -> str:
        candidate = self.id_generator()
        while find_by_id(records, candidate) is not None:
            log_with_context(logger, "WARNING", "Generated id already in use, drawing another",
                             context={"student_id": candidate})
            candidate = self.id_generator()
        return candidate

    def reconcile(self, form: StudentForm, edit_id: Optional[str] = None,
                  records: Optional[List[StudentRecord]] = None) -> StudentRecord:
        """
        Build the record for a submission.

        Args:
            form: Submitted values, already passed the field validators
            edit_id: Id of the record being edited, if any
            records: The collection as already loaded by the caller;
                read from the store when omitted

        Returns:
            The assembled StudentRecord; the caller persists it

        Raises:
            DuplicateRollNo: roll number held by another record
            DuplicateEmail: email held by another record
        """
        if records is None:
            records = self.store.load_all()

        existing = find_by_id(records, edit_id) if edit_id else None

        roll_dup = find_by_roll_no(records, form.roll_no, excluding_id=edit_id)
        if roll_dup is not None:
            log_with_context(logger, "INFO", "Rejected duplicate roll number",
                             context={"roll_no": form.roll_no, "existing_id": roll_dup.id,
                                      "edit_id": edit_id})
            raise DuplicateRollNo(form.roll_no, roll_dup.id)

        email_dup = find_by_email(records, form.email, excluding_id=edit_id)
        if email_dup is not None:
            log_with_context(logger, "INFO", "Rejected duplicate email",
                             context={"email": form.email, "existing_id": email_dup.id,
                                      "edit_id": edit_id})
            raise DuplicateEmail(form.email, email_dup.id)

        now = format_timestamp(self.clock())
        values = form.model_dump(exclude_none=True)

        if existing is not None:
            return StudentRecord(
                id=existing.id,
                registered_on=existing.registered_on or now,
                updated_on=now,
                **values,
            )

        if edit_id:
            log_with_context(logger, "WARNING", "Edit target not found, registering as new",
                             context={"edit_id": edit_id})

        return StudentRecord(
            id=self._new_id(records),
            registered_on=now,
            updated_on=None,
            **values,
        )
