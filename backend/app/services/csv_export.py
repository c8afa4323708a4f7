"""
CSV Export Service - serializes the full student collection.

Layout:
- Fixed 15-column header, then one row per record in store order
- Rows joined with "\\n", no trailing newline
- updatedOn is not exported

Quoting: the Address cell is ALWAYS wrapped in double quotes with any
inner quote doubled. Every other cell is written as-is unless it holds
a comma, a double quote or a line break, in which case it is quoted the
same way. Values without those characters therefore come out exactly
as the unquoted original export wrote them.
"""

from datetime import date, datetime, timezone
from typing import List

from app.models.student import StudentRecord

CSV_HEADERS = [
    "ID", "First Name", "Last Name", "Roll No", "Email", "Phone",
    "DOB", "Gender", "Course", "Year", "Admission Date", "Address",
    "Guardian Name", "Guardian Phone", "Registered On",
]

MEDIA_TYPE = "text/csv"

_NEEDS_QUOTES = (",", '"', "\n", "\r")


def quote(value: str) -> str:
    return '"' + (value or "").replace('"', '""') + '"'


def cell(value: str) -> str:
    value = value or ""
    if any(ch in value for ch in _NEEDS_QUOTES):
        return quote(value)
    return value


def format_registered_on(value: str) -> str:
    """
    Render an ISO timestamp as "17 Oct 2026, 09:30 am" (UTC).

    Empty values become an em dash; unparsable ones pass through as-is.
    """
    if not value:
        return "—"
    try:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%d %b %Y, %I:%M ") + ("am" if moment.hour < 12 else "pm")


def _row(record: StudentRecord) -> str:
    cells = [
        cell(record.id),
        cell(record.first_name),
        cell(record.last_name),
        cell(record.roll_no),
        cell(record.email),
        cell(record.phone),
        cell(record.dob),
        cell(record.gender),
        cell(record.course),
        cell(record.year),
        cell(record.admission_date),
        quote(record.address),
        cell(record.guardian_name),
        cell(record.guardian_phone),
        cell(format_registered_on(record.registered_on)),
    ]
    return ",".join(cells)


def to_csv(records: List[StudentRecord]) -> str:
    lines = [",".join(CSV_HEADERS)]
    lines.extend(_row(record) for record in records)
    return "\n".join(lines)


def export_filename(today: date) -> str:
    return f"students_{today.isoformat()}.csv"
