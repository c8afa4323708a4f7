"""
Search filter for the student list.

A record matches when the lower-cased, trimmed query occurs inside any
of its first name, last name, email, roll number or course (compared
lower-cased), or inside its phone number as stored.
"""

from typing import List

from app.models.student import StudentRecord


def _matches(record: StudentRecord, query: str) -> bool:
    return (
        query in record.first_name.lower()
        or query in record.last_name.lower()
        or query in record.email.lower()
        or query in record.roll_no.lower()
        or query in record.course.lower()
        or query in record.phone
    )


def filter_records(records: List[StudentRecord], query: str) -> List[StudentRecord]:
    """Records matching the query, in their original order. Blank query keeps all."""
    needle = (query or "").lower().strip()
    if not needle:
        return list(records)
    return [record for record in records if _matches(record, needle)]
