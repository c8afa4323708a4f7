"""
Bulk Import Script - registers students from a JSON file via the API.

The file holds a JSON array of student records in the stored camelCase
shape (for example a dump of the browser's localStorage collection).
Each record's form fields are posted to POST /api/students, so every
import goes through the same validation and uniqueness checks as the
form. Ids and timestamps in the file are ignored; the service assigns
fresh ones.

Usage:
    python load_data.py                                   # Defaults
    python load_data.py http://localhost:8000             # Custom API URL
    python load_data.py http://localhost:8000 dump.json   # Custom file
"""

import json
import os
import sys

import httpx

# camelCase keys accepted by POST /api/students
FORM_KEYS = [
    "firstName", "lastName", "email", "phone", "dob", "gender", "course",
    "year", "rollNo", "admissionDate", "address", "guardianName", "guardianPhone",
]


def to_form_payload(record: dict) -> dict:
    """Keep only the form fields of a stored record; nulls become empty strings."""
    return {key: record.get(key) or "" for key in FORM_KEYS if key in record}


def import_students(client: httpx.Client, records: list) -> dict:
    """
    Post every record and tally the outcome.

    Returns:
        {"created": int, "rejected": int, "failed": int, "details": [...]}
    """
    summary = {"created": 0, "rejected": 0, "failed": 0, "details": []}

    for index, record in enumerate(records):
        label = record.get("rollNo") or f"#{index + 1}"
        try:
            resp = client.post("/api/students", json=to_form_payload(record))
        except httpx.HTTPError as e:
            summary["failed"] += 1
            summary["details"].append({"record": label, "status": "FAILED", "reason": str(e)})
            continue

        if resp.status_code == 201:
            summary["created"] += 1
            summary["details"].append({"record": label, "status": "CREATED", "id": resp.json()["id"]})
        elif resp.status_code in (409, 422):
            body = resp.json()
            summary["rejected"] += 1
            summary["details"].append({
                "record": label,
                "status": "REJECTED",
                "reason": body.get("message"),
                "errors": body.get("errors", []),
            })
        else:
            summary["failed"] += 1
            summary["details"].append({
                "record": label,
                "status": "FAILED",
                "reason": f"HTTP {resp.status_code}",
            })

    return summary


def main():
    api_url = sys.argv[1] if len(sys.argv) > 1 else os.getenv("API_URL", "http://localhost:8000")
    data_file = sys.argv[2] if len(sys.argv) > 2 else "students.json"

    if not os.path.exists(data_file):
        print(f"Error: Could not find {data_file}")
        sys.exit(1)

    with open(data_file, "r", encoding="utf-8") as f:
        records = json.load(f)

    if not isinstance(records, list):
        print(f"Error: {data_file} must contain a JSON array of students")
        sys.exit(1)

    print(f"Importing {len(records)} students into {api_url}/api/students ...")

    with httpx.Client(base_url=api_url, timeout=30.0) as client:
        summary = import_students(client, records)

    print()
    print("=" * 50)
    print("IMPORT SUMMARY")
    print("=" * 50)
    print(f"  Total in file:  {len(records)}")
    print(f"  Created:        {summary['created']}")
    print(f"  Rejected:       {summary['rejected']}")
    print(f"  Failed:         {summary['failed']}")
    print("=" * 50)

    for detail in summary["details"]:
        if detail["status"] != "CREATED":
            print(f"  [{detail['status']}] {detail['record']}: {detail.get('reason')}")
            for err in detail.get("errors", []):
                print(f"      {err['field']}: {err['message']}")


if __name__ == "__main__":
    main()
