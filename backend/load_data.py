"""
Data Loader Script - Imports students.json into the platform via API.

Reads a JSON array of students and sends it to the import endpoint.
Entries may use the camelCase keys of the stored format (studentName,
studentId, emailId, contactNumber) or the snake_case attribute names.

Usage:
    python load_data.py                                   # Uses default URL and ./students.json
    python load_data.py http://localhost:8000             # Custom API URL
    python load_data.py http://localhost:8000 other.json  # Custom data file
"""

import json
import sys
import os

import httpx

STUDENT_KEYS = {
    "studentName": ("studentName", "student_name"),
    "studentId": ("studentId", "student_id"),
    "emailId": ("emailId", "email_id"),
    "contactNumber": ("contactNumber", "contact_number"),
}


def transform_student(raw: dict) -> dict:
    """Map one input entry onto the camelCase payload the API expects."""
    student = {}
    for key, candidates in STUDENT_KEYS.items():
        for candidate in candidates:
            if raw.get(candidate) is not None:
                student[key] = str(raw[candidate])
                break
    return student


def import_students(students: list, api_url: str, client: httpx.Client = None) -> dict:
    """
    POST the students to /api/students/import and return the summary.

    An existing httpx client (e.g. a test client) may be supplied.
    """
    payload = {"students": [transform_student(s) for s in students]}
    import_url = f"{api_url.rstrip('/')}/api/students/import"

    if client is not None:
        resp = client.post(import_url, json=payload)
        resp.raise_for_status()
        return resp.json()

    with httpx.Client(timeout=30.0) as own_client:
        resp = own_client.post(import_url, json=payload)
        resp.raise_for_status()
        return resp.json()


def print_summary(result: dict) -> None:
    print("=" * 60)
    print("IMPORT SUMMARY")
    print("=" * 60)
    print(f"  Total Received: {result.get('total_received', '?')}")
    print(f"  Imported:       {result.get('imported', '?')}")
    print(f"  Rejected:       {result.get('rejected', '?')}")
    print(f"  Errors:         {result.get('errors', '?')}")
    print("=" * 60)
    print()

    for d in result.get('details', []):
        status = d.get('status', '?')
        index = d.get('index', '?')
        icon = '✅' if status == 'IMPORTED' else ('⛔' if status == 'REJECTED' else '❌')
        extra = ''
        if status == 'IMPORTED':
            extra = f" (id: {d.get('id', '?')[:8]}...)"
        elif status == 'REJECTED':
            extra = " (" + "; ".join(d.get('errors', {}).values()) + ")"
        elif status == 'ERROR':
            extra = f" ({d.get('reason', '?')})"
        print(f"  {icon} #{index}: {status}{extra}")


def main():
    api_url = sys.argv[1] if len(sys.argv) > 1 else os.getenv("API_URL", "http://localhost:8000")
    data_file = sys.argv[2] if len(sys.argv) > 2 else "students.json"

    if not os.path.exists(data_file):
        print(f"Error: Could not find {data_file}")
        sys.exit(1)

    print(f"Loading data from: {data_file}")
    with open(data_file, 'r', encoding='utf-8') as f:
        students = json.load(f)

    print(f"Found {len(students)} students to import")
    print(f"Sending to: {api_url}")
    print()

    try:
        result = import_students(students, api_url)
    except httpx.HTTPError as e:
        print(f"HTTP Error: {e}")
        sys.exit(1)

    print_summary(result)
    print()
    print("✅ Data loading complete!")


if __name__ == "__main__":
    main()
