"""Student export rows and CSV rendering."""
import csv
import re
from io import StringIO
from datetime import date

# Column groups selectable through includeFields
CSV_COLUMN_GROUPS = [
    ("personal", [
        ("Name", "name"),
        ("Email", "email"),
        ("Phone", "phone"),
        ("Date of Birth", "dateOfBirth"),
        ("Address", "address"),
    ]),
    ("academic", [
        ("Roll Number", "rollNumber"),
        ("Department", "department"),
        ("Semester", "semester"),
        ("Section", "section"),
        ("Enroll Date", "enrollDate"),
        ("Status", "status"),
    ]),
    ("attendance", [
        ("Attendance %", "attendance"),
    ]),
    ("contact", [
        ("Guardian Name", "guardianName"),
        ("Guardian Phone", "guardianPhone"),
    ]),
]

def ordinal_suffix(number: int) -> str:
    if number == 1:
        return "st"
    if number == 2:
        return "nd"
    if number == 3:
        return "rd"
    return "th"

def ordinal(number: int) -> str:
    return f"{number}{ordinal_suffix(number)}"

def parse_semester(value, default=1):
    """Extract the digits of a semester label such as "3rd" or "Semester 5"."""
    if value is None or value == "":
        return default
    if isinstance(value, int):
        return value
    digits = re.sub(r"\D", "", str(value))
    return int(digits) if digits else default

def roll_number(department, student_id) -> str:
    prefix = (department or "NA")[:2].upper()
    return f"{prefix}-{str(student_id)[:6]}"

def enroll_date(admission_year) -> str:
    if admission_year is None:
        return "N/A"
    return date(int(admission_year), 1, 1).isoformat()

def export_row(student, attendance_pct: int) -> dict:
    return {
        "id": str(student.student_id),
        "name": student.full_name,
        "email": student.email_id,
        "phone": student.contact_number or "N/A",
        "department": student.department or "N/A",
        "semester": ordinal(student.semester) if student.semester is not None else "N/A",
        "section": student.section or "N/A",
        "rollNumber": roll_number(student.department, student.student_id),
        "enrollDate": enroll_date(student.admission_year),
        "status": "Active" if student.is_active else "Inactive",
        "dateOfBirth": student.date_of_birth.isoformat() if student.date_of_birth else "",
        "address": student.address or "",
        "guardianName": student.guardian_name or "",
        "guardianPhone": student.guardian_phone or "",
        "attendance": attendance_pct,
    }

def generate_csv(rows, include_fields: dict) -> str:
    headers = []
    fields = []
    for group, columns in CSV_COLUMN_GROUPS:
        if include_fields.get(group):
            for header, field in columns:
                headers.append(header)
                fields.append(field)

    output = StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([row.get(field) for field in fields])
    return output.getvalue()
