from sqlalchemy import func
from sqlalchemy.future import select

from case_portal.models.students import Subject, StudentAttendance
from case_portal.services.grading import round_half_up

ATTENDANCE_STATUSES = ("Present", "Absent", "Late", "Excused")

# Export filters on the attendance percentage
ATTENDANCE_FILTERS = {
    "above90": lambda pct: pct >= 90,
    "above80": lambda pct: pct >= 80,
    "above75": lambda pct: pct >= 75,
    "below75": lambda pct: pct < 75,
}

def attendance_summary(statuses):
    """
    Count classes and present marks for a sequence of attendance statuses.

    Only Present counts towards the percentage; Late and Excused are classes
    held but not attended.
    Returns (total, present, percentage).
    """
    statuses = list(statuses)
    total = len(statuses)
    present = sum(1 for s in statuses if s == "Present")
    percentage = round_half_up(present / total * 100) if total else 0
    return total, present, percentage

def attendance_percentage(statuses) -> int:
    return attendance_summary(statuses)[2]

def matches_attendance_filter(percentage, attendance_filter) -> bool:
    if not attendance_filter or attendance_filter == "all":
        return True
    check = ATTENDANCE_FILTERS.get(attendance_filter)
    return check(percentage) if check else True

def attendance_bucket(percentage) -> str:
    if percentage >= 90:
        return "excellent"
    if percentage >= 80:
        return "good"
    if percentage >= 70:
        return "average"
    return "poor"

def subject_breakdown(rows):
    """Per-subject attendance from rows carrying subject and status."""
    by_subject = {}
    for row in rows:
        by_subject.setdefault(row.subject or "General", []).append(row.status)

    breakdown = []
    for subject, statuses in sorted(by_subject.items()):
        total, present, percentage = attendance_summary(statuses)
        breakdown.append({
            "subject": subject,
            "totalClasses": total,
            "presentClasses": present,
            "percentage": percentage,
        })
    return breakdown

async def resolve_subject(db, subject_id=None, subject_name=None):
    """
    Find the subject for an attendance mark. Without an id the subject is
    looked up by name (General by default) and created when missing.
    """
    if subject_id is not None:
        subject = await db.get(Subject, subject_id)
        if subject:
            return subject

    name = (subject_name or "General").strip() or "General"
    result = await db.execute(select(Subject).where(func.lower(Subject.name) == name.lower()))
    subject = result.scalars().first()
    if not subject:
        subject = Subject(subject_code="_".join(name.split()).upper(), name=name, credits=3)
        db.add(subject)
        await db.flush()
    return subject

async def upsert_attendance(db, student_id, on_date, status, subject, marked_by=None):
    """Update the student's mark for the day, or create it. The caller commits."""
    result = await db.execute(
        select(StudentAttendance).where(
            StudentAttendance.student_id == student_id,
            StudentAttendance.date == on_date,
        )
    )
    record = result.scalars().first()

    if record:
        record.status = status
        record.subject_id = subject.id
        record.subject = subject.name
    else:
        record = StudentAttendance(
            student_id=student_id,
            subject_id=subject.id,
            subject=subject.name,
            date=on_date,
            status=status,
            marked_by=marked_by,
        )
        db.add(record)

    await db.flush()
    return record
