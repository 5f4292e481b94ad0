import logging
import uuid
from datetime import date
from typing import Optional, List

from sqlalchemy import delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from case_portal.models.timetables import Timetable, TimetableEntry, TimetableAssignment
from case_portal.models.students import Student
from case_portal.models.staff import Staff
from case_portal.services import notifier
from case_portal.services.parsing import clean_str, to_int, parse_date, iso

logger = logging.getLogger(__name__)

ENTRY_TYPES = ("lecture", "lab", "tutorial", "practical")
ASSIGNMENT_TYPES = ("department", "faculty")

def new_timetable_id() -> str:
    return f"tt_{uuid.uuid4().hex}"

def serialize_entry(entry: TimetableEntry) -> dict:
    return {
        "id": entry.id,
        "day": entry.day,
        "period": entry.period,
        "time": entry.time,
        "subject": entry.subject,
        "faculty": entry.faculty,
        "room": entry.room,
        "type": entry.type,
    }

def serialize_timetable(timetable: Timetable, entries: Optional[List[TimetableEntry]] = None) -> dict:
    return {
        "id": timetable.id,
        "name": timetable.name,
        "department": timetable.department,
        "semester": timetable.semester,
        "section": timetable.section,
        "academic_year": timetable.academic_year,
        "faculty_id": timetable.faculty_id,
        "faculty_name": timetable.faculty_name,
        "effective_from": iso(timetable.effective_from),
        "is_active": timetable.is_active,
        "created_at": iso(timetable.created_at),
        "updated_at": iso(timetable.updated_at),
        "entries": [serialize_entry(e) for e in (entries or [])],
    }

def serialize_assignment(assignment: TimetableAssignment) -> dict:
    return {
        "id": assignment.id,
        "timetable_id": assignment.timetable_id,
        "assignment_type": assignment.assignment_type,
        "target_department": assignment.target_department,
        "target_semester": assignment.target_semester,
        "target_section": assignment.target_section,
        "faculty_id": assignment.faculty_id,
        "faculty_name": assignment.faculty_name,
        "assigned_by": assignment.assigned_by,
        "is_active": assignment.is_active,
        "assigned_at": iso(assignment.assigned_at),
    }

def build_entry(timetable_id: str, data: dict) -> TimetableEntry:
    """Validate an entry payload and build the row."""
    subject = clean_str(data.get("subject"))
    if not subject:
        raise ValueError("subject is required")

    entry_type = (clean_str(data.get("type")) or "lecture").lower()
    if entry_type not in ENTRY_TYPES:
        raise ValueError(f"type must be one of: {', '.join(ENTRY_TYPES)}")

    return TimetableEntry(
        timetable_id=timetable_id,
        day=clean_str(data.get("day")) or "Monday",
        period=to_int(data.get("period")) or 1,
        time=clean_str(data.get("time")),
        subject=subject,
        faculty=clean_str(data.get("faculty")),
        room=clean_str(data.get("room")),
        type=entry_type,
    )

async def list_entries(db: AsyncSession, timetable_id: str) -> List[TimetableEntry]:
    result = await db.execute(
        select(TimetableEntry)
        .where(TimetableEntry.timetable_id == timetable_id)
        .order_by(TimetableEntry.id)
    )
    return result.scalars().all()

async def get_timetable(db: AsyncSession, timetable_id: str) -> Optional[Timetable]:
    result = await db.execute(
        select(Timetable)
        .options(selectinload(Timetable.entries))
        .where(Timetable.id == timetable_id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()

async def list_timetables(db: AsyncSession, department: Optional[str] = None,
                          semester: Optional[int] = None, section: Optional[str] = None) -> List[Timetable]:
    query = select(Timetable).options(selectinload(Timetable.entries))
    if department:
        query = query.where(Timetable.department == department)
    if semester is not None:
        query = query.where(Timetable.semester == semester)
    if section:
        query = query.where(Timetable.section == section)
    result = await db.execute(query.order_by(Timetable.updated_at.desc()))
    return result.scalars().all()

async def save_timetable(db: AsyncSession, data: dict, timetable_id: Optional[str] = None) -> Timetable:
    """
    Insert or update a timetable.

    A missing effective_from defaults to today. When the payload carries an
    entries list it replaces the stored entries.
    """
    timetable_id = timetable_id or clean_str(data.get("id")) or new_timetable_id()

    timetable = await db.get(Timetable, timetable_id)
    if timetable is None:
        name = clean_str(data.get("name"))
        if not name:
            raise ValueError("name is required")
        timetable = Timetable(id=timetable_id, name=name)
        db.add(timetable)

    fields = {
        "name": clean_str,
        "department": clean_str,
        "semester": to_int,
        "section": clean_str,
        "academic_year": clean_str,
        "faculty_id": to_int,
        "faculty_name": clean_str,
    }
    for field, convert in fields.items():
        if field in data:
            value = convert(data.get(field))
            if field == "name" and not value:
                continue
            setattr(timetable, field, value)

    if "is_active" in data and data["is_active"] is not None:
        timetable.is_active = bool(data["is_active"])

    effective_from = parse_date(data.get("effective_from"))
    if effective_from:
        timetable.effective_from = effective_from
    elif timetable.effective_from is None:
        timetable.effective_from = date.today()

    entries = data.get("entries")
    if entries is not None:
        new_entries = [build_entry(timetable_id, entry) for entry in entries]
        await db.execute(delete(TimetableEntry).where(TimetableEntry.timetable_id == timetable_id))
        db.add_all(new_entries)

    await db.commit()
    logger.info(f"Saved timetable {timetable_id}")
    return timetable

async def add_entry(db: AsyncSession, timetable_id: str, data: dict) -> TimetableEntry:
    entry = build_entry(timetable_id, data)
    db.add(entry)
    await db.commit()
    return entry

async def delete_timetable(db: AsyncSession, timetable_id: str) -> None:
    await db.execute(delete(TimetableEntry).where(TimetableEntry.timetable_id == timetable_id))
    await db.execute(delete(TimetableAssignment).where(TimetableAssignment.timetable_id == timetable_id))
    await db.execute(delete(Timetable).where(Timetable.id == timetable_id))
    await db.commit()

async def assign_timetable(db: AsyncSession, timetable: Timetable, data: dict,
                           assigned_by: Optional[str] = None) -> TimetableAssignment:
    """
    Record an assignment and notify whoever it reaches: the matching students
    for a department assignment, the faculty member for a faculty assignment.
    """
    assignment_type = data["assignment_type"]
    department = data.get("target_department")
    section = data.get("target_section")
    # Wildcard targets are stored as NULL
    assignment = TimetableAssignment(
        timetable_id=timetable.id,
        assignment_type=assignment_type,
        target_department=department if notifier.is_specific(department, notifier.ALL_DEPARTMENTS) else None,
        target_semester=data.get("target_semester"),
        target_section=section if notifier.is_specific(section, notifier.ALL_SECTIONS) else None,
        faculty_id=data.get("faculty_id"),
        faculty_name=data.get("faculty_name"),
        assigned_by=assigned_by,
        is_active=True,
    )
    db.add(assignment)

    title = "Timetable Assigned"
    message = f"The timetable \"{timetable.name}\" has been assigned to you."

    if assignment_type == "department":
        student_ids = await notifier.active_student_ids(
            db,
            department=assignment.target_department,
            section=assignment.target_section,
            semester=assignment.target_semester,
        )
        for student_id in student_ids:
            notifier.notify_student(db, student_id, title, message, type="Timetable")
        logger.info(f"Timetable {timetable.id} assigned to {len(student_ids)} students")
    else:
        staff = await db.get(Staff, assignment.faculty_id)
        if staff:
            notifier.notify_staff(db, staff.staff_id, title, message, type="Timetable")
            if not assignment.faculty_name:
                assignment.faculty_name = staff.full_name

    await db.commit()
    return assignment

async def list_assignments(db: AsyncSession) -> List[TimetableAssignment]:
    result = await db.execute(select(TimetableAssignment).order_by(TimetableAssignment.assigned_at.desc()))
    return result.scalars().all()

def _specificity(assignment: TimetableAssignment, student: Student) -> Optional[int]:
    """Match score of a department assignment for a student, None when it does not apply."""
    score = 0
    if assignment.target_department:
        if assignment.target_department != student.department:
            return None
        score += 1
    if assignment.target_semester is not None:
        if assignment.target_semester != student.semester:
            return None
        score += 1
    if assignment.target_section:
        if assignment.target_section != student.section:
            return None
        score += 1
    return score

async def resolve_student_timetable(db: AsyncSession, student: Student) -> Optional[TimetableAssignment]:
    """
    Pick the active department assignment for a student's cohort.
    The most specific semester/section match wins; ties go to the latest.
    """
    result = await db.execute(
        select(TimetableAssignment)
        .where(
            TimetableAssignment.assignment_type == "department",
            TimetableAssignment.is_active.is_(True),
            or_(
                TimetableAssignment.target_department == student.department,
                TimetableAssignment.target_department.is_(None),
            ),
        )
    )

    best = None
    best_key = None
    for assignment in result.scalars().all():
        score = _specificity(assignment, student)
        if score is None:
            continue
        key = (score, assignment.assigned_at, assignment.id)
        if best_key is None or key > best_key:
            best, best_key = assignment, key
    return best

async def resolve_staff_timetables(db: AsyncSession, staff: Staff) -> dict:
    """Faculty assignments of a staff member and the timetables naming them."""
    result = await db.execute(
        select(TimetableAssignment)
        .where(
            TimetableAssignment.assignment_type == "faculty",
            TimetableAssignment.faculty_id == staff.staff_id,
            TimetableAssignment.is_active.is_(True),
        )
        .order_by(TimetableAssignment.assigned_at.desc())
    )
    assignments = result.scalars().all()

    assigned_ids = [a.timetable_id for a in assignments]
    conditions = [Timetable.faculty_id == staff.staff_id]
    if assigned_ids:
        conditions.append(Timetable.id.in_(assigned_ids))

    result = await db.execute(
        select(Timetable)
        .options(selectinload(Timetable.entries))
        .where(or_(*conditions))
        .order_by(Timetable.updated_at.desc())
    )
    timetables = result.scalars().all()

    return {
        "assignments": [serialize_assignment(a) for a in assignments],
        "timetables": [serialize_timetable(t, t.entries) for t in timetables],
    }
