import logging
import time
from collections import defaultdict
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from case_portal.database import get_db
from case_portal.models.events import Event
from case_portal.models.notes import Note, Feedback
from case_portal.models.parents import Parent
from case_portal.models.staff import Staff
from case_portal.models.students import Student, StudentAttendance, StudentMarks
from case_portal.middleware.authentication import CurrentAccount, require_admin
from case_portal.services.analytics import (
    relative_time, month_start, growth_percentage, count_by_month,
    marks_percentage, performance_score, format_uptime,
)
from case_portal.services.attendance import attendance_summary, attendance_bucket
from case_portal.services.exports import ordinal

logger = logging.getLogger(__name__)

router = APIRouter()

STARTED_AT = time.time()

async def count(db: AsyncSession, column, *conditions) -> int:
    result = await db.execute(select(func.count(column)).where(*conditions))
    return result.scalar() or 0

async def recent_activity(db: AsyncSession, now: datetime) -> list:
    """Latest notes, events, feedback, students and staff, newest first."""
    activities = []

    result = await db.execute(select(Note).order_by(Note.created_at.desc()).limit(3))
    for note in result.scalars().all():
        activities.append({
            "type": "note",
            "title": f"New note uploaded: {note.title}",
            "description": f"{note.subject} - by {note.uploaded_by}",
            "at": note.created_at,
        })

    result = await db.execute(select(Event).order_by(Event.created_at.desc()).limit(3))
    for event in result.scalars().all():
        activities.append({
            "type": "event",
            "title": f"Event created: {event.title}",
            "description": f"Event date: {event.event_date.isoformat()}",
            "at": event.created_at,
        })

    result = await db.execute(select(Feedback).order_by(Feedback.created_at.desc()).limit(3))
    for feedback in result.scalars().all():
        activities.append({
            "type": "feedback",
            "title": f"New feedback: {feedback.category}",
            "description": f"{feedback.category} - by {feedback.name}",
            "at": feedback.created_at,
        })

    result = await db.execute(select(Student).order_by(Student.created_at.desc()).limit(2))
    for student in result.scalars().all():
        activities.append({
            "type": "student",
            "title": f"New student enrolled: {student.full_name}",
            "description": f"Department: {student.department}",
            "at": student.created_at,
        })

    result = await db.execute(select(Staff).order_by(Staff.created_at.desc()).limit(2))
    for staff in result.scalars().all():
        activities.append({
            "type": "staff",
            "title": f"New staff member: {staff.full_name}",
            "description": f"Department: {staff.department}",
            "at": staff.created_at,
        })

    activities.sort(key=lambda a: a["at"] or datetime.min, reverse=True)

    return [
        {
            "type": a["type"],
            "title": a["title"],
            "description": a["description"],
            "timestamp": a["at"].isoformat() if a["at"] else None,
            "relativeTime": relative_time(a["at"], now),
        }
        for a in activities[:10]
    ]

async def monthly_growth(db: AsyncSession, column, now: datetime) -> float:
    this_month = month_start(now)
    last_month = month_start(now, 1)
    current = await count(db, column, column >= this_month)
    previous = await count(db, column, column >= last_month, column < this_month)
    return growth_percentage(current, previous)

@router.get("/admin/dashboard/stats")
async def dashboard_stats(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Overview counts, recent activity and month-over-month growth.
    """
    now = datetime.utcnow()

    overview = {
        "totalStaff": await count(db, Staff.staff_id, Staff.is_active.is_(True)),
        "totalStudents": await count(db, Student.student_id),
        "totalParents": await count(db, Parent.parent_id, Parent.is_active.is_(True)),
        "totalNotes": await count(db, Note.id, Note.is_active.is_(True)),
        "totalEvents": await count(db, Event.id),
        "totalFeedback": await count(db, Feedback.id),
    }

    growth = {
        "staffGrowth": await monthly_growth(db, Staff.created_at, now),
        "studentGrowth": await monthly_growth(db, Student.created_at, now),
        "notesGrowth": await monthly_growth(db, Note.created_at, now),
        "eventsGrowth": await monthly_growth(db, Event.created_at, now),
    }

    return {
        "overview": overview,
        "activity": {"recentActivity": await recent_activity(db, now)},
        "growth": growth,
    }

async def department_stats(db: AsyncSession) -> list:
    result = await db.execute(
        select(Student.department, func.count(Student.student_id)).group_by(Student.department)
    )
    students = {dept: n for dept, n in result.all()}

    result = await db.execute(
        select(Staff.department, func.count(Staff.staff_id))
        .where(Staff.is_active.is_(True))
        .group_by(Staff.department)
    )
    staff = {dept: n for dept, n in result.all()}

    departments = sorted(set(students) | set(staff), key=lambda d: d or "")
    return [
        {"department": dept, "students": students.get(dept, 0), "staff": staff.get(dept, 0)}
        for dept in departments
    ]

async def semester_stats(db: AsyncSession) -> list:
    result = await db.execute(
        select(Student.semester, func.count(Student.student_id))
        .group_by(Student.semester)
        .order_by(Student.semester)
    )
    return [
        {"semester": ordinal(semester) if semester is not None else "N/A", "count": n}
        for semester, n in result.all()
    ]

async def attendance_by_student(db: AsyncSession) -> dict:
    result = await db.execute(select(StudentAttendance.student_id, StudentAttendance.status))
    statuses = defaultdict(list)
    for student_id, status in result.all():
        statuses[student_id].append(status)
    return statuses

def attendance_stats(statuses: dict) -> dict:
    buckets = {"excellent": 0, "good": 0, "average": 0, "poor": 0}
    for student_statuses in statuses.values():
        if not student_statuses:
            continue
        buckets[attendance_bucket(attendance_summary(student_statuses)[2])] += 1
    return buckets

async def top_performers(db: AsyncSession, statuses: dict) -> list:
    """
    Rank students by 30% attendance and 70% average of their five latest marks.
    """
    result = await db.execute(
        select(StudentMarks.student_id, StudentMarks.marks, StudentMarks.max_marks)
        .order_by(StudentMarks.created_at.desc(), StudentMarks.id.desc())
    )
    latest_marks = defaultdict(list)
    for student_id, marks, max_marks in result.all():
        if len(latest_marks[student_id]) < 5:
            latest_marks[student_id].append((marks, max_marks))

    result = await db.execute(select(Student))
    performers = []
    for student in result.scalars().all():
        student_statuses = statuses.get(student.student_id, [])
        total, present, _ = attendance_summary(student_statuses)
        attendance = present / total * 100 if total else 0.0
        average_marks = marks_percentage(latest_marks.get(student.student_id, []))
        score = performance_score(attendance, average_marks)
        if score <= 0:
            continue
        performers.append({
            "id": str(student.student_id),
            "name": student.full_name,
            "department": student.department,
            "semester": student.semester,
            "attendance": round(attendance, 1),
            "averageMarks": round(average_marks, 1),
            "performanceScore": round(score, 1),
        })

    performers.sort(key=lambda p: p["performanceScore"], reverse=True)
    return performers[:10]

async def system_health(db: AsyncSession, now: datetime) -> dict:
    total_users = (
        await count(db, Student.student_id)
        + await count(db, Staff.staff_id)
        + await count(db, Parent.parent_id)
    )
    since = now - timedelta(hours=24)
    recent = (
        await count(db, Note.id, Note.created_at >= since)
        + await count(db, Event.id, Event.created_at >= since)
        + await count(db, Feedback.id, Feedback.created_at >= since)
    )
    return {
        "totalUsers": total_users,
        "recentActivity": recent,
        "uptime": format_uptime(time.time() - STARTED_AT),
    }

@router.get("/admin/dashboard/analytics")
async def dashboard_analytics(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Department, semester and attendance breakdowns, six-month growth,
    top performers and system health.
    """
    now = datetime.utcnow()
    since = month_start(now, 6)
    statuses = await attendance_by_student(db)

    growth = {}
    for key, column in (("students", Student.created_at), ("staff", Staff.created_at), ("notes", Note.created_at)):
        result = await db.execute(select(column).where(column >= since))
        growth[key] = count_by_month((row[0] for row in result.all()), since)

    return {
        "departmentStats": await department_stats(db),
        "semesterStats": await semester_stats(db),
        "attendanceStats": attendance_stats(statuses),
        "monthlyGrowth": growth,
        "topPerformers": await top_performers(db, statuses),
        "systemHealth": await system_health(db, now),
        "generatedAt": now.isoformat(),
    }
