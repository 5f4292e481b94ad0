import time
from collections import defaultdict
from typing import List, Dict

from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from case_portal.models.students import (
    Student, StudentAttendance, StudentMarks, InternalMarks, StudentAssignment, StudentNotification,
)
from case_portal.models.staff import Staff, StaffAttendance, StaffLeave, StaffNotification
from case_portal.models.parents import ParentChild
from case_portal.services.attendance import attendance_summary
from case_portal.services.presenters import (
    student_to_dict, attendance_to_dict, marks_to_dict, assignment_to_dict,
)

RECENT_ATTENDANCE = 10
RECENT_MARKS = 10
RECENT_ASSIGNMENTS = 5

async def generate_student_id(db: AsyncSession) -> int:
    """Millisecond clock value, bumped past the highest existing id."""
    result = await db.execute(select(func.max(Student.student_id)))
    highest = result.scalar() or 0
    return max(int(time.time() * 1000), highest + 1)

async def _group_rows(db: AsyncSession, model, student_ids, order_by, limit) -> Dict[int, list]:
    result = await db.execute(
        select(model).where(model.student_id.in_(student_ids)).order_by(*order_by)
    )
    grouped = defaultdict(list)
    for row in result.scalars().all():
        if len(grouped[row.student_id]) < limit:
            grouped[row.student_id].append(row)
    return grouped

async def _count_rows(db: AsyncSession, model, student_ids) -> Dict[int, int]:
    result = await db.execute(
        select(model.student_id, func.count(model.id))
        .where(model.student_id.in_(student_ids))
        .group_by(model.student_id)
    )
    return {student_id: count for student_id, count in result.all()}

async def students_with_activity(db: AsyncSession, students: List[Student]) -> List[dict]:
    """
    Remapped students with their recent attendance, marks and assignments.
    The attendance percentage covers the most recent attendance rows only.
    """
    student_ids = [s.student_id for s in students]
    if not student_ids:
        return []

    attendance = await _group_rows(
        db, StudentAttendance, student_ids,
        [StudentAttendance.date.desc(), StudentAttendance.id.desc()], RECENT_ATTENDANCE,
    )
    marks = await _group_rows(
        db, StudentMarks, student_ids,
        [StudentMarks.created_at.desc(), StudentMarks.id.desc()], RECENT_MARKS,
    )
    assignments = await _group_rows(
        db, StudentAssignment, student_ids,
        [StudentAssignment.created_at.desc(), StudentAssignment.id.desc()], RECENT_ASSIGNMENTS,
    )
    attendance_counts = await _count_rows(db, StudentAttendance, student_ids)
    marks_counts = await _count_rows(db, StudentMarks, student_ids)
    assignment_counts = await _count_rows(db, StudentAssignment, student_ids)

    data = []
    for student in students:
        sid = student.student_id
        rows = attendance.get(sid, [])
        total, present, percentage = attendance_summary(r.status for r in rows)

        item = student_to_dict(student)
        item.update({
            "attendance": percentage,
            "attendancePercentage": percentage,
            "totalClasses": total,
            "presentClasses": present,
            "recentAttendance": [attendance_to_dict(r) for r in rows],
            "marks": [marks_to_dict(m) for m in marks.get(sid, [])],
            "assignments": [assignment_to_dict(a) for a in assignments.get(sid, [])],
            "_count": {
                "attendance": attendance_counts.get(sid, 0),
                "marks": marks_counts.get(sid, 0),
                "assignments": assignment_counts.get(sid, 0),
            },
        })
        data.append(item)
    return data

async def delete_student_records(db: AsyncSession, student_id: int) -> None:
    """Delete a student and every dependent row. The caller commits."""
    for model in (StudentNotification, StudentAttendance, StudentMarks, InternalMarks, StudentAssignment):
        await db.execute(delete(model).where(model.student_id == student_id))
    await db.execute(delete(ParentChild).where(ParentChild.child_student_id == student_id))
    await db.execute(delete(Student).where(Student.student_id == student_id))

async def delete_staff_records(db: AsyncSession, staff_id: int) -> None:
    """Delete a staff member and every dependent row. The caller commits."""
    for model in (StaffNotification, StaffAttendance, StaffLeave):
        await db.execute(delete(model).where(model.staff_id == staff_id))
    await db.execute(delete(Staff).where(Staff.staff_id == staff_id))
