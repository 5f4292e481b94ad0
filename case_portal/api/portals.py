import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from case_portal.database import get_db
from case_portal.models.parents import ParentChild
from case_portal.models.students import Student, Subject, StudentAttendance, StudentAssignment, InternalMarks
from case_portal.middleware.authentication import CurrentAccount, RoleChecker, require_student, require_parent
from case_portal.api.academic import internal_marks_to_dict
from case_portal.services.attendance import attendance_summary, subject_breakdown
from case_portal.services.grading import summarize_internal_marks
from case_portal.services.presenters import attendance_to_dict, assignment_to_dict, child_link_to_dict, student_to_dict

logger = logging.getLogger(__name__)

router = APIRouter()

any_account = RoleChecker(["admin", "staff", "student", "parent"])

async def is_linked(db: AsyncSession, parent_id: int, student_id: int) -> bool:
    result = await db.execute(
        select(ParentChild.id).where(
            ParentChild.parent_id == parent_id,
            ParentChild.child_student_id == student_id,
        )
    )
    return result.first() is not None

async def accessible_student_id(db: AsyncSession, current_user: CurrentAccount, student_id: Optional[str]) -> int:
    """
    The student whose records the caller may read: students read their own,
    parents their linked children, admin and staff anyone.
    """
    if current_user.role == "student":
        return current_user.id

    if not student_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Student ID is required")
    try:
        sid = int(student_id.strip())
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid student ID")

    if current_user.role == "parent" and not await is_linked(db, current_user.id, sid):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied for this student")
    return sid

async def attendance_report(db: AsyncSession, student_id: int) -> dict:
    result = await db.execute(
        select(StudentAttendance)
        .where(StudentAttendance.student_id == student_id)
        .order_by(StudentAttendance.date.desc(), StudentAttendance.id.desc())
    )
    rows = result.scalars().all()
    total, present, percentage = attendance_summary(r.status for r in rows)
    return {
        "attendance": [attendance_to_dict(r) for r in rows],
        "breakdown": subject_breakdown(rows),
        "summary": {"totalClasses": total, "presentClasses": present, "percentage": percentage},
    }

async def internal_marks_report(db: AsyncSession, student_id: int, subject: Optional[str] = None,
                                academic_year: Optional[str] = None) -> dict:
    query = select(InternalMarks).where(InternalMarks.student_id == student_id)
    if subject:
        query = query.where(func.lower(InternalMarks.subject).like(f"%{subject.lower()}%"))
    if academic_year:
        query = query.where(InternalMarks.academic_year == academic_year)

    result = await db.execute(
        query.order_by(InternalMarks.academic_year.desc(), InternalMarks.subject, InternalMarks.created_at.desc())
    )
    rows = result.scalars().all()
    return {
        "marks": [internal_marks_to_dict(m) for m in rows],
        "summary": summarize_internal_marks(rows),
    }

@router.get("/student/attendance")
async def student_attendance(
    student_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(any_account)
):
    """
    Attendance rows with a per-subject breakdown and the overall percentage.
    """
    sid = await accessible_student_id(db, current_user, student_id)
    if not await db.get(Student, sid):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")

    return {"success": True, "studentId": str(sid), **await attendance_report(db, sid)}

@router.get("/student/assignments")
async def student_assignments(
    status_filter: Optional[str] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_student)
):
    query = (
        select(StudentAssignment, Subject)
        .outerjoin(Subject, Subject.id == StudentAssignment.subject_id)
        .where(StudentAssignment.student_id == current_user.id)
    )
    if status_filter and status_filter != "all":
        query = query.where(StudentAssignment.status == status_filter)

    result = await db.execute(query.order_by(StudentAssignment.due_date, StudentAssignment.id))
    assignments = [assignment_to_dict(a, subject=subj) for a, subj in result.all()]
    return {"success": True, "assignments": assignments}

@router.get("/student/internal-marks")
async def student_internal_marks(
    subject: Optional[str] = None,
    academic_year: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_student)
):
    """
    The signed-in student's internal marks with a summary.
    """
    report = await internal_marks_report(db, current_user.id, subject, academic_year)
    return {"success": True, **report}

@router.get("/parent-dashboard/children")
async def parent_children(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_parent)
):
    result = await db.execute(
        select(ParentChild)
        .where(ParentChild.parent_id == current_user.id)
        .order_by(ParentChild.is_primary.desc(), ParentChild.id)
    )
    return {"success": True, "children": [child_link_to_dict(c) for c in result.scalars().all()]}

@router.get("/parent-dashboard/children/{student_id}/performance")
async def child_performance(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_parent)
):
    """
    Internal marks and attendance of a linked child.
    """
    sid = await accessible_student_id(db, current_user, student_id)
    student = await db.get(Student, sid)
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")

    attendance = await attendance_report(db, sid)
    return {
        "success": True,
        "student": student_to_dict(student),
        "internalMarks": await internal_marks_report(db, sid),
        "attendance": {"summary": attendance["summary"], "breakdown": attendance["breakdown"]},
    }
