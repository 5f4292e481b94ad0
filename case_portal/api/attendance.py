import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from case_portal.database import get_db
from case_portal.models.students import Student, StudentAttendance
from case_portal.schemas.attendance import AttendanceCreate, AttendanceUpdate
from case_portal.middleware.authentication import CurrentAccount, require_faculty
from case_portal.services.attendance import resolve_subject, upsert_attendance
from case_portal.services.exports import parse_semester
from case_portal.services.notifier import notify_student
from case_portal.services.parsing import to_int, parse_date
from case_portal.services.presenters import attendance_to_dict

logger = logging.getLogger(__name__)

router = APIRouter()

async def mark_attendance(db: AsyncSession, item, marked_by: str) -> StudentAttendance:
    """Upsert one attendance mark and notify the student. The caller commits."""
    try:
        student_id = to_int(item.studentId)
        on_date = parse_date(item.date)
        subject_id = to_int(item.subjectId)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if student_id is None or on_date is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")

    if not await db.get(Student, student_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")

    subject = await resolve_subject(db, subject_id, item.subject)
    record = await upsert_attendance(db, student_id, on_date, item.status.value, subject, marked_by)

    notify_student(
        db, student_id, "Attendance Updated",
        f"Your attendance for {subject.name} on {on_date.isoformat()} has been marked as {item.status.value}.",
        type="Attendance",
    )
    return record

@router.get("/admin/attendance")
async def list_attendance(
    department: Optional[str] = None,
    semester: Optional[str] = None,
    section: Optional[str] = None,
    date: Optional[str] = None,
    subject: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    """
    Attendance rows joined with their student, newest date first.
    """
    query = select(StudentAttendance, Student).join(Student, Student.student_id == StudentAttendance.student_id)

    try:
        if date:
            query = query.where(StudentAttendance.date == parse_date(date))
        if subject:
            subject_id = to_int(subject)
            query = query.where(StudentAttendance.subject_id == subject_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if department and department != "all":
        query = query.where(Student.department == department)
    if semester and semester != "all":
        query = query.where(Student.semester == parse_semester(semester))
    if section and section != "all":
        query = query.where(Student.section == section)

    result = await db.execute(query.order_by(StudentAttendance.date.desc(), Student.first_name))
    attendance = [attendance_to_dict(record, student) for record, student in result.all()]

    return {"success": True, "attendance": attendance}

@router.post("/admin/attendance")
async def record_attendance(
    attendance_data: AttendanceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    """
    Mark attendance for one student, or for many through bulkData.
    Bulk items are committed one at a time and failures are reported per item.
    """
    marked_by = current_user.display_name

    if attendance_data.bulkData is not None:
        results = []
        for item in attendance_data.bulkData:
            student_ref = str(item.studentId)
            try:
                record = await mark_attendance(db, item, marked_by)
                await db.commit()
                results.append({"success": True, "id": str(record.id), "studentId": student_ref})
            except Exception as e:
                await db.rollback()
                detail = e.detail if isinstance(e, HTTPException) else "Failed to update attendance"
                logger.warning(f"Attendance update failed for student {student_ref}: {str(e)}")
                results.append({"success": False, "studentId": student_ref, "error": detail})
        return {"success": True, "results": results}

    if attendance_data.studentId in (None, "") or not attendance_data.date or attendance_data.status is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")

    record = await mark_attendance(db, attendance_data, marked_by)
    await db.commit()

    return {"success": True, "id": str(record.id)}

@router.put("/admin/attendance/{attendance_id}")
async def update_attendance(
    attendance_id: int,
    attendance_data: AttendanceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    if attendance_data.status is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Status is required")

    record = await db.get(StudentAttendance, attendance_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Attendance record not found")

    record.status = attendance_data.status.value
    await db.commit()

    return {"success": True, "data": attendance_to_dict(record)}

@router.delete("/admin/attendance/{attendance_id}")
async def delete_attendance(
    attendance_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    record = await db.get(StudentAttendance, attendance_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Attendance record not found")

    await db.delete(record)
    await db.commit()

    return {"success": True, "message": "Attendance record deleted successfully"}
