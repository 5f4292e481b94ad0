import logging
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from fastapi.responses import Response
from sqlalchemy import or_, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from case_portal.database import get_db
from case_portal.models.students import Student, StudentAttendance, StudentNotification
from case_portal.models.parents import ParentChild
from case_portal.schemas.students import StudentCreate, StudentUpdate, StudentExportRequest
from case_portal.middleware.authentication import CurrentAccount, RoleChecker, require_admin
from case_portal.services.auth import get_password_hash
from case_portal.services.attendance import attendance_percentage, matches_attendance_filter
from case_portal.services.exports import export_row, generate_csv, parse_semester
from case_portal.services.notifier import notify_student
from case_portal.services.parsing import to_int, parse_date, split_name
from case_portal.services.presenters import student_to_dict, notification_to_dict
from case_portal.services.students import (
    generate_student_id, students_with_activity, delete_student_records,
)

logger = logging.getLogger(__name__)

router = APIRouter()

lookup_access = RoleChecker(["admin", "staff", "parent"])

def parse_student_id(value) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid student ID")

def apply_student_fields(student: Student, data: dict) -> None:
    """Copy remapped request fields onto a student."""
    if data.get("name"):
        student.first_name, student.last_name = split_name(data["name"])
    else:
        if data.get("first_name"):
            student.first_name = data["first_name"].strip()
        if "last_name" in data and data["last_name"] is not None:
            student.last_name = data["last_name"].strip()

    email = data.get("email") or data.get("email_id")
    if email:
        student.email_id = email.strip()

    phone = data.get("phone") or data.get("contact_number")
    if phone is not None:
        student.contact_number = phone

    for field in ("department", "section", "address", "guardian_name", "guardian_phone"):
        if field in data and data[field] is not None:
            setattr(student, field, data[field])

    if data.get("semester") not in (None, ""):
        student.semester = parse_semester(data["semester"])
    if data.get("admission_year") not in (None, ""):
        student.admission_year = to_int(data["admission_year"])
    if data.get("date_of_birth"):
        student.date_of_birth = parse_date(data["date_of_birth"])
    if data.get("is_active") is not None:
        student.is_active = data["is_active"]
    if data.get("password"):
        student.password_hash = get_password_hash(data["password"])

async def ensure_email_available(db: AsyncSession, email: Optional[str], student_id: Optional[int] = None):
    if not email:
        return
    query = select(Student.student_id).where(Student.email_id == email.strip())
    if student_id is not None:
        query = query.where(Student.student_id != student_id)
    result = await db.execute(query)
    if result.first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

async def student_detail(db: AsyncSession, student: Student) -> dict:
    data = (await students_with_activity(db, [student]))[0]
    result = await db.execute(
        select(StudentNotification)
        .where(StudentNotification.student_id == student.student_id)
        .order_by(StudentNotification.created_at.desc(), StudentNotification.id.desc())
        .limit(5)
    )
    data["notifications"] = [notification_to_dict(n) for n in result.scalars().all()]
    return data

@router.get("/admin/students")
async def list_students(
    department: Optional[str] = None,
    semester: Optional[str] = None,
    section: Optional[str] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    List students with their recent activity. "all" disables a filter.
    """
    query = select(Student)

    if department and department != "all":
        query = query.where(Student.department == department)
    if semester and semester != "all":
        query = query.where(Student.semester == parse_semester(semester))
    if section and section != "all":
        query = query.where(Student.section == section)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(or_(
            func.lower(Student.first_name).like(pattern),
            func.lower(Student.last_name).like(pattern),
            func.lower(Student.email_id).like(pattern),
        ))

    result = await db.execute(query.order_by(Student.department, Student.semester, Student.first_name))
    students = result.scalars().all()

    return {"success": True, "data": await students_with_activity(db, students)}

@router.post("/admin/students", status_code=status.HTTP_201_CREATED)
async def create_student(
    student_data: StudentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Create a student. A missing student_id is generated from the clock.
    """
    data = student_data.model_dump()

    email = data.get("email") or data.get("email_id")
    first_name = split_name(data["name"])[0] if data.get("name") else data.get("first_name")
    if not email or not first_name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name and email are required")

    await ensure_email_available(db, email)

    if data.get("student_id") not in (None, ""):
        student_id = parse_student_id(data["student_id"])
        if await db.get(Student, student_id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Student ID already exists")
    else:
        student_id = await generate_student_id(db)

    student = Student(student_id=student_id, first_name=first_name, last_name="", is_active=True)
    try:
        apply_student_fields(student, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if student.semester is None:
        student.semester = 1
    if student.contact_number is None:
        student.contact_number = ""

    db.add(student)
    await db.commit()

    logger.info(f"Student created: {student_id}")

    response_data = student_to_dict(student)
    response_data["attendance"] = 0
    return {"success": True, "data": response_data}

async def _update_student(db: AsyncSession, student_id: int, data: dict, notify: bool) -> dict:
    student = await db.get(Student, student_id)
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")

    await ensure_email_available(db, data.get("email") or data.get("email_id"), student_id)

    try:
        apply_student_fields(student, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if notify:
        notify_student(db, student_id, "Profile Updated",
                       "Your profile information has been updated by the administrator.")

    await db.commit()
    return await student_detail(db, student)

@router.put("/admin/students")
async def update_student(
    student_data: StudentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Update a student identified by student_id (or id) in the body.
    """
    data = student_data.model_dump(exclude_unset=True)
    raw_id = data.pop("student_id", None) or data.pop("id", None)
    if raw_id in (None, ""):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Student ID is required")

    return {"success": True, "data": await _update_student(db, parse_student_id(raw_id), data, notify=False)}

@router.delete("/admin/students")
async def delete_student_by_query(
    studentId: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    if not studentId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Student ID is required")
    return await _delete_student(db, parse_student_id(studentId))

@router.post("/admin/students/export")
async def export_students(
    export_request: StudentExportRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Export students as JSON or CSV.
    """
    filters = export_request.filters
    query = select(Student)

    if filters.department and filters.department != "all":
        query = query.where(Student.department == filters.department)
    if filters.semester not in (None, "", "all"):
        query = query.where(Student.semester == parse_semester(filters.semester))
    if filters.section and filters.section != "all":
        query = query.where(Student.section == filters.section)
    if filters.status and filters.status != "all":
        query = query.where(Student.is_active.is_(filters.status == "Active"))
    else:
        query = query.where(Student.is_active.is_(True))

    result = await db.execute(query.order_by(Student.department, Student.first_name))
    students = result.scalars().all()

    statuses = {}
    if students:
        result = await db.execute(
            select(StudentAttendance.student_id, StudentAttendance.status)
            .where(StudentAttendance.student_id.in_([s.student_id for s in students]))
        )
        for student_id, att_status in result.all():
            statuses.setdefault(student_id, []).append(att_status)

    rows = []
    for student in students:
        pct = attendance_percentage(statuses.get(student.student_id, []))
        if matches_attendance_filter(pct, filters.attendance):
            rows.append(export_row(student, pct))

    today = date.today().isoformat()

    if export_request.format == "csv":
        return Response(
            content=generate_csv(rows, export_request.includeFields),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="students_export_{today}.csv"'},
        )

    return {
        "success": True,
        "data": rows,
        "count": len(rows),
        "exportDate": datetime.utcnow().isoformat(),
    }

@router.get("/admin/students/{student_id}")
async def get_student(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    student = await db.get(Student, parse_student_id(student_id))
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return {"success": True, "data": await student_detail(db, student)}

@router.put("/admin/students/{student_id}")
async def update_student_by_id(
    student_id: str,
    student_data: StudentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Update a student and let them know their profile changed.
    """
    data = student_data.model_dump(exclude_unset=True)
    data.pop("student_id", None)
    data.pop("id", None)
    return {"success": True, "data": await _update_student(db, parse_student_id(student_id), data, notify=True)}

@router.delete("/admin/students/{student_id}")
async def delete_student(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    return await _delete_student(db, parse_student_id(student_id))

async def _delete_student(db: AsyncSession, student_id: int) -> dict:
    student = await db.get(Student, student_id)
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")

    name = student.full_name
    await delete_student_records(db, student_id)
    await db.commit()

    logger.info(f"Student deleted: {student_id}")
    return {"success": True, "message": f"Student {name} has been deleted successfully."}

async def _check_lookup(db: AsyncSession, current_user: CurrentAccount, student: Student) -> None:
    # Parents only see their own children
    if current_user.role != "parent":
        return
    result = await db.execute(
        select(ParentChild.id).where(
            ParentChild.parent_id == current_user.id,
            ParentChild.child_student_id == student.student_id,
        )
    )
    if not result.first():
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied for this student")

@router.get("/students/search")
async def search_student(
    studentId: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(lookup_access)
):
    """
    Look up a single student's details by ID.
    """
    if not studentId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Student ID is required")

    student = await db.get(Student, parse_student_id(studentId))
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")

    await _check_lookup(db, current_user, student)
    return {"success": True, "data": await student_detail(db, student)}

@router.get("/student/details/{email}")
async def student_details_by_email(
    email: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(lookup_access)
):
    result = await db.execute(select(Student).where(func.lower(Student.email_id) == email.strip().lower()))
    student = result.scalars().first()
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")

    await _check_lookup(db, current_user, student)
    return {"success": True, "data": await student_detail(db, student)}
