import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from case_portal.database import get_db
from case_portal.models.students import Student, Subject, StudentAssignment, InternalMarks
from case_portal.schemas.academic import (
    AssignmentCreate, AssignmentUpdate, InternalMarksCreate, InternalMarksUpdate,
)
from case_portal.middleware.authentication import CurrentAccount, require_faculty
from case_portal.services.exports import parse_semester
from case_portal.services.grading import (
    validate_internal_marks, calculate_internal_total, calculate_percentage, grade_for_percentage,
)
from case_portal.services.notifier import notify_student
from case_portal.services.parsing import to_int, parse_date, iso
from case_portal.services.presenters import assignment_to_dict

logger = logging.getLogger(__name__)

router = APIRouter()

def internal_marks_to_dict(mark: InternalMarks, student: Optional[Student] = None) -> dict:
    percentage = calculate_percentage(mark.total_marks)
    data = {
        "id": str(mark.id),
        "student_id": str(mark.student_id),
        "subject": mark.subject,
        "academic_year": mark.academic_year,
        "internal1_marks": float(mark.internal1_marks),
        "internal2_marks": float(mark.internal2_marks),
        "assignment_marks": float(mark.assignment_marks),
        "total_marks": mark.total_marks,
        "percentage": percentage,
        "grade": grade_for_percentage(percentage),
        "created_at": iso(mark.created_at),
        "updated_at": iso(mark.updated_at),
    }
    if student is not None:
        data.update({
            "student_name": student.full_name,
            "department": student.department,
            "semester": student.semester,
            "section": student.section,
            "email_id": student.email_id,
        })
    return data

def parse_mark(value) -> float:
    if value is None or value == "":
        return 0
    try:
        return float(value)
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid marks value: {value}")

# Assignments

async def create_assignment(db: AsyncSession, item, assigned_by: int) -> StudentAssignment:
    """Create one assignment and notify the student. The caller commits."""
    if not item.title or not item.dueDate or item.studentId in (None, ""):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="studentId, title and dueDate are required")

    try:
        student_id = to_int(item.studentId)
        subject_id = to_int(item.subjectId)
        due_date = parse_date(item.dueDate)
        max_marks = to_int(item.maxMarks) or 100
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not await db.get(Student, student_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    if subject_id is not None and not await db.get(Subject, subject_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")

    assignment = StudentAssignment(
        student_id=student_id,
        subject_id=subject_id,
        title=item.title,
        description=item.description or "",
        due_date=due_date,
        max_marks=max_marks,
        status="pending",
        assigned_by=assigned_by,
    )
    db.add(assignment)
    await db.flush()

    notify_student(
        db, student_id, "New Assignment",
        f"A new assignment \"{item.title}\" has been assigned. Due date: {due_date.isoformat()}",
        type="Assignment", related_id=assignment.id,
    )
    return assignment

@router.get("/admin/academic/assignments")
async def list_assignments(
    department: Optional[str] = None,
    semester: Optional[str] = None,
    section: Optional[str] = None,
    subject: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    """
    Assignments joined with their student and subject, earliest due first.
    """
    query = (
        select(StudentAssignment, Student, Subject)
        .join(Student, Student.student_id == StudentAssignment.student_id)
        .outerjoin(Subject, Subject.id == StudentAssignment.subject_id)
    )

    if subject:
        try:
            query = query.where(StudentAssignment.subject_id == to_int(subject))
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if status_filter:
        query = query.where(StudentAssignment.status == status_filter)
    if department and department != "all":
        query = query.where(Student.department == department)
    if semester and semester != "all":
        query = query.where(Student.semester == parse_semester(semester))
    if section and section != "all":
        query = query.where(Student.section == section)

    result = await db.execute(query.order_by(StudentAssignment.due_date, StudentAssignment.student_id))
    assignments = [assignment_to_dict(a, student, subj) for a, student, subj in result.all()]

    return {"success": True, "assignments": assignments}

@router.post("/admin/academic/assignments", status_code=status.HTTP_201_CREATED)
async def create_assignments(
    assignment_data: AssignmentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    """
    Create an assignment, or one per bulkData item.
    """
    assigned_by = current_user.id

    if assignment_data.bulkData is not None:
        results = []
        for item in assignment_data.bulkData:
            student_ref = str(item.studentId)
            try:
                assignment = await create_assignment(db, item, assigned_by)
                await db.commit()
                results.append({"success": True, "id": str(assignment.id), "studentId": student_ref})
            except Exception as e:
                await db.rollback()
                detail = e.detail if isinstance(e, HTTPException) else "Failed to create assignment"
                logger.warning(f"Assignment creation failed for student {student_ref}: {str(e)}")
                results.append({"success": False, "studentId": student_ref, "error": detail})
        return {"success": True, "results": results}

    assignment = await create_assignment(db, assignment_data, assigned_by)
    await db.commit()

    return {"success": True, "id": str(assignment.id), "data": assignment_to_dict(assignment)}

@router.get("/admin/academic/assignments/{assignment_id}")
async def get_assignment(
    assignment_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    assignment = await db.get(StudentAssignment, assignment_id)
    if not assignment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")

    student = await db.get(Student, assignment.student_id)
    subject = await db.get(Subject, assignment.subject_id) if assignment.subject_id else None
    return {"success": True, "assignment": assignment_to_dict(assignment, student, subject)}

@router.put("/admin/academic/assignments/{assignment_id}")
async def update_assignment(
    assignment_id: int,
    assignment_data: AssignmentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    """
    Update an assignment. Recording marks, a grade or feedback marks it graded.
    """
    if not assignment_data.title or not assignment_data.dueDate:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title and due date are required")

    assignment = await db.get(StudentAssignment, assignment_id)
    if not assignment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")

    try:
        assignment.title = assignment_data.title
        assignment.due_date = parse_date(assignment_data.dueDate)
        if assignment_data.description is not None:
            assignment.description = assignment_data.description
        if assignment_data.maxMarks not in (None, ""):
            assignment.max_marks = to_int(assignment_data.maxMarks)
        if assignment_data.subjectId not in (None, ""):
            assignment.subject_id = to_int(assignment_data.subjectId)
        if assignment_data.submissionLink is not None:
            assignment.submission_link = assignment_data.submissionLink
        if assignment_data.status:
            assignment.status = assignment_data.status

        graded = False
        if assignment_data.obtainedMarks not in (None, ""):
            assignment.obtained_marks = to_int(assignment_data.obtainedMarks)
            graded = True
        if assignment_data.grade:
            assignment.grade = assignment_data.grade
            graded = True
        if assignment_data.feedback:
            assignment.feedback = assignment_data.feedback
            graded = True
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if graded:
        assignment.status = "graded"
        assignment.graded_at = datetime.utcnow()

    notify_student(
        db, assignment.student_id, "Assignment Updated",
        f"Your assignment \"{assignment.title}\" has been updated.",
        type="Assignment", related_id=assignment.id,
    )
    await db.commit()

    return {"success": True, "assignment": assignment_to_dict(assignment)}

@router.delete("/admin/academic/assignments/{assignment_id}")
async def delete_assignment(
    assignment_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    assignment = await db.get(StudentAssignment, assignment_id)
    if not assignment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")

    await db.delete(assignment)
    await db.commit()

    return {"success": True, "message": "Assignment deleted successfully"}

# Internal marks

@router.get("/admin/academic/internal-marks")
async def list_internal_marks(
    student_id: Optional[str] = None,
    semester: Optional[str] = None,
    subject: Optional[str] = None,
    academic_year: Optional[str] = None,
    department: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    """
    Internal marks with student details, newest academic year first.
    """
    query = select(InternalMarks, Student).join(Student, Student.student_id == InternalMarks.student_id)

    if student_id:
        try:
            query = query.where(InternalMarks.student_id == int(student_id))
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid student ID format")
    if semester and semester != "all":
        query = query.where(Student.semester == parse_semester(semester))
    if subject:
        query = query.where(func.lower(InternalMarks.subject).like(f"%{subject.lower()}%"))
    if academic_year:
        query = query.where(InternalMarks.academic_year == academic_year)
    if department:
        query = query.where(Student.department == department)

    result = await db.execute(
        query.order_by(InternalMarks.academic_year.desc(), InternalMarks.subject, InternalMarks.created_at.desc())
    )
    marks = [internal_marks_to_dict(mark, student) for mark, student in result.all()]

    return {"success": True, "data": marks, "count": len(marks)}

@router.post("/admin/academic/internal-marks")
async def save_internal_marks(
    marks_data: InternalMarksCreate,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    """
    Record internal marks. An existing row for the same student, subject and
    academic year is updated instead.
    """
    if marks_data.student_id in (None, "") or not marks_data.subject or not marks_data.academic_year:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields: student_id, subject, academic_year"
        )

    internal1 = parse_mark(marks_data.internal1_marks)
    internal2 = parse_mark(marks_data.internal2_marks)
    assignment = parse_mark(marks_data.assignment_marks)
    try:
        validate_internal_marks(internal1, internal2, assignment)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        student_id = int(str(marks_data.student_id).strip())
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid student ID format")

    student = await db.get(Student, student_id)
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")

    total = calculate_internal_total(internal1, internal2, assignment)

    result = await db.execute(
        select(InternalMarks).where(
            InternalMarks.student_id == student_id,
            InternalMarks.subject == marks_data.subject,
            InternalMarks.academic_year == marks_data.academic_year,
        )
    )
    mark = result.scalars().first()

    if mark:
        message = "Internal marks updated successfully"
    else:
        mark = InternalMarks(
            student_id=student_id,
            subject=marks_data.subject,
            academic_year=marks_data.academic_year,
        )
        db.add(mark)
        message = "Internal marks created successfully"
        response.status_code = status.HTTP_201_CREATED

    mark.internal1_marks = internal1
    mark.internal2_marks = internal2
    mark.assignment_marks = assignment
    mark.total_marks = total
    await db.commit()

    logger.info(f"{message} for student {student_id} in {mark.subject}")
    return {"success": True, "message": message, "data": internal_marks_to_dict(mark, student)}

@router.get("/admin/academic/internal-marks/{mark_id}")
async def get_internal_marks(
    mark_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    mark = await db.get(InternalMarks, mark_id)
    if not mark:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Internal marks not found")

    student = await db.get(Student, mark.student_id)
    return {"success": True, "data": internal_marks_to_dict(mark, student)}

@router.put("/admin/academic/internal-marks/{mark_id}")
async def update_internal_marks(
    mark_id: int,
    marks_data: InternalMarksUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    """
    Update internal marks, keeping fields that are not supplied, and
    recompute the total.
    """
    mark = await db.get(InternalMarks, mark_id)
    if not mark:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Internal marks not found")

    internal1 = mark.internal1_marks if marks_data.internal1_marks is None else parse_mark(marks_data.internal1_marks)
    internal2 = mark.internal2_marks if marks_data.internal2_marks is None else parse_mark(marks_data.internal2_marks)
    assignment = mark.assignment_marks if marks_data.assignment_marks is None else parse_mark(marks_data.assignment_marks)

    try:
        validate_internal_marks(internal1, internal2, assignment)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if marks_data.subject:
        mark.subject = marks_data.subject
    if marks_data.academic_year:
        mark.academic_year = marks_data.academic_year
    mark.internal1_marks = internal1
    mark.internal2_marks = internal2
    mark.assignment_marks = assignment
    mark.total_marks = calculate_internal_total(internal1, internal2, assignment)
    await db.commit()

    student = await db.get(Student, mark.student_id)
    return {
        "success": True,
        "message": "Internal marks updated successfully",
        "data": internal_marks_to_dict(mark, student),
    }

@router.delete("/admin/academic/internal-marks/{mark_id}")
async def delete_internal_marks(
    mark_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    mark = await db.get(InternalMarks, mark_id)
    if not mark:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Internal marks not found")

    await db.delete(mark)
    await db.commit()

    return {"success": True, "message": "Internal marks deleted successfully"}
