import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from case_portal.database import get_db
from case_portal.models.staff import Staff
from case_portal.schemas.timetables import TimetableIn, TimetableEntryIn, TimetableAssignIn
from case_portal.middleware.authentication import CurrentAccount, require_admin, require_faculty, require_student
from case_portal.services import timetable_sync
from case_portal.services.exports import parse_semester
from case_portal.services.parsing import clean_str, to_int

logger = logging.getLogger(__name__)

router = APIRouter()

async def timetable_or_404(db: AsyncSession, timetable_id: str):
    timetable = await timetable_sync.get_timetable(db, timetable_id)
    if not timetable:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Timetable not found")
    return timetable

async def save(db: AsyncSession, data: dict, timetable_id: Optional[str] = None) -> dict:
    try:
        timetable = await timetable_sync.save_timetable(db, data, timetable_id)
    except ValueError as e:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    timetable = await timetable_sync.get_timetable(db, timetable.id)
    return {"success": True, "timetable": timetable_sync.serialize_timetable(timetable, timetable.entries)}

@router.get("/admin/timetables")
async def list_timetables(
    department: Optional[str] = None,
    semester: Optional[str] = None,
    section: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    timetables = await timetable_sync.list_timetables(
        db,
        department=department if department and department != "all" else None,
        semester=parse_semester(semester, None) if semester and semester != "all" else None,
        section=section if section and section != "all" else None,
    )
    return {
        "success": True,
        "timetables": [timetable_sync.serialize_timetable(t, t.entries) for t in timetables],
    }

@router.post("/admin/timetables")
async def create_timetable(
    timetable_data: TimetableIn,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Create or update a timetable. An id in the body updates that timetable.
    """
    return await save(db, timetable_data.model_dump(exclude_unset=True))

@router.get("/admin/timetables/assign")
async def list_assignments(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    assignments = await timetable_sync.list_assignments(db)
    return {"success": True, "assignments": [timetable_sync.serialize_assignment(a) for a in assignments]}

@router.post("/admin/timetables/assign", status_code=status.HTTP_201_CREATED)
async def assign_timetable(
    assign_data: TimetableAssignIn,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Assign a timetable to a department cohort or a faculty member.
    """
    data = {key: clean_str(value) if isinstance(value, str) else value
            for key, value in assign_data.model_dump().items()}

    if not data.get("timetable_id") or not data.get("assignment_type"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="timetable_id and assignment_type are required"
        )
    if data["assignment_type"] not in timetable_sync.ASSIGNMENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="assignment_type must be department or faculty"
        )

    try:
        data["target_semester"] = to_int(data.get("target_semester"))
        data["faculty_id"] = to_int(data.get("faculty_id"))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if data["assignment_type"] == "department" and not data.get("target_department"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="target_department is required for department assignments"
        )
    if data["assignment_type"] == "faculty":
        if data.get("faculty_id") is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="faculty_id is required for faculty assignments"
            )
        if not await db.get(Staff, data["faculty_id"]):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Faculty member not found")

    timetable = await timetable_or_404(db, data["timetable_id"])
    assignment = await timetable_sync.assign_timetable(db, timetable, data, current_user.display_name)

    return {
        "success": True,
        "message": "Timetable assigned successfully",
        "assignment": timetable_sync.serialize_assignment(assignment),
    }

@router.get("/admin/timetables/{timetable_id}")
async def get_timetable(
    timetable_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    timetable = await timetable_or_404(db, timetable_id)
    return {"success": True, "timetable": timetable_sync.serialize_timetable(timetable, timetable.entries)}

@router.put("/admin/timetables/{timetable_id}")
async def update_timetable(
    timetable_id: str,
    timetable_data: TimetableIn,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    data = timetable_data.model_dump(exclude_unset=True)
    data.pop("id", None)
    return await save(db, data, timetable_id)

@router.delete("/admin/timetables/{timetable_id}")
async def delete_timetable(
    timetable_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Delete a timetable with its entries and assignments.
    """
    await timetable_or_404(db, timetable_id)
    await timetable_sync.delete_timetable(db, timetable_id)
    logger.info(f"Timetable deleted: {timetable_id}")
    return {"success": True, "message": "Timetable deleted successfully"}

@router.get("/admin/timetables/{timetable_id}/entries")
async def list_entries(
    timetable_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    await timetable_or_404(db, timetable_id)
    entries = await timetable_sync.list_entries(db, timetable_id)
    return {"success": True, "entries": [timetable_sync.serialize_entry(e) for e in entries]}

@router.post("/admin/timetables/{timetable_id}/entries", status_code=status.HTTP_201_CREATED)
async def add_entry(
    timetable_id: str,
    entry_data: TimetableEntryIn,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    await timetable_or_404(db, timetable_id)
    try:
        entry = await timetable_sync.add_entry(db, timetable_id, entry_data.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"success": True, "entry": timetable_sync.serialize_entry(entry)}

@router.get("/timetable")
async def student_timetable(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_student)
):
    """
    The timetable assigned to the signed-in student's cohort.
    """
    assignment = await timetable_sync.resolve_student_timetable(db, current_user.account)
    if not assignment:
        return {"success": True, "timetable": None, "message": "No timetable has been assigned yet"}

    timetable = await timetable_sync.get_timetable(db, assignment.timetable_id)
    return {
        "success": True,
        "timetable": timetable_sync.serialize_timetable(timetable, timetable.entries) if timetable else None,
        "assignment": timetable_sync.serialize_assignment(assignment),
    }

@router.get("/staff/timetable")
async def staff_timetable(
    staffId: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    """
    Timetables of a faculty member. Staff accounts only see their own.
    """
    staff_id = current_user.id
    if staffId:
        try:
            staff_id = int(staffId)
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid staff ID")
    if current_user.role != "admin" and staff_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to perform this action"
        )

    staff = await db.get(Staff, staff_id)
    if not staff:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Staff member not found")

    data = await timetable_sync.resolve_staff_timetables(db, staff)
    return {"success": True, **data}
