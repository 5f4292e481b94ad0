import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query, UploadFile, File
from sqlalchemy import or_, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from case_portal.database import get_db
from case_portal.models.staff import Staff, StaffAttendance, StaffLeave, StaffNotification
from case_portal.schemas.staff import StaffCreate, StaffUpdate
from case_portal.middleware.authentication import CurrentAccount, require_admin
from case_portal.services.auth import get_password_hash
from case_portal.services.cloudinary import upload_profile_picture
from case_portal.services.notifier import notify_staff
from case_portal.services.parsing import to_int, to_decimal, parse_date, iso
from case_portal.services.presenters import staff_to_dict, notification_to_dict
from case_portal.services.students import delete_staff_records

logger = logging.getLogger(__name__)

router = APIRouter()

def parse_staff_id(value) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid staff ID")

def pick(data: dict, *keys):
    """First non-empty value among camelCase and snake_case spellings."""
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return None

def apply_staff_fields(staff: Staff, data: dict) -> None:
    first_name = pick(data, "firstName", "first_name")
    if first_name:
        staff.first_name = first_name
    last_name = pick(data, "lastName", "last_name")
    if last_name is not None:
        staff.last_name = last_name

    for field in ("username", "email", "department", "role", "availability", "profile_picture"):
        value = data.get(field)
        if value not in (None, ""):
            setattr(staff, field, value)

    contact = pick(data, "phone", "contactNumber", "contact_number")
    if contact is not None:
        staff.contact_number = contact
    block = pick(data, "blockNumber", "block_number")
    if block is not None:
        staff.block_number = block
    room = pick(data, "roomNumber", "room_number")
    if room is not None:
        staff.room_number = room

    if pick(data, "salary") is not None:
        staff.salary = to_decimal(data["salary"])
    if pick(data, "experience") is not None:
        staff.experience = to_int(data["experience"])
    hire_date = pick(data, "hireDate", "hire_date")
    if hire_date is not None:
        staff.hire_date = parse_date(hire_date)
    if data.get("is_active") is not None:
        staff.is_active = data["is_active"]
    if data.get("password"):
        staff.password_hash = get_password_hash(data["password"])

async def staff_with_activity(db: AsyncSession, staff: Staff) -> dict:
    """Staff member with 10 latest attendance rows, 5 leaves, 5 notifications and counts."""
    data = staff_to_dict(staff)

    result = await db.execute(
        select(StaffAttendance)
        .where(StaffAttendance.staff_id == staff.staff_id)
        .order_by(StaffAttendance.date.desc())
        .limit(10)
    )
    data["attendance"] = [
        {"id": a.id, "date": iso(a.date), "status": a.status} for a in result.scalars().all()
    ]

    result = await db.execute(
        select(StaffLeave)
        .where(StaffLeave.staff_id == staff.staff_id)
        .order_by(StaffLeave.applied_at.desc())
        .limit(5)
    )
    data["leave"] = [
        {
            "id": leave.id,
            "leave_type": leave.leave_type,
            "start_date": iso(leave.start_date),
            "end_date": iso(leave.end_date),
            "status": leave.status,
        }
        for leave in result.scalars().all()
    ]

    result = await db.execute(
        select(StaffNotification)
        .where(StaffNotification.staff_id == staff.staff_id)
        .order_by(StaffNotification.created_at.desc(), StaffNotification.id.desc())
        .limit(5)
    )
    data["notifications"] = [notification_to_dict(n) for n in result.scalars().all()]

    counts = {}
    for key, model in (("attendance", StaffAttendance), ("leave", StaffLeave), ("notifications", StaffNotification)):
        result = await db.execute(select(func.count(model.id)).where(model.staff_id == staff.staff_id))
        counts[key] = result.scalar() or 0
    data["_count"] = counts

    return data

@router.get("/admin/staff")
async def list_staff(
    department: Optional[str] = None,
    search: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    List staff members. The status filter matches availability.
    """
    query = select(Staff)

    if department and department != "all":
        query = query.where(Staff.department == department)
    if status_filter and status_filter != "all":
        query = query.where(Staff.availability == status_filter)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(or_(
            func.lower(Staff.first_name).like(pattern),
            func.lower(Staff.last_name).like(pattern),
            func.lower(Staff.email).like(pattern),
            func.lower(Staff.username).like(pattern),
        ))

    result = await db.execute(query.order_by(Staff.department, Staff.first_name))
    staff_members = result.scalars().all()

    return {"success": True, "data": [await staff_with_activity(db, s) for s in staff_members]}

@router.post("/admin/staff", status_code=status.HTTP_201_CREATED)
async def create_staff(
    staff_data: StaffCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Create a staff member and send them a welcome notification.
    """
    data = staff_data.model_dump()

    first_name = pick(data, "firstName", "first_name")
    username = data.get("username")
    if not first_name or not username:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="First name and username are required")

    # Check if username or email is taken
    conditions = [Staff.username == username]
    if data.get("email"):
        conditions.append(Staff.email == data["email"])
    result = await db.execute(select(Staff.staff_id).where(or_(*conditions)))
    if result.first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username or email already exists")

    staff = Staff(
        first_name=first_name,
        last_name="",
        username=username,
        block_number="A",
        room_number="101",
        role="Faculty",
        availability="Available",
        is_active=True,
    )
    try:
        apply_staff_fields(staff, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    db.add(staff)
    await db.flush()

    notify_staff(db, staff.staff_id, "Welcome to the Team!",
                 f"Welcome {staff.first_name}! Your account has been created successfully.")
    await db.commit()

    logger.info(f"Staff created: {staff.staff_id}")
    return {"success": True, "data": await staff_with_activity(db, staff)}

@router.put("/admin/staff")
async def update_staff(
    staff_data: StaffUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Update the staff member named by staff_id in the body.
    """
    data = staff_data.model_dump(exclude_unset=True)
    if data.get("staff_id") in (None, ""):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Staff ID is required")

    staff_id = parse_staff_id(data.pop("staff_id"))
    staff = await db.get(Staff, staff_id)
    if not staff:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Staff member not found")

    try:
        apply_staff_fields(staff, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    notify_staff(db, staff_id, "Profile Updated",
                 "Your profile information has been updated by the administrator.")
    await db.commit()

    return {"success": True, "data": await staff_with_activity(db, staff)}

@router.delete("/admin/staff")
async def delete_staff(
    staffId: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Delete a staff member with their notifications, attendance and leave.
    """
    if not staffId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Staff ID is required")

    staff_id = parse_staff_id(staffId)
    staff = await db.get(Staff, staff_id)
    if not staff:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Staff member not found")

    name = staff.full_name
    await delete_staff_records(db, staff_id)
    await db.commit()

    logger.info(f"Staff deleted: {staff_id}")
    return {"success": True, "message": f"Staff member {name} has been deleted successfully."}

@router.get("/admin/staff/list")
async def list_active_staff(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    result = await db.execute(
        select(Staff).where(Staff.is_active.is_(True)).order_by(Staff.first_name, Staff.last_name)
    )
    staff = [staff_to_dict(s) for s in result.scalars().all()]
    return {"success": True, "staff": staff, "count": len(staff)}

@router.get("/admin/staff/search")
async def search_staff(
    q: Optional[str] = None,
    department: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Search active staff by name or email, optionally within a department.
    """
    query = select(Staff).where(Staff.is_active.is_(True))

    if q:
        pattern = f"%{q.lower()}%"
        query = query.where(or_(
            func.lower(Staff.first_name).like(pattern),
            func.lower(Staff.last_name).like(pattern),
            func.lower(Staff.email).like(pattern),
        ))
    if department and department != "all":
        query = query.where(func.lower(Staff.department) == department.lower())

    result = await db.execute(query.order_by(Staff.first_name, Staff.last_name).limit(limit))
    staff = [staff_to_dict(s) for s in result.scalars().all()]

    return {
        "success": True,
        "staff": staff,
        "count": len(staff),
        "query": {"q": q, "department": department, "limit": limit},
    }

@router.post("/admin/staff/{staff_id}/photo")
async def upload_staff_photo(
    staff_id: str,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Upload a profile picture and store its URL on the staff record.
    """
    staff = await db.get(Staff, parse_staff_id(staff_id))
    if not staff:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Staff member not found")

    staff.profile_picture = await upload_profile_picture(file)
    await db.commit()

    return {"success": True, "profile_picture": staff.profile_picture}

@router.get("/admin/department")
async def list_departments(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Distinct departments of active staff.
    """
    result = await db.execute(
        select(Staff.department)
        .where(Staff.is_active.is_(True), Staff.department.isnot(None))
        .distinct()
        .order_by(Staff.department)
    )
    departments = [
        {"name": name, "value": name}
        for name in (row[0] for row in result.all())
        if name and name.strip()
    ]
    return {"success": True, "departments": departments}
