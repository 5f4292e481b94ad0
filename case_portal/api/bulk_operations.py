import logging
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from case_portal.config import settings
from case_portal.database import get_db
from case_portal.models.staff import Staff
from case_portal.models.students import Student
from case_portal.schemas.attendance import AttendanceRecord
from case_portal.schemas.bulk import BulkOperationRequest
from case_portal.middleware.authentication import CurrentAccount, require_admin
from case_portal.api.attendance import mark_attendance
from case_portal.services.auth import get_password_hash
from case_portal.services.notifier import notify_student, notify_staff
from case_portal.services.parsing import to_int, clean_str
from case_portal.services.students import generate_student_id, delete_student_records, delete_staff_records

logger = logging.getLogger(__name__)

router = APIRouter()

USER_TYPES = ("students", "staff")

def failure(key: str, ref, error: Exception) -> dict:
    detail = error.detail if isinstance(error, HTTPException) else str(error)
    logger.warning(f"Bulk item {key}={ref} failed: {detail}")
    return {key: ref, "success": False, "error": detail}

def summary(label: str, results: List[dict]) -> dict:
    succeeded = sum(1 for r in results if r["success"])
    failed = len(results) - succeeded
    return {
        "success": True,
        "message": f"{label} {succeeded} successful, {failed} failed.",
        "results": results,
    }

def as_list(data, field: str) -> list:
    if data is None:
        return []
    if not isinstance(data, list):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} must be a list")
    return data

def as_dict(data, field: str) -> dict:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} must be an object")
    return data

def require_user_type(user_type) -> str:
    if user_type not in USER_TYPES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Type must be students or staff")
    return user_type

async def bulk_update_attendance(db: AsyncSession, data, marked_by: str) -> dict:
    results = []
    for item in as_list(data, "Attendance data"):
        ref = str(item.get("studentId")) if isinstance(item, dict) else None
        try:
            record = await mark_attendance(db, AttendanceRecord.model_validate(item), marked_by)
            await db.commit()
            results.append({"studentId": ref, "success": True, "id": str(record.id)})
        except Exception as e:
            await db.rollback()
            results.append(failure("studentId", ref, e))
    return summary("Bulk attendance update completed.", results)

async def bulk_send_notifications(db: AsyncSession, user_type: str, data) -> dict:
    """Notify listed recipients, or every active account of the type."""
    data = as_dict(data, "Notification data")
    title, message = data.get("title"), data.get("message")
    if not title or not message:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title and message are required")

    try:
        recipients = [int(str(r).strip()) for r in as_list(data.get("recipients"), "recipients")]
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid recipient ID")

    if user_type == "students":
        query = select(Student.student_id)
        if recipients:
            query = query.where(Student.student_id.in_(recipients))
        else:
            query = query.where(Student.is_active.is_(True))
        send = notify_student
    else:
        query = select(Staff.staff_id).where(Staff.is_active.is_(True))
        if recipients:
            query = query.where(Staff.staff_id.in_(recipients))
        send = notify_staff

    result = await db.execute(query)
    results = []
    for account_id in [row[0] for row in result.all()]:
        try:
            send(db, account_id, title, message, type="Info")
            await db.commit()
            results.append({"id": str(account_id), "success": True})
        except Exception as e:
            await db.rollback()
            results.append(failure("id", str(account_id), e))
    return summary("Bulk notification sent.", results)

async def bulk_update_status(db: AsyncSession, user_type: str, data) -> dict:
    """Set is_active on each listed student or staff member."""
    data = as_dict(data, "Status data")
    if not isinstance(data.get("status"), bool):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Status must be true or false")
    model = Student if user_type == "students" else Staff

    results = []
    for user_id in as_list(data.get("userIds"), "userIds"):
        ref = str(user_id)
        try:
            account = await db.get(model, to_int(user_id))
            if not account:
                raise ValueError("User not found")
            account.is_active = data["status"]
            await db.commit()
            results.append({"id": ref, "success": True})
        except Exception as e:
            await db.rollback()
            results.append(failure("id", ref, e))
    return summary("Bulk status update completed.", results)

async def import_student(db: AsyncSession, user: dict) -> int:
    email = clean_str(user.get("email"))
    if not email or not clean_str(user.get("firstName")):
        raise ValueError("First name and email are required")

    result = await db.execute(select(Student.student_id).where(Student.email_id == email))
    if result.first():
        raise ValueError("Email already exists")

    student_id = to_int(user.get("studentId")) or await generate_student_id(db)
    if await db.get(Student, student_id):
        raise ValueError("Student ID already exists")

    db.add(Student(
        student_id=student_id,
        first_name=user["firstName"],
        last_name=user.get("lastName") or "",
        email_id=email,
        contact_number=user.get("phone") or "",
        department=user.get("department"),
        semester=to_int(user.get("semester")) or 1,
        section=user.get("section"),
        admission_year=to_int(user.get("admissionYear")) or date.today().year,
        password_hash=get_password_hash(user.get("password") or settings.DEFAULT_IMPORT_PASSWORD),
        is_active=True,
    ))
    await db.flush()
    return student_id

async def import_staff(db: AsyncSession, user: dict) -> int:
    email = clean_str(user.get("email"))
    username = clean_str(user.get("username")) or email
    if not clean_str(user.get("firstName")) or not username:
        raise ValueError("First name and username or email are required")

    conditions = [Staff.username == username]
    if email:
        conditions.append(Staff.email == email)
    result = await db.execute(select(Staff.staff_id).where(or_(*conditions)))
    if result.first():
        raise ValueError("Username or email already exists")

    staff = Staff(
        first_name=user["firstName"],
        last_name=user.get("lastName") or "",
        email=email,
        username=username,
        contact_number=user.get("phone"),
        department=user.get("department"),
        block_number="A",
        room_number="101",
        role="Faculty",
        availability="Available",
        password_hash=get_password_hash(user.get("password") or settings.DEFAULT_IMPORT_PASSWORD),
        is_active=True,
    )
    db.add(staff)
    await db.flush()
    return staff.staff_id

async def bulk_import_users(db: AsyncSession, user_type: str, data) -> dict:
    importer = import_student if user_type == "students" else import_staff
    results = []
    for user in as_list(data, "User data"):
        ref = user.get("email") if isinstance(user, dict) else None
        try:
            if not isinstance(user, dict):
                raise ValueError("Invalid user record")
            new_id = await importer(db, user)
            await db.commit()
            results.append({"email": ref, "success": True, "id": str(new_id)})
        except Exception as e:
            await db.rollback()
            results.append(failure("email", ref, e))
    return summary("Bulk import completed.", results)

async def bulk_delete_users(db: AsyncSession, user_type: str, data) -> dict:
    model = Student if user_type == "students" else Staff
    remove = delete_student_records if user_type == "students" else delete_staff_records

    results = []
    for user_id in as_list(data, "User IDs"):
        ref = str(user_id)
        try:
            account_id = to_int(user_id)
            if account_id is None or not await db.get(model, account_id):
                raise ValueError("User not found")
            await remove(db, account_id)
            await db.commit()
            results.append({"id": ref, "success": True})
        except Exception as e:
            await db.rollback()
            results.append(failure("id", ref, e))
    return summary("Bulk delete completed.", results)

@router.post("/admin/bulk-operations")
async def run_bulk_operation(
    request: BulkOperationRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Run a bulk operation. Every item is committed on its own and failures
    are reported per item instead of aborting the batch.
    """
    operation = request.operation
    logger.info(f"Bulk operation {operation} ({request.type}) requested by {current_user.id}")

    if operation == "bulk_update_attendance":
        return await bulk_update_attendance(db, request.data, current_user.display_name)
    if operation == "bulk_send_notifications":
        return await bulk_send_notifications(db, require_user_type(request.type), request.data)
    if operation == "bulk_update_status":
        return await bulk_update_status(db, require_user_type(request.type), request.data)
    if operation == "bulk_import_users":
        return await bulk_import_users(db, require_user_type(request.type), request.data)
    if operation == "bulk_delete_users":
        return await bulk_delete_users(db, require_user_type(request.type), request.data)

    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid operation")
