import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import delete, or_, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from case_portal.database import get_db
from case_portal.models.parents import Parent, ParentChild, ParentNotification
from case_portal.models.students import Student
from case_portal.schemas.parents import ParentCreate, ParentUpdate, ParentLinkRequest
from case_portal.middleware.authentication import CurrentAccount, require_admin
from case_portal.services.auth import get_password_hash
from case_portal.services.parsing import split_name
from case_portal.services.presenters import parent_to_dict

logger = logging.getLogger(__name__)

router = APIRouter()

def parse_parent_id(value) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid parent ID")

async def load_parent(db: AsyncSession, parent_id: int) -> Optional[Parent]:
    result = await db.execute(
        select(Parent)
        .options(selectinload(Parent.children))
        .where(Parent.parent_id == parent_id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()

def apply_parent_fields(parent: Parent, data: dict) -> None:
    if data.get("name"):
        parent.first_name, parent.last_name = split_name(data["name"])
    if data.get("first_name"):
        parent.first_name = data["first_name"]
    if data.get("last_name") is not None:
        parent.last_name = data["last_name"]

    email = data.get("email") or data.get("child_email")
    if email:
        parent.child_email = email
    phone = data.get("phone") or data.get("contact_number")
    if phone:
        parent.contact_number = phone

    for field in ("username", "department"):
        if data.get(field) is not None:
            setattr(parent, field, data[field])
    if data.get("relationship") is not None:
        parent.relationship_type = data["relationship"]
    if data.get("is_active") is not None:
        parent.is_active = data["is_active"]

@router.get("/admin/parents")
async def list_parents(
    search: Optional[str] = None,
    department: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    List parents with their linked students.
    The department falls back to the primary child's department.
    """
    query = select(Parent).options(selectinload(Parent.children))

    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(or_(
            func.lower(Parent.first_name).like(pattern),
            func.lower(Parent.last_name).like(pattern),
            func.lower(Parent.child_email).like(pattern),
            func.lower(Parent.username).like(pattern),
            func.lower(Parent.contact_number).like(pattern),
            func.lower(Parent.relationship_type).like(pattern),
        ))

    result = await db.execute(query.order_by(Parent.first_name, Parent.last_name))
    parents = [parent_to_dict(p, p.children) for p in result.scalars().all()]

    if department and department != "all":
        parents = [p for p in parents if p["department"] == department]

    return {"success": True, "data": parents}

@router.post("/admin/parents", status_code=status.HTTP_201_CREATED)
async def create_parent(
    parent_data: ParentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Create a parent account. A password is required.
    """
    data = parent_data.model_dump()

    if not data.get("password") or not data["password"].strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Password is required")
    if not data.get("username"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username is required")

    first_name = split_name(data["name"])[0] if data.get("name") else data.get("first_name")
    if not first_name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name is required")

    # Check if username is taken
    result = await db.execute(select(Parent.parent_id).where(Parent.username == data["username"]))
    if result.first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already exists")

    parent = Parent(
        first_name=first_name,
        last_name="",
        username=data["username"],
        password_hash=get_password_hash(data["password"]),
        is_active=True,
    )
    apply_parent_fields(parent, data)

    db.add(parent)
    await db.commit()

    logger.info(f"Parent created: {parent.parent_id}")
    return {"success": True, "data": parent_to_dict(parent, [])}

@router.put("/admin/parents")
async def update_parent(
    parent_data: ParentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Update the parent named by parent_id (or id) in the body.
    The password is re-hashed only when a non-blank one is supplied.
    """
    data = parent_data.model_dump(exclude_unset=True)
    raw_id = data.pop("parent_id", None) or data.pop("id", None)
    if raw_id in (None, ""):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Parent ID is required")

    parent = await load_parent(db, parse_parent_id(raw_id))
    if not parent:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Parent not found")

    password = data.pop("password", None)
    if password and password.strip():
        parent.password_hash = get_password_hash(password)

    apply_parent_fields(parent, data)
    await db.commit()

    return {"success": True, "data": parent_to_dict(parent, parent.children)}

async def _delete_parent(db: AsyncSession, parent_id: int) -> dict:
    parent = await db.get(Parent, parent_id)
    if not parent:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Parent not found")

    name = parent.full_name
    await db.execute(delete(ParentChild).where(ParentChild.parent_id == parent_id))
    await db.execute(delete(ParentNotification).where(ParentNotification.parent_id == parent_id))
    await db.execute(delete(Parent).where(Parent.parent_id == parent_id))
    await db.commit()

    logger.info(f"Parent deleted: {parent_id}")
    return {"success": True, "message": f"Parent {name} has been deleted successfully."}

@router.delete("/admin/parents")
async def delete_parent_by_query(
    parentId: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    if not parentId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Parent ID is required")
    return await _delete_parent(db, parse_parent_id(parentId))

@router.delete("/admin/parents/{parent_id}")
async def delete_parent(
    parent_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    return await _delete_parent(db, parse_parent_id(parent_id))

@router.post("/admin/parents/{parent_id}/link")
async def link_child(
    parent_id: str,
    link_data: ParentLinkRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Link a student to a parent, snapshotting the student's details.
    """
    pid = parse_parent_id(parent_id)
    try:
        student_id = int(str(link_data.studentId).strip())
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid student ID")

    parent = await db.get(Parent, pid)
    if not parent:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Parent not found")

    student = await db.get(Student, student_id)
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")

    # Check if relationship already exists
    result = await db.execute(
        select(ParentChild.id).where(
            ParentChild.parent_id == pid,
            ParentChild.child_student_id == student_id,
        )
    )
    if result.first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Student is already linked to this parent"
        )

    result = await db.execute(select(func.count(ParentChild.id)).where(ParentChild.parent_id == pid))
    existing_children = result.scalar() or 0

    db.add(ParentChild(
        parent_id=pid,
        child_student_id=student_id,
        child_name=student.full_name,
        child_email=student.email_id,
        child_department=student.department,
        child_semester=student.semester,
        child_section=student.section,
        is_primary=existing_children == 0,
    ))
    await db.commit()

    return {
        "success": True,
        "message": f"Student {student.full_name} has been linked successfully.",
    }
