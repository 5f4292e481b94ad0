import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, update, func, desc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from case_portal.database import get_db
from case_portal.models.notifications import Notification
from case_portal.models.staff import StaffNotification
from case_portal.models.students import StudentNotification
from case_portal.models.parents import ParentNotification
from case_portal.schemas.notifications import BroadcastCreate, TargetedSend, InboxAction
from case_portal.middleware.authentication import (
    CurrentAccount, require_admin, require_faculty, require_student, require_parent
)
from case_portal.services.notifier import (
    PORTALS, fan_out_broadcast, notify_student, notify_staff, notify_parent,
    active_student_ids, active_staff_ids, active_parent_ids,
)
from case_portal.services.presenters import notification_to_dict
from case_portal.services.parsing import iso

logger = logging.getLogger(__name__)

router = APIRouter()

INBOX_ACTIONS = ("mark_read", "delete", "mark_all_read")

def broadcast_to_dict(notification: Notification) -> dict:
    return {
        "id": notification.id,
        "title": notification.title,
        "message": notification.message,
        "type": notification.type,
        "priority": notification.priority,
        "target_portals": notification.target_portals or [],
        "recipient_count": notification.recipient_count,
        "created_by": notification.created_by,
        "created_at": iso(notification.created_at),
    }

@router.get("/admin/notifications")
async def list_broadcasts(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    result = await db.execute(select(Notification).order_by(desc(Notification.created_at), desc(Notification.id)))
    return {"success": True, "notifications": [broadcast_to_dict(n) for n in result.scalars().all()]}

@router.post("/admin/notifications", status_code=status.HTTP_201_CREATED)
async def create_broadcast(
    broadcast: BroadcastCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Store a broadcast and deliver a personal copy to every active account
    of each targeted portal.
    """
    portals = [p for p in broadcast.targetPortals if p in PORTALS]
    if not broadcast.title or not broadcast.message or not portals:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Title, message and at least one target portal are required"
        )

    notification = Notification(
        title=broadcast.title,
        message=broadcast.message,
        type=broadcast.type or "info",
        priority=broadcast.priority or "normal",
        target_portals=portals,
        created_by=current_user.id,
    )
    db.add(notification)
    await db.flush()

    notification.recipient_count = await fan_out_broadcast(db, notification)
    await db.commit()

    return {
        "success": True,
        "notification": broadcast_to_dict(notification),
        "recipientCount": notification.recipient_count,
        "message": f"Notification sent to {notification.recipient_count} recipients",
    }

@router.delete("/admin/notifications/{notification_id}")
async def delete_broadcast(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Delete a broadcast and the personal notifications created from it.
    """
    try:
        broadcast_id = int(notification_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid notification ID")

    notification = await db.get(Notification, broadcast_id)
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")

    for model in (StudentNotification, StaffNotification, ParentNotification):
        await db.execute(delete(model).where(model.notification_id == broadcast_id))
    await db.execute(delete(Notification).where(Notification.id == broadcast_id))
    await db.commit()

    return {"success": True, "message": "Notification deleted successfully"}

async def linked_broadcast_id(db: AsyncSession, value) -> Optional[int]:
    """The broadcast id a targeted send refers to, when it names a stored broadcast."""
    try:
        broadcast_id = int(str(value).strip())
    except ValueError:
        return None
    if await db.get(Notification, broadcast_id):
        return broadcast_id
    return None

def require_send_fields(data: TargetedSend) -> None:
    if data.notificationId in (None, "") or not data.title or not data.message:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")

@router.post("/admin/notifications/send-to-students")
async def send_to_students(
    data: TargetedSend,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    require_send_fields(data)
    broadcast_id = await linked_broadcast_id(db, data.notificationId)

    student_ids = await active_student_ids(db, data.department, data.section)
    for student_id in student_ids:
        notify_student(db, student_id, data.title, data.message, type=data.type or "admin",
                       priority=data.priority or "Normal", notification_id=broadcast_id)
    await db.commit()

    return {
        "success": True,
        "count": len(student_ids),
        "message": f"Notification sent to {len(student_ids)} students",
    }

@router.post("/admin/notifications/send-to-parent")
async def send_to_parents(
    data: TargetedSend,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    """
    Notify parents. Department and section filters apply to their linked children.
    """
    require_send_fields(data)
    broadcast_id = await linked_broadcast_id(db, data.notificationId)

    parent_ids = await active_parent_ids(db, data.department, data.section)
    for parent_id in parent_ids:
        notify_parent(db, parent_id, data.title, data.message, type=data.type or "General",
                      priority=data.priority or "Normal", notification_id=broadcast_id)
    await db.commit()

    return {
        "success": True,
        "count": len(parent_ids),
        "message": f"Notification sent to {len(parent_ids)} parents",
    }

@router.post("/admin/notifications/sent-to-staff")
@router.post("/admin/notifications/send-to-staff")
async def send_to_staff(
    data: TargetedSend,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    """
    Notify staff, one transaction per recipient so a failure only skips that member.
    """
    require_send_fields(data)
    broadcast_id = await linked_broadcast_id(db, data.notificationId)

    sent = 0
    failed = 0
    for staff_id in await active_staff_ids(db, data.department):
        try:
            notify_staff(db, staff_id, data.title, data.message, type=data.type or "Info",
                         priority=data.priority or "Normal", notification_id=broadcast_id)
            await db.commit()
            sent += 1
        except Exception as e:
            await db.rollback()
            logger.warning(f"Staff notification failed for {staff_id}: {str(e)}")
            failed += 1

    return {
        "success": True,
        "count": sent,
        "failed": failed,
        "message": f"Notification sent to {sent} staff members",
    }

async def list_inbox(db: AsyncSession, model, owner_column, owner_id: int) -> dict:
    result = await db.execute(
        select(model)
        .where(owner_column == owner_id)
        .order_by(desc(model.created_at), desc(model.id))
    )
    notifications = [notification_to_dict(n) for n in result.scalars().all()]

    result = await db.execute(
        select(func.count(model.id)).where(owner_column == owner_id, model.is_read.is_(False))
    )
    unread = result.scalar() or 0

    return {"success": True, "notifications": notifications, "unreadCount": unread}

async def apply_inbox_action(db: AsyncSession, model, owner_column, owner_id: int, data: InboxAction) -> dict:
    """
    Apply mark_read, delete or mark_all_read to an account's own notifications.
    """
    if data.action not in INBOX_ACTIONS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")

    if data.action == "mark_all_read":
        await db.execute(
            update(model)
            .where(owner_column == owner_id, model.is_read.is_(False))
            .values(is_read=True)
        )
        await db.commit()
        return {"success": True, "message": "All notifications marked as read"}

    try:
        notification_id = int(str(data.notificationId).strip())
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid notification ID")

    result = await db.execute(
        select(model).where(model.id == notification_id, owner_column == owner_id)
    )
    notification = result.scalars().first()
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")

    if data.action == "delete":
        await db.delete(notification)
        await db.commit()
        return {"success": True, "message": "Notification deleted"}

    notification.is_read = True
    await db.commit()
    return {"success": True, "message": "Notification marked as read"}

@router.get("/student-interface/notifications")
async def student_inbox(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_student)
):
    return await list_inbox(db, StudentNotification, StudentNotification.student_id, current_user.id)

@router.post("/student-interface/notifications")
async def student_inbox_action(
    data: InboxAction,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_student)
):
    return await apply_inbox_action(db, StudentNotification, StudentNotification.student_id, current_user.id, data)

@router.get("/parent-dashboard/notifications")
async def parent_inbox(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_parent)
):
    return await list_inbox(db, ParentNotification, ParentNotification.parent_id, current_user.id)

@router.post("/parent-dashboard/notifications")
async def parent_inbox_action(
    data: InboxAction,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_parent)
):
    return await apply_inbox_action(db, ParentNotification, ParentNotification.parent_id, current_user.id, data)

@router.get("/staff-portal/notifications")
async def staff_inbox(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    return await list_inbox(db, StaffNotification, StaffNotification.staff_id, current_user.id)

@router.post("/staff-portal/notifications")
async def staff_inbox_action(
    data: InboxAction,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_faculty)
):
    return await apply_inbox_action(db, StaffNotification, StaffNotification.staff_id, current_user.id, data)
