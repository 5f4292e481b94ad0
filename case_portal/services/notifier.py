import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from case_portal.models.notifications import Notification
from case_portal.models.staff import Staff, StaffNotification
from case_portal.models.students import Student, StudentNotification
from case_portal.models.parents import Parent, ParentChild, ParentNotification

logger = logging.getLogger(__name__)

PORTALS = ("students", "staff", "parents")

ALL_DEPARTMENTS = "All Departments"
ALL_SECTIONS = "All Sections"

def notify_student(db: AsyncSession, student_id: int, title: str, message: str, type: str = "Info",
                   priority: str = "Normal", related_id: Optional[int] = None,
                   notification_id: Optional[int] = None) -> StudentNotification:
    """Queue a personal notification for a student. The caller commits."""
    notification = StudentNotification(
        student_id=student_id,
        notification_id=notification_id,
        title=title,
        message=message,
        type=type,
        priority=priority,
        related_id=related_id,
        is_read=False,
    )
    db.add(notification)
    return notification

def notify_staff(db: AsyncSession, staff_id: int, title: str, message: str, type: str = "Info",
                 priority: str = "Normal", notification_id: Optional[int] = None) -> StaffNotification:
    """Queue a personal notification for a staff member. The caller commits."""
    notification = StaffNotification(
        staff_id=staff_id,
        notification_id=notification_id,
        title=title,
        message=message,
        type=type,
        priority=priority,
        is_read=False,
    )
    db.add(notification)
    return notification

def notify_parent(db: AsyncSession, parent_id: int, title: str, message: str, type: str = "General",
                  priority: str = "Normal", notification_id: Optional[int] = None) -> ParentNotification:
    """Queue a personal notification for a parent. The caller commits."""
    notification = ParentNotification(
        parent_id=parent_id,
        notification_id=notification_id,
        title=title,
        message=message,
        type=type,
        priority=priority,
        is_read=False,
    )
    db.add(notification)
    return notification

def is_specific(value: Optional[str], wildcard: str) -> bool:
    """True when a filter value narrows the audience."""
    return bool(value) and value != wildcard and value != "all"

async def active_student_ids(db: AsyncSession, department: Optional[str] = None,
                             section: Optional[str] = None, semester: Optional[int] = None) -> List[int]:
    query = select(Student.student_id).where(Student.is_active.is_(True))
    if is_specific(department, ALL_DEPARTMENTS):
        query = query.where(Student.department == department)
    if is_specific(section, ALL_SECTIONS):
        query = query.where(Student.section == section)
    if semester is not None:
        query = query.where(Student.semester == semester)
    result = await db.execute(query)
    return [row[0] for row in result.all()]

async def active_staff_ids(db: AsyncSession, department: Optional[str] = None) -> List[int]:
    query = select(Staff.staff_id).where(Staff.is_active.is_(True))
    if is_specific(department, ALL_DEPARTMENTS):
        query = query.where(Staff.department == department)
    result = await db.execute(query)
    return [row[0] for row in result.all()]

async def active_parent_ids(db: AsyncSession, department: Optional[str] = None,
                            section: Optional[str] = None) -> List[int]:
    """Active parents, optionally narrowed to those with a child in a department/section."""
    query = select(Parent.parent_id).where(Parent.is_active.is_(True))
    if is_specific(department, ALL_DEPARTMENTS) or is_specific(section, ALL_SECTIONS):
        query = query.join(ParentChild, ParentChild.parent_id == Parent.parent_id)
        if is_specific(department, ALL_DEPARTMENTS):
            query = query.where(ParentChild.child_department == department)
        if is_specific(section, ALL_SECTIONS):
            query = query.where(ParentChild.child_section == section)
    result = await db.execute(query.distinct())
    return [row[0] for row in result.all()]

async def fan_out_broadcast(db: AsyncSession, notification: Notification) -> int:
    """
    Create one personal notification per active recipient of every portal the
    broadcast targets, linked back through notification_id.
    Returns the number of recipients. The caller commits.
    """
    recipients = 0
    portals = notification.target_portals or []

    if "students" in portals:
        for student_id in await active_student_ids(db):
            notify_student(db, student_id, notification.title, notification.message,
                           type=notification.type, priority=notification.priority,
                           notification_id=notification.id)
            recipients += 1

    if "staff" in portals:
        for staff_id in await active_staff_ids(db):
            notify_staff(db, staff_id, notification.title, notification.message,
                         type=notification.type, priority=notification.priority,
                         notification_id=notification.id)
            recipients += 1

    if "parents" in portals:
        for parent_id in await active_parent_ids(db):
            notify_parent(db, parent_id, notification.title, notification.message,
                          type=notification.type, priority=notification.priority,
                          notification_id=notification.id)
            recipients += 1

    logger.info(f"Broadcast {notification.id} fanned out to {recipients} recipients")
    return recipients

async def notify_department(db: AsyncSession, department: Optional[str], title: str, message: str) -> int:
    """
    Notify the staff of a department and the parents with a child in it.
    Nothing is sent for an empty department or All Departments.
    """
    if not is_specific(department, ALL_DEPARTMENTS):
        return 0

    count = 0
    for staff_id in await active_staff_ids(db, department):
        notify_staff(db, staff_id, title, message, type="Event")
        count += 1
    for parent_id in await active_parent_ids(db, department):
        notify_parent(db, parent_id, title, message, type="Event")
        count += 1
    return count
