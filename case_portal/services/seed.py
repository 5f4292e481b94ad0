import logging
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from case_portal.config import settings
from case_portal.models.staff import Staff
from case_portal.models.students import Student, Subject
from case_portal.models.parents import Parent, ParentChild
from case_portal.models.events import EventCategory
from case_portal.services.auth import get_password_hash

logger = logging.getLogger(__name__)

DEFAULT_SUBJECTS = [
    ("GEN", "General", 0),
    ("CS101", "Programming Fundamentals", 4),
    ("CS201", "Data Structures", 4),
    ("MA101", "Engineering Mathematics", 3),
    ("PH101", "Engineering Physics", 3),
]

DEFAULT_EVENT_CATEGORIES = [
    ("Academic", "#3B82F6"),
    ("Cultural", "#EC4899"),
    ("Sports", "#10B981"),
    ("Workshop", "#F59E0B"),
]

SAMPLE_STUDENT_ID = 1000000000001

async def seed_database(db: AsyncSession) -> dict:
    """
    Create the baseline records. Existing records are left untouched, so the
    seed can run repeatedly.
    Returns how many records of each kind were created.
    """
    created = {"staff": 0, "subjects": 0, "eventCategories": 0, "students": 0, "parents": 0}

    # Administrator account
    result = await db.execute(select(Staff).where(Staff.username == settings.DEFAULT_ADMIN_USERNAME))
    if not result.scalars().first():
        db.add(Staff(
            first_name="System",
            last_name="Administrator",
            username=settings.DEFAULT_ADMIN_USERNAME,
            email=f"{settings.DEFAULT_ADMIN_USERNAME}@case.edu",
            password_hash=get_password_hash(settings.DEFAULT_ADMIN_PASSWORD),
            department="Administration",
            role="Admin",
            is_active=True,
        ))
        created["staff"] += 1

    # Sample faculty member
    result = await db.execute(select(Staff).where(Staff.username == "faculty.demo"))
    if not result.scalars().first():
        db.add(Staff(
            first_name="Demo",
            last_name="Faculty",
            username="faculty.demo",
            email="faculty.demo@case.edu",
            password_hash=get_password_hash(settings.DEFAULT_IMPORT_PASSWORD),
            department="Computer Science",
            role="Faculty",
            hire_date=date.today(),
            is_active=True,
        ))
        created["staff"] += 1

    for code, name, credits in DEFAULT_SUBJECTS:
        result = await db.execute(select(Subject).where(Subject.subject_code == code))
        if not result.scalars().first():
            db.add(Subject(subject_code=code, name=name, credits=credits))
            created["subjects"] += 1

    for name, color in DEFAULT_EVENT_CATEGORIES:
        result = await db.execute(select(EventCategory).where(EventCategory.name == name))
        if not result.scalars().first():
            db.add(EventCategory(name=name, color=color))
            created["eventCategories"] += 1

    # Sample student and parent
    student = await db.get(Student, SAMPLE_STUDENT_ID)
    if not student:
        result = await db.execute(select(Student).where(Student.email_id == "student.demo@case.edu"))
        student = result.scalars().first()
    if not student:
        student = Student(
            student_id=SAMPLE_STUDENT_ID,
            first_name="Demo",
            last_name="Student",
            email_id="student.demo@case.edu",
            password_hash=get_password_hash(settings.DEFAULT_IMPORT_PASSWORD),
            department="Computer Science",
            semester=1,
            section="A",
            admission_year=date.today().year,
            is_active=True,
        )
        db.add(student)
        created["students"] += 1

    result = await db.execute(select(Parent).where(Parent.username == "parent.demo"))
    parent = result.scalars().first()
    if not parent:
        parent = Parent(
            first_name="Demo",
            last_name="Parent",
            username="parent.demo",
            password_hash=get_password_hash(settings.DEFAULT_IMPORT_PASSWORD),
            child_email=student.email_id,
            relationship_type="Guardian",
            department=student.department,
            is_active=True,
        )
        db.add(parent)
        await db.flush()
        db.add(ParentChild(
            parent_id=parent.parent_id,
            child_student_id=student.student_id,
            child_name=student.full_name,
            child_email=student.email_id,
            child_department=student.department,
            child_semester=student.semester,
            child_section=student.section,
            is_primary=True,
        ))
        created["parents"] += 1

    await db.commit()
    logger.info(f"Seed complete: {created}")
    return created
