"""
C.A.S.E Portal - Test Configuration and Fixtures
"""
import os
from datetime import date
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Set testing environment before the application reads its settings
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_case_portal.db"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["BCRYPT_ROUNDS"] = "4"

from case_portal.main import app
from case_portal.database import get_db
from case_portal.models import Base
from case_portal.models.staff import Staff
from case_portal.models.students import Student, Subject
from case_portal.models.parents import Parent, ParentChild
from case_portal.services.auth import get_password_hash, create_access_token

PASSWORD = "secret123"

@pytest.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """A fresh SQLite database per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()

@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session

@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Test client whose requests each get their own session."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()

def bearer(account_id, role: str) -> dict:
    token = create_access_token({"sub": str(account_id), "role": role})
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
async def admin_id(db_session: AsyncSession) -> int:
    admin = Staff(
        first_name="Ada",
        last_name="Admin",
        username="admin",
        email="admin@case.edu",
        password_hash=get_password_hash(PASSWORD),
        department="Administration",
        role="Admin",
        is_active=True,
    )
    db_session.add(admin)
    await db_session.commit()
    return admin.staff_id

@pytest.fixture
async def staff_id(db_session: AsyncSession) -> int:
    staff = Staff(
        first_name="Grace",
        last_name="Hopper",
        username="ghopper",
        email="grace@case.edu",
        password_hash=get_password_hash(PASSWORD),
        department="Computer Science",
        role="Faculty",
        is_active=True,
    )
    db_session.add(staff)
    await db_session.commit()
    return staff.staff_id

@pytest.fixture
async def student_id(db_session: AsyncSession) -> int:
    student = Student(
        student_id=2024000000001,
        first_name="Alan",
        last_name="Turing",
        email_id="alan@case.edu",
        password_hash=get_password_hash(PASSWORD),
        contact_number="5550100",
        department="Computer Science",
        semester=3,
        section="A",
        admission_year=2023,
        is_active=True,
    )
    db_session.add(student)
    await db_session.commit()
    return student.student_id

@pytest.fixture
async def other_student_id(db_session: AsyncSession) -> int:
    student = Student(
        student_id=2024000000002,
        first_name="Katherine",
        last_name="Johnson",
        email_id="katherine@case.edu",
        password_hash=get_password_hash(PASSWORD),
        department="Mathematics",
        semester=1,
        section="B",
        admission_year=2024,
        is_active=True,
    )
    db_session.add(student)
    await db_session.commit()
    return student.student_id

@pytest.fixture
async def parent_id(db_session: AsyncSession, student_id: int) -> int:
    """A parent linked to the default student."""
    parent = Parent(
        first_name="Ethel",
        last_name="Turing",
        username="eturing",
        password_hash=get_password_hash(PASSWORD),
        child_email="alan@case.edu",
        relationship_type="Mother",
        is_active=True,
    )
    db_session.add(parent)
    await db_session.flush()
    db_session.add(ParentChild(
        parent_id=parent.parent_id,
        child_student_id=student_id,
        child_name="Alan Turing",
        child_email="alan@case.edu",
        child_department="Computer Science",
        child_semester=3,
        child_section="A",
        is_primary=True,
    ))
    await db_session.commit()
    return parent.parent_id

@pytest.fixture
async def subject_id(db_session: AsyncSession) -> int:
    subject = Subject(subject_code="CS201", name="Data Structures", credits=4)
    db_session.add(subject)
    await db_session.commit()
    return subject.id

@pytest.fixture
def admin_headers(admin_id) -> dict:
    return bearer(admin_id, "admin")

@pytest.fixture
def staff_headers(staff_id) -> dict:
    return bearer(staff_id, "staff")

@pytest.fixture
def student_headers(student_id) -> dict:
    return bearer(student_id, "student")

@pytest.fixture
def parent_headers(parent_id) -> dict:
    return bearer(parent_id, "parent")

@pytest.fixture
def today() -> str:
    return date.today().isoformat()
