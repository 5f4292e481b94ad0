from datetime import datetime, timedelta
from typing import Optional, Dict, Any

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from case_portal.config import settings
from case_portal.models.staff import Staff
from case_portal.models.students import Student
from case_portal.models.parents import Parent

ROLES = ("admin", "staff", "student", "parent")

# Where each portal lands after login
ROLE_REDIRECTS = {
    "student": "/student-interface",
    "staff": "/staff-portal",
    "parent": "/parent-dashboard",
    "admin": "/dashboard",
}

# Session cookie carrying the token for each role
SESSION_COOKIES = {
    "admin": "staff_session",
    "staff": "staff_session",
    "student": "student_session",
    "parent": "parent_session",
}

# Password hashing utilities
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)

def verify_password(plain_password, hashed_password):
    """Verify a password against a hash."""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Stored value is not a recognised hash
        return False

def get_password_hash(password):
    """Generate a password hash."""
    return pwd_context.hash(password)

async def authenticate_account(identifier: str, password: str, role: str, db: AsyncSession):
    """
    Look up the account for a login attempt and check its password.

    Students sign in with their email, staff and administrators with their
    username or email, parents with their username. Administrators must hold
    a staff record whose role is Admin.
    Returns the account if the credentials match, None otherwise.
    """
    if role == "student":
        query = select(Student).where(Student.email_id == identifier)
    elif role in ("staff", "admin"):
        query = select(Staff).where(or_(Staff.username == identifier, Staff.email == identifier))
    elif role == "parent":
        query = select(Parent).where(Parent.username == identifier)
    else:
        return None

    result = await db.execute(query)
    account = result.scalars().first()

    if not account:
        return None

    if role == "admin" and not account.is_admin:
        return None

    if not verify_password(password, account.password_hash):
        return None

    return account

def account_id(account) -> int:
    """Primary key of a staff, student or parent account."""
    if isinstance(account, Student):
        return account.student_id
    if isinstance(account, Staff):
        return account.staff_id
    return account.parent_id

def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token with the given data and expiration.
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    return encoded_jwt

def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode a token, returning None when it is malformed or expired."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    if payload.get("sub") is None or payload.get("role") not in ROLES:
        return None

    return payload
