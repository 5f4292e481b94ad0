from typing import Optional, List, Callable
from urllib.parse import quote

from fastapi import Depends, HTTPException, status, Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.middleware.base import BaseHTTPMiddleware

from case_portal.database import get_db
from case_portal.models.staff import Staff
from case_portal.models.students import Student
from case_portal.models.parents import Parent
from case_portal.services.auth import decode_access_token

# Cookies checked, in order, when no bearer header is present
TOKEN_COOKIES = ("token", "staff_session", "student_session", "parent_session")

PUBLIC_ROUTES = [
    "/",
    "/case-homepage",
    "/login",
    "/notes-repository",
    "/api/auth",
    "/api/register",
    "/api/notes",
    "/api/feedback",
    "/api/docs",
    "/api/openapi.json",
]

PROTECTED_ROUTES = [
    "/dashboard",
    "/student-interface",
    "/staff-portal",
    "/parent-dashboard",
    "/api/admin",
    "/api/staff",
    "/api/students",
    "/api/student",
    "/api/parents",
    "/api/student-interface",
    "/api/parent-dashboard",
    "/api/staff-portal",
    "/api/timetable",
]

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

class CurrentAccount:
    """The authenticated account and the role its token was issued for."""

    def __init__(self, role: str, account):
        self.role = role
        self.account = account

    @property
    def id(self) -> int:
        if self.role == "student":
            return self.account.student_id
        if self.role == "parent":
            return self.account.parent_id
        return self.account.staff_id

    @property
    def display_name(self) -> str:
        return self.account.full_name

def extract_token(request: Request, bearer: Optional[str] = None) -> Optional[str]:
    """Bearer header first, then the session cookies."""
    if bearer:
        return bearer
    for cookie in TOKEN_COOKIES:
        value = request.cookies.get(cookie)
        if value:
            return value
    return None

async def get_current_user(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> CurrentAccount:
    """
    Resolve the account behind the request's token.

    Raises:
        HTTPException: 401 when the token is missing, invalid or expired, or
        the account no longer exists; 403 when the account is inactive
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = extract_token(request, bearer)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception

    role = payload["role"]
    try:
        account_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise credentials_exception

    if role == "student":
        account = await db.get(Student, account_id)
    elif role == "parent":
        account = await db.get(Parent, account_id)
    else:
        account = await db.get(Staff, account_id)

    if account is None:
        raise credentials_exception

    if role == "admin" and not account.is_admin:
        raise credentials_exception

    if not account.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive"
        )

    return CurrentAccount(role, account)

class RoleChecker:
    """
    Dependency for checking if a user has the required role(s).
    """
    def __init__(self, allowed_roles: List[str]):
        self.allowed_roles = allowed_roles

    async def __call__(self, current_user: CurrentAccount = Depends(get_current_user)) -> CurrentAccount:
        if current_user.role not in self.allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to perform this action"
            )
        return current_user

require_admin = RoleChecker(["admin"])
require_faculty = RoleChecker(["admin", "staff"])
require_student = RoleChecker(["student"])
require_parent = RoleChecker(["parent"])

def _matches(path: str, route: str) -> bool:
    return path == route or path.startswith(f"{route}/")

def is_public_path(path: str) -> bool:
    return any(_matches(path, route) for route in PUBLIC_ROUTES)

def is_protected_path(path: str) -> bool:
    return any(path.startswith(route) for route in PROTECTED_ROUTES)

class PortalGuardMiddleware(BaseHTTPMiddleware):
    """
    Turn away requests to portal pages and protected APIs that carry no
    credentials at all. Tokens are verified by the route dependencies.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        path = request.url.path

        if request.method == "OPTIONS" or is_public_path(path) or not is_protected_path(path):
            return await call_next(request)

        has_header = request.headers.get("authorization", "").lower().startswith("bearer ")
        has_cookie = any(request.cookies.get(cookie) for cookie in TOKEN_COOKIES)

        if has_header or has_cookie:
            return await call_next(request)

        if path.startswith("/api/"):
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"success": False, "error": "Authentication required"},
            )

        return RedirectResponse(url=f"/login?redirect={quote(path)}", status_code=status.HTTP_307_TEMPORARY_REDIRECT)
