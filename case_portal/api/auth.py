import logging

from fastapi import APIRouter, Depends, HTTPException, status, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from case_portal.config import settings
from case_portal.database import get_db
from case_portal.models.parents import ParentChild
from case_portal.schemas.auth import LoginRequest
from case_portal.services.auth import (
    authenticate_account, account_id, create_access_token, ROLE_REDIRECTS, SESSION_COOKIES,
)
from case_portal.services.presenters import student_to_dict, staff_to_dict, parent_to_dict
from case_portal.middleware.authentication import (
    CurrentAccount, require_faculty, require_student, require_parent, TOKEN_COOKIES,
)

logger = logging.getLogger(__name__)

router = APIRouter()

async def account_profile(current: CurrentAccount, db: AsyncSession) -> dict:
    """Profile shown to the signed-in account."""
    if current.role == "student":
        return student_to_dict(current.account)
    if current.role == "parent":
        result = await db.execute(
            select(ParentChild)
            .where(ParentChild.parent_id == current.id)
            .order_by(ParentChild.id)
        )
        return parent_to_dict(current.account, result.scalars().all())
    return staff_to_dict(current.account)

@router.post("/auth/login")
async def login(
    login_data: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    """
    Authenticate a student, staff member, parent or administrator and start a
    session for the matching portal.
    """
    account = await authenticate_account(login_data.username.strip(), login_data.password, login_data.role, db)

    if not account:
        logger.warning(f"Failed {login_data.role} login for {login_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    if not account.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive. Please contact the administrator."
        )

    token = create_access_token({"sub": str(account_id(account)), "role": login_data.role})

    response.set_cookie(
        key=SESSION_COOKIES[login_data.role],
        value=token,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
    )

    logger.info(f"{login_data.role} {account_id(account)} logged in")

    return {
        "success": True,
        "token": token,
        "role": login_data.role,
        "user": await account_profile(CurrentAccount(login_data.role, account), db),
        "redirectTo": ROLE_REDIRECTS[login_data.role],
    }

@router.post("/auth/logout")
async def logout(response: Response):
    """
    Clear every session cookie.
    """
    for cookie in TOKEN_COOKIES:
        response.delete_cookie(cookie, path="/")
    return {"success": True, "message": "Logged out successfully"}

@router.get("/auth/student/me")
async def student_me(
    current_user: CurrentAccount = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    return {"success": True, "user": await account_profile(current_user, db)}

@router.get("/auth/staff/me")
async def staff_me(
    current_user: CurrentAccount = Depends(require_faculty),
    db: AsyncSession = Depends(get_db)
):
    return {"success": True, "user": await account_profile(current_user, db)}

@router.get("/auth/parent/me")
async def parent_me(
    current_user: CurrentAccount = Depends(require_parent),
    db: AsyncSession = Depends(get_db)
):
    """
    Parent profile including the linked children.
    """
    return {"success": True, "user": await account_profile(current_user, db)}
