"""
Authentication API endpoints
Handles sign-up, sign-in, session retrieval, password update and sign-out
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Literal, Dict, Any
from datetime import datetime, timedelta, timezone
import asyncio
import logging

from app.config.settings import (
    ACCESS_TOKEN_HOURS,
    REMEMBER_ME_DAYS,
    SESSION_BOOTSTRAP_TIMEOUT,
    SESSION_COOKIE_NAME,
)
from app.middleware.auth import require_auth, resolve_user, request_token, security
from app.models.agent_approval import AgentApproval, ApprovalStatus
from app.models.user import User, UserRole
from app.services.comparison import comparison_store
from app.utils.database import get_db
from app.utils.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(tags=["authentication"])

DASHBOARD_PATHS = {
    UserRole.HOME_SEEKER.value: "/dashboard",
    UserRole.AGENT.value: "/agent/dashboard",
    UserRole.ADMIN.value: "/admin",
}

# Pydantic models
class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=6)
    role: Literal["agent", "home_seeker"]
    whatsapp_number: Optional[str] = None
    company_name: Optional[str] = None

class LoginRequest(BaseModel):
    email: EmailStr
    password: str
    remember: Optional[bool] = False

class PasswordUpdateRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)


def user_out(user: User) -> Dict[str, Any]:
    return {
        "id": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "whatsapp_number": user.whatsapp_number,
        "is_verified": bool(user.is_verified),
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def issue_session(user: User, response: Response, remember: bool = False) -> Dict[str, Any]:
    """Create an access token for the user and mirror it into the session cookie"""
    expires_delta = timedelta(days=REMEMBER_ME_DAYS) if remember else timedelta(hours=ACCESS_TOKEN_HOURS)
    access_token = create_access_token(
        {"sub": str(user.id), "role": user.role, "ver": user.token_version},
        expires_delta,
    )
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=access_token,
        max_age=int(expires_delta.total_seconds()),
        httponly=True,
        samesite="lax",
    )
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": user_out(user),
        "redirect_url": DASHBOARD_PATHS.get(user.role, "/dashboard"),
    }


@router.post("/register")
async def register(
    data: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    """Create a home seeker or agent account; agents start with a pending approval record"""

    whatsapp = (data.whatsapp_number or "").strip()
    if data.role == UserRole.AGENT and not whatsapp:
        raise HTTPException(status_code=400, detail="WhatsApp number is required for agents")

    email = data.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="An account with this email already exists")

    user = User(
        email=email,
        name=data.name.strip(),
        role=data.role,
        whatsapp_number=whatsapp or None,
        password_hash=hash_password(data.password),
        token_version=0,
        is_verified=False,
    )
    db.add(user)
    await db.flush()

    if data.role == UserRole.AGENT:
        db.add(AgentApproval(
            user_id=user.id,
            full_name=user.name,
            email=user.email,
            phone=whatsapp,
            company_name=(data.company_name or "").strip() or None,
            status=ApprovalStatus.PENDING.value,
        ))

    await db.commit()
    await db.refresh(user)
    logger.info(f"Registered {user.role} account {user.email}")

    return issue_session(user, response)


@router.post("/login")
async def login(
    login_data: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    """Authenticate with email and password"""

    result = await db.execute(
        select(User).where(User.email == login_data.email.lower())
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(login_data.password, user.password_hash):
        raise HTTPException(
            status_code=401,
            detail="Invalid email or password"
        )

    user.last_login_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(user)

    return issue_session(user, response, remember=bool(login_data.remember))


@router.get("/session")
async def get_session(
    request: Request,
    db: AsyncSession = Depends(get_db),
    token: HTTPAuthorizationCredentials = Depends(security)
):
    """
    Resolve the current session for the initial page load.
    Gives up after SESSION_BOOTSTRAP_TIMEOUT seconds and reports an anonymous session.
    """
    raw_token = request_token(request, token)
    if not raw_token:
        return {"authenticated": False, "user": None}

    try:
        user = await asyncio.wait_for(resolve_user(db, raw_token), timeout=SESSION_BOOTSTRAP_TIMEOUT)
    except asyncio.TimeoutError:
        logger.warning("Session bootstrap timed out")
        return {"authenticated": False, "user": None, "timed_out": True}
    except HTTPException:
        user = None

    if not user:
        return {"authenticated": False, "user": None}
    return {"authenticated": True, "user": user_out(user)}


@router.get("/me")
async def get_me(user: User = Depends(require_auth)):
    """Current user's profile"""
    return user_out(user)


@router.post("/password")
async def update_password(
    data: PasswordUpdateRequest,
    response: Response,
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    """Change password; every other session is signed out"""
    if not verify_password(data.current_password, user.password_hash):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    user.password_hash = hash_password(data.new_password)
    user.token_version = (user.token_version or 0) + 1
    await db.commit()
    await db.refresh(user)
    logger.info(f"Password updated for {user.email}")

    return issue_session(user, response)


@router.post("/logout")
async def logout(
    response: Response,
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    """Sign out: invalidate issued tokens and drop per-session state"""
    user.token_version = (user.token_version or 0) + 1
    await db.commit()

    comparison_store.discard(user.id)
    response.delete_cookie(SESSION_COOKIE_NAME)

    return {"message": "Signed out"}
