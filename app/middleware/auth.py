"""
Authentication dependencies for session management
"""
from fastapi import Request, HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import uuid

from app.config.settings import SESSION_COOKIE_NAME
from app.models.user import User, UserRole
from app.utils.database import get_db
from app.utils.security import verify_token

security = HTTPBearer(auto_error=False)


async def resolve_user(db: AsyncSession, token: str) -> Optional[User]:
    """Look up the user a token belongs to; None for stale or unknown tokens"""
    payload = verify_token(token)
    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        return None
    
    user = await db.get(User, user_id)
    if not user:
        return None
    
    # Tokens issued before the last sign-out carry an older version
    if payload.get("ver", 0) != user.token_version:
        return None
    
    return user


def request_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials:
        return credentials.credentials
    return request.cookies.get(SESSION_COOKIE_NAME)


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    token: HTTPAuthorizationCredentials = Depends(security)
) -> Optional[User]:
    """Get current user from the Authorization header or the session cookie"""
    raw_token = request_token(request, token)
    if not raw_token:
        return None
    
    try:
        return await resolve_user(db, raw_token)
    except HTTPException:
        return None  # Invalid token, treat as anonymous


async def require_auth(user: Optional[User] = Depends(get_current_user)) -> User:
    """Require authentication, raise 401 if not authenticated"""
    if not user:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user


async def require_agent(user: User = Depends(require_auth)) -> User:
    """Require an agent account"""
    if user.role != UserRole.AGENT:
        raise HTTPException(status_code=403, detail="Agent account required")
    return user


async def require_admin(user: User = Depends(require_auth)) -> User:
    """Require an admin account"""
    if user.role != UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
