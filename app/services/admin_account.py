"""
Admin Account Bootstrap
Creates the administrator account from environment settings on startup
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User, UserRole
from app.utils.security import hash_password

logger = logging.getLogger(__name__)


async def ensure_admin_user(db: AsyncSession, email: str, password: str, name: str = "Admin User") -> Optional[User]:
    """
    Create the admin account if it does not exist yet, or promote an existing
    account with that email. Nothing happens when email or password is empty.
    """
    if not email or not password:
        logger.warning("ADMIN_EMAIL/ADMIN_PASSWORD not set, skipping admin account setup")
        return None

    email = email.lower()
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user is None:
        user = User(
            email=email,
            name=name,
            role=UserRole.ADMIN.value,
            password_hash=hash_password(password),
            token_version=0,
            is_verified=True,
        )
        db.add(user)
        logger.info(f"Created admin account {email}")
    elif user.role != UserRole.ADMIN:
        user.role = UserRole.ADMIN.value
        logger.info(f"Promoted {email} to admin")

    await db.commit()
    await db.refresh(user)
    return user
