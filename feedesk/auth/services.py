from datetime import datetime, timezone
from typing import Optional

from fastapi import status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.auth.models import User
from feedesk.auth.schemas import LoginRequest, LoginResponse, UserInfo
from feedesk.auth.security import create_access_token, verify_password
from feedesk.core.enums import UserStatus
from feedesk.core.exceptions import ServiceError


async def login_user(db: AsyncSession, payload: LoginRequest) -> LoginResponse:
    # 1. Find user by username (case-insensitive)
    user_stmt = select(User).where(func.lower(User.username) == payload.username.strip().lower())
    user: Optional[User] = (await db.execute(user_stmt)).scalar_one_or_none()
    if not user:
        raise ServiceError("Invalid credentials", status.HTTP_401_UNAUTHORIZED)

    # 2. Verify password hash
    if not verify_password(payload.password, user.password_hash):
        raise ServiceError("Invalid credentials", status.HTTP_401_UNAUTHORIZED)

    # 3. Check user status
    if user.status != UserStatus.ACTIVE.value:
        raise ServiceError("User is inactive", status.HTTP_403_FORBIDDEN)

    issued_at = datetime.now(timezone.utc)
    access_token = create_access_token(user.id, user.role, issued_at=issued_at)
    return LoginResponse(
        access_token=access_token,
        user=UserInfo(id=user.id, username=user.username, name=user.name, role=user.role),
        issued_at=issued_at,
    )
