from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.auth.models import User
from feedesk.auth.schemas import CurrentUser
from feedesk.auth.security import decode_access_token
from feedesk.core.enums import UserStatus
from feedesk.db.session import get_db


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login-oauth")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Resolve the authenticated user from the access token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id = decode_access_token(token)
    if not user_id:
        raise credentials_exception

    # Role and name come from the row, not the token, so demotions apply immediately.
    user = await db.get(User, user_id)
    if not user or user.status != UserStatus.ACTIVE.value:
        raise credentials_exception

    return CurrentUser(id=user.id, username=user.username, name=user.name, role=user.role)
