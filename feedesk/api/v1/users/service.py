"""User management. Payments keep their recorded_by snapshot when a user is removed."""

import logging
from typing import List, Optional

from fastapi import status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.auth.models import User
from feedesk.auth.security import hash_password
from feedesk.core.exceptions import ConflictError, NotFoundError, ServiceError

from .schemas import UserCreate, UserResponse, UserUpdate

logger = logging.getLogger(__name__)


async def _check_duplicate_username(db: AsyncSession, username: str, exclude_user_id: Optional[str] = None) -> bool:
    stmt = select(User.id).where(func.lower(User.username) == username.lower())
    if exclude_user_id:
        stmt = stmt.where(User.id != exclude_user_id)
    return (await db.execute(stmt)).scalar_one_or_none() is not None


async def list_users(db: AsyncSession) -> List[UserResponse]:
    result = await db.execute(select(User).order_by(User.name))
    return [UserResponse.model_validate(u) for u in result.scalars().all()]


async def create_user(db: AsyncSession, payload: UserCreate) -> UserResponse:
    username = payload.username.strip()
    if await _check_duplicate_username(db, username):
        raise ConflictError("Username already exists")
    user = User(
        username=username,
        name=payload.name.strip(),
        password_hash=hash_password(payload.password),
        role=payload.role.value,
        status="ACTIVE",
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Username already exists")
    await db.refresh(user)
    logger.info("Created user %s (%s)", user.username, user.role)
    return UserResponse.model_validate(user)


async def update_user(db: AsyncSession, user_id: str, payload: UserUpdate) -> UserResponse:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    if payload.username is not None:
        username = payload.username.strip()
        if await _check_duplicate_username(db, username, exclude_user_id=user_id):
            raise ConflictError("Username already exists")
        user.username = username
    if payload.name is not None:
        user.name = payload.name.strip()
    if payload.password is not None:
        user.password_hash = hash_password(payload.password)
    if payload.role is not None:
        user.role = payload.role.value
    await db.commit()
    await db.refresh(user)
    return UserResponse.model_validate(user)


async def delete_user(db: AsyncSession, user_id: str, acting_user_id: str) -> None:
    if user_id == acting_user_id:
        raise ServiceError("You cannot delete your own account", status.HTTP_400_BAD_REQUEST)
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    await db.delete(user)
    await db.commit()
    logger.info("Deleted user %s", user_id)
