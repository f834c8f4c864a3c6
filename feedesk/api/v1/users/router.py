from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.auth.rbac import check_permission
from feedesk.auth.schemas import CurrentUser
from feedesk.core.exceptions import ServiceError
from feedesk.db.session import get_db

from .schemas import UserCreate, UserResponse, UserUpdate
from . import service

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get(
    "",
    response_model=List[UserResponse],
    dependencies=[Depends(check_permission("users", "read"))],
)
async def list_users(db: AsyncSession = Depends(get_db)) -> List[UserResponse]:
    return await service.list_users(db)


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("users", "write"))],
)
async def create_user(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    try:
        return await service.create_user(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    dependencies=[Depends(check_permission("users", "write"))],
)
async def update_user(
    user_id: str,
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    try:
        return await service.update_user(db, user_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(check_permission("users", "write")),
) -> None:
    try:
        await service.delete_user(db, user_id, acting_user_id=current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
