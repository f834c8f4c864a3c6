"""Students router: records, enrollment, balance."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from feedesk.auth.rbac import check_permission
from feedesk.core.config import settings
from feedesk.core.exceptions import ServiceError
from feedesk.db.repository import LedgerRepository, get_repository
from feedesk.ledger.locks import StudentLocks, get_student_locks

from .schemas import (
    BalanceResponse,
    EnrollmentCreate,
    StudentCreate,
    StudentResponse,
    StudentUpdate,
)
from . import service

router = APIRouter(prefix="/api/v1/students", tags=["students"])


@router.post(
    "",
    response_model=StudentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("students", "write"))],
)
async def create_student(
    payload: StudentCreate,
    repo: LedgerRepository = Depends(get_repository),
) -> StudentResponse:
    try:
        return await service.create_student(repo, payload, settings.academic_year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "",
    response_model=List[StudentResponse],
    dependencies=[Depends(check_permission("students", "read"))],
)
async def list_students(
    class_name: Optional[str] = Query(None, description="Only students in this class for the active year"),
    repo: LedgerRepository = Depends(get_repository),
) -> List[StudentResponse]:
    try:
        return await service.list_students(repo, settings.academic_year, class_name=class_name)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{admission_number}",
    response_model=StudentResponse,
    dependencies=[Depends(check_permission("students", "read"))],
)
async def get_student(
    admission_number: str,
    repo: LedgerRepository = Depends(get_repository),
) -> StudentResponse:
    try:
        return await service.get_student(repo, admission_number, settings.academic_year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put(
    "/{admission_number}",
    response_model=StudentResponse,
    dependencies=[Depends(check_permission("students", "write"))],
)
async def update_student(
    admission_number: str,
    payload: StudentUpdate,
    repo: LedgerRepository = Depends(get_repository),
    locks: StudentLocks = Depends(get_student_locks),
) -> StudentResponse:
    try:
        return await service.update_student(repo, locks, admission_number, payload, settings.academic_year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/{admission_number}/enrollments",
    response_model=StudentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("students", "write"))],
)
async def add_enrollment(
    admission_number: str,
    payload: EnrollmentCreate,
    repo: LedgerRepository = Depends(get_repository),
    locks: StudentLocks = Depends(get_student_locks),
) -> StudentResponse:
    try:
        return await service.add_enrollment(repo, locks, admission_number, payload, settings.academic_year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/{admission_number}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(check_permission("students", "write"))],
)
async def delete_student(
    admission_number: str,
    repo: LedgerRepository = Depends(get_repository),
) -> None:
    try:
        await service.delete_student(repo, admission_number)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{admission_number}/balance",
    response_model=BalanceResponse,
    dependencies=[Depends(check_permission("payments", "read"))],
)
async def get_balance(
    admission_number: str,
    repo: LedgerRepository = Depends(get_repository),
) -> BalanceResponse:
    try:
        return await service.get_balance(repo, admission_number, settings.academic_year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
