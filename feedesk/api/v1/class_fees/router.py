"""Class fee router: fee table and fee revision."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from feedesk.auth.rbac import check_permission
from feedesk.core.config import settings
from feedesk.core.exceptions import ServiceError
from feedesk.db.repository import LedgerRepository, get_repository
from feedesk.ledger.locks import StudentLocks, get_student_locks
from feedesk.ledger.schemas import ClassFeeConfig

from .schemas import ClassFeeCreate, FeeRevisionRequest, FeeRevisionResponse
from . import service

router = APIRouter(prefix="/api/v1/class-fees", tags=["class-fees"])


@router.get(
    "",
    response_model=List[ClassFeeConfig],
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def list_class_fees(
    repo: LedgerRepository = Depends(get_repository),
) -> List[ClassFeeConfig]:
    try:
        return await service.list_class_fees(repo)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=ClassFeeConfig,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("fees", "write"))],
)
async def create_class_fee(
    payload: ClassFeeCreate,
    repo: LedgerRepository = Depends(get_repository),
) -> ClassFeeConfig:
    try:
        return await service.create_class_fee(repo, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put(
    "/{class_name}/sessions/{session_label}",
    response_model=FeeRevisionResponse,
    dependencies=[Depends(check_permission("fees", "write"))],
)
async def revise_class_fee(
    class_name: str,
    session_label: str,
    payload: FeeRevisionRequest,
    repo: LedgerRepository = Depends(get_repository),
    locks: StudentLocks = Depends(get_student_locks),
) -> FeeRevisionResponse:
    try:
        return await service.revise_class_fee(
            repo,
            locks,
            class_name,
            session_label,
            payload.amount,
            academic_year=settings.academic_year,
            concurrency=settings.fee_revision_concurrency,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
